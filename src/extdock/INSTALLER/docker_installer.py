# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Extension installer backed by the Docker daemon.
This is the object the plugin host talks to.
"""

import logging
from typing import Callable, Dict, Optional

from ..DAEMON.daemon_gateway import DaemonGateway
from ..errors import NotFound
from ..MANAGERS.bind_provisioner import BindProvisioner
from ..MANAGERS.install_sequencer import InstallSequencer
from ..MANAGERS.state_cache import StateCache
from ..MODELS.image_descriptor import BindProperties, ImageDescriptor, InstallOptions
from ..MODELS.install_state import DaemonVersion, GenericState, InstallStatus
from ..settings import InstallerSettings
from ..UTILS.repo_tag import container_name

logger = logging.getLogger(__name__)


class DockerExtensionInstaller:
    """
    Installs, updates and controls extensions shipped as container images.

    Operations on the same name must not run concurrently; the state cache
    is not locked.
    """

    def __init__(
        self,
        settings: Optional[InstallerSettings] = None,
        gateway: Optional[DaemonGateway] = None,
        on_ready: Optional[Callable[[Dict[str, str]], None]] = None,
    ):
        """
        Connect to the daemon and discover existing installs.

        Args:
            settings: Daemon connection settings.
            gateway: Gateway to use instead of connecting with ``settings``.
            on_ready: Called with the discovered installs (name -> tag).

        Raises:
            DaemonUnavailable: The daemon could not be reached.
            UnsupportedHost: The daemon does not run on Linux.
        """
        self.settings = settings or InstallerSettings()
        self.gateway = gateway or DaemonGateway(self.settings)
        self.cache = StateCache(self.gateway)
        self.sequencer = InstallSequencer(self.gateway, self.cache, BindProvisioner(self.gateway))

        self.daemon_version: DaemonVersion = self.gateway.get_version()
        installs = self.cache.refresh()
        logger.info(f"Found {len(installs)} installed extension(s)")

        if on_ready:
            on_ready(installs)

    def get_status(self, name: Optional[str] = None) -> InstallStatus:
        """
        Get the status of an install, or the daemon version when ``name`` is None.
        """
        if name:
            return self.cache.status(container_name(name))
        return InstallStatus(state=GenericState.NOT_INSTALLED.value,
                             version=self.daemon_version.version)

    def get_name(self, image: ImageDescriptor) -> str:
        return container_name(image.repo)

    def get_install_options(self, image: Optional[ImageDescriptor]) -> Optional[InstallOptions]:
        return image.options if image else None

    def install(
        self,
        image: ImageDescriptor,
        bind_props: Optional[BindProperties] = None,
        options: Optional[InstallOptions] = None,
    ) -> Optional[str]:
        """
        Install the image variant matching the daemon's architecture.

        Args:
            image: Descriptor of the extension image.
            bind_props: Host location for the image's bind files.
            options: Environment and devices for the container.

        Returns:
            The installed tag.
        """
        return self.sequencer.install(image, self.daemon_version.arch, bind_props, options)

    def query_updates(self, name: Optional[str] = None) -> Dict[str, str]:
        """
        Installed tags, all of them or only the one of ``name``.
        """
        return self.cache.query_updates(container_name(name) if name else None)

    def update(self, name: str) -> Optional[str]:
        return self.sequencer.update(container_name(name))

    def uninstall(self, name: str) -> Dict[str, str]:
        return self.sequencer.uninstall(container_name(name))

    def start(self, name: str) -> Optional[str]:
        """
        Start a container and refresh its cached state.

        An explicit start lifts a previous terminate.

        Returns:
            The daemon state after starting.
        """
        name = container_name(name)
        self.gateway.start_container(name)
        self.cache.clear_terminated(name)
        return self._refresh_state(name)

    def stop(self, name: str) -> Optional[str]:
        """
        Stop a container and refresh its cached state.

        Returns:
            The daemon state after stopping.
        """
        name = container_name(name)
        self.gateway.stop_container(name)
        return self._refresh_state(name)

    def terminate(self, name: str) -> Optional[str]:
        """
        Stop a running container for good.

        Only acts when the cached state is 'running'. If the container exits,
        it is reported as 'terminated' until started, reinstalled or uninstalled.

        Returns:
            The reported state afterwards.
        """
        name = container_name(name)
        if self.cache.effective_state(name) == "running":
            if self.stop(name) == "exited":
                self.cache.mark_terminated(name)
                logger.info(f"Terminated {name}")
        return self.cache.effective_state(name)

    def _refresh_state(self, name: str) -> Optional[str]:
        try:
            info = self.gateway.inspect_container(name)
        except NotFound:
            logger.warning(f"Container {name} disappeared")
            return self.cache.raw_state(name)

        self.cache.set_raw_state(name, info["State"]["Status"])
        return self.cache.raw_state(name)
