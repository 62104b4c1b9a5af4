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
Install, update and uninstall sequencing for extension containers.
"""
import copy
import logging
from typing import Any, Dict, Optional

from ..errors import NoArchitectureImage
from ..MODELS.image_descriptor import BindProperties, ImageDescriptor, InstallOptions
from ..UTILS.repo_tag import RepoTag, container_name
from .bind_provisioner import BindProvisioner
from .state_cache import StateCache

logger = logging.getLogger(__name__)


class InstallSequencer:
    """
    Turns an image descriptor into a container on the daemon.

    Each step waits for the previous one; a failing step aborts the
    operation and nothing already done is rolled back.
    """
    def __init__(self, gateway, cache: StateCache, provisioner: Optional[BindProvisioner] = None):
        """
        Initializes the sequencer.

        :param gateway: Daemon gateway.
        :param cache: State cache refreshed after every change.
        :param provisioner: Bind provisioner, created from the gateway by default.
        """
        self.gateway = gateway
        self.cache = cache
        self.provisioner = provisioner or BindProvisioner(gateway)

    def install(self,
                image: ImageDescriptor,
                arch: str,
                bind_props: Optional[BindProperties] = None,
                options: Optional[InstallOptions] = None) -> Optional[str]:
        """
        Installs the image variant for ``arch``.

        :param image: Descriptor of the extension image.
        :param arch: CPU architecture reported by the daemon.
        :param bind_props: Host location for the image's binds.
        :param options: Environment and devices to add to the container.
        :return: The installed tag.
        :raises NoArchitectureImage: The image has no tag for ``arch``.
        :raises OSError: A bind directory or file could not be created.
        """
        tag = image.tags.get(arch) if arch else None
        if not tag:
            raise NoArchitectureImage(arch)

        repo_tag = RepoTag.join(image.repo, tag)
        config = copy.deepcopy(image.config)

        if options:
            self.merge_options(config, options)

        if image.binds and bind_props:
            volume = self.provisioner.resolve_volume(bind_props.name, bind_props.root)
            bind_props = bind_props.model_copy(update={"volume": volume})

            added = self.provisioner.provision(config, bind_props, image.binds)
            if volume and added:
                self.provisioner.mount_volume(config, bind_props)

        logger.debug(f"Container config for {repo_tag}: {config}")
        return self.install_image(repo_tag, config)

    @staticmethod
    def merge_options(config: Dict[str, Any], options: InstallOptions) -> None:
        """
        Adds option environment variables and devices to ``config``.
        """
        if options.env:
            env = config.setdefault("Env", [])
            for name, value in options.env.items():
                env.append(f"{name}={value}")

        if options.devices:
            devices = config.setdefault("HostConfig", {}).setdefault("Devices", [])
            for device in options.devices:
                devices.append({
                    "PathOnHost": device,
                    "PathInContainer": device,
                    "CgroupPermissions": "rwm",
                })

    def install_image(self, repo_tag: str, config: Dict[str, Any]) -> Optional[str]:
        """
        Pulls ``repo_tag`` and creates its container.

        :return: The tag now installed for the image.
        :raises PullFailed: The pull failed.
        :raises CreateFailed: The container could not be created.
        """
        self.gateway.pull_image(repo_tag)

        name = container_name(repo_tag)
        config["Image"] = repo_tag
        self.gateway.create_container(config, name)

        self.cache.clear_terminated(name)
        return self.cache.refresh(repo_tag)

    def update(self, name: str) -> Optional[str]:
        """
        Re-pulls the image of container ``name`` and recreates the container
        with the same configuration.

        :raises NotFound: The container does not exist.
        """
        info = self.gateway.inspect_container(name)
        image_name = info["Config"]["Image"]
        config = dict(info["Config"])
        config["HostConfig"] = info.get("HostConfig") or {}

        self.gateway.remove_container(name)
        return self.install_image(image_name, config)

    def uninstall(self, name: str) -> Dict[str, str]:
        """
        Removes container ``name`` and its image.

        :return: The remaining installs.
        :raises NotFound: The container does not exist.
        """
        info = self.gateway.inspect_container(name)
        image_name = info["Config"]["Image"]

        self.gateway.remove_container(name)
        self.gateway.remove_image(image_name)

        self.cache.forget(name)
        return self.cache.refresh()
