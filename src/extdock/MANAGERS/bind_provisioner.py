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
Provisioning of host-backed bind files for extension containers.
"""
import logging
import os
from typing import Any, Dict, List, Optional

from docker.errors import APIError

from ..errors import NotFound
from ..MODELS.image_descriptor import BindProperties, ResolvedVolume

logger = logging.getLogger(__name__)


class BindProvisioner:
    """
    Creates the host directory and placeholder file behind every declared
    bind, and adds the matching mounts to a container configuration.
    """
    def __init__(self, gateway):
        """
        Initializes the provisioner.

        :param gateway: Daemon gateway used to look up reusable volumes.
        """
        self.gateway = gateway

    def resolve_volume(self, name: Optional[str], destination: str) -> Optional[ResolvedVolume]:
        """
        Finds a volume of container ``name`` mounted at (part of) ``destination``.

        :param name: Sibling container to inspect.
        :param destination: The bind root.
        :return: The volume, or None when the container or mount does not exist.
        """
        if not name:
            return None

        try:
            info = self.gateway.inspect_container(name)
        except NotFound:
            logger.warning(f"No container {name} to reuse a volume from")
            return None
        except APIError as e:
            logger.warning(f"Cannot inspect container {name} for a volume: {e}")
            return None

        for mount in info.get("Mounts") or []:
            mount_destination = mount.get("Destination")
            if mount_destination and mount_destination in destination:
                volume = ResolvedVolume(source=mount.get("Source", "") + "/",
                                        name=mount.get("Name") or "")
                logger.info(f"Reusing volume {volume.name} from container {name}")
                return volume
        return None

    def provision(self, config: Dict[str, Any], bind_props: BindProperties, binds: List[str]) -> int:
        """
        Ensures every absolute bind has a host directory and file, and adds
        its mount to ``config``.

        Binds are processed from the last declared to the first. Relative
        binds are skipped. Existing files are left untouched.

        :param config: Container-create body, updated in place.
        :param bind_props: Host location of the bind files.
        :param binds: Container paths declared by the image.
        :return: Number of bind mounts added.
        :raises OSError: A directory or file could not be created.
        """
        volumes = config.setdefault("Volumes", {})
        host_binds = config.setdefault("HostConfig", {}).setdefault("Binds", [])

        added = 0
        for bind in reversed(binds):
            if not bind.startswith("/"):
                continue

            host_dir = bind_props.host_prefix + bind[:bind.rfind("/")]
            host_file = bind_props.host_prefix + bind
            if bind_props.volume:
                source = bind_props.volume.source + bind_props.binds_path + bind
            else:
                source = host_file

            if host_dir:
                os.makedirs(host_dir, exist_ok=True)

            volumes[bind] = {}
            host_binds.append(f"{source}:{bind}")
            added += 1

            self.ensure_file(host_file)

        return added

    @staticmethod
    def ensure_file(path: str) -> bool:
        """
        Creates an empty file at ``path`` unless one already exists.

        :return: True if the file was created.
        """
        try:
            with open(path, "r"):
                pass
        except FileNotFoundError:
            with open(path, "w"):
                pass
            logger.debug(f"Created bind file {path}")
            return True
        return False

    def mount_volume(self, config: Dict[str, Any], bind_props: BindProperties) -> None:
        """
        Mounts the reused volume read-only at the bind root.
        """
        volume = bind_props.volume
        config.setdefault("Volumes", {})[bind_props.root] = {}
        config.setdefault("HostConfig", {}).setdefault("Binds", []).append(
            f"{volume.name}:{bind_props.root}:ro")
