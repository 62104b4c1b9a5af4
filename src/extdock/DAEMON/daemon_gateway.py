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
Thin gateway to the Docker daemon's image and container API.
Every call is forwarded to the low-level ``docker.APIClient`` over the local
control socket; only the field renaming and error translation happen here.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import docker
from docker.errors import APIError, DockerException
from docker.errors import NotFound as DockerNotFound
from requests.exceptions import ConnectionError as RequestsConnectionError

from ..errors import CreateFailed, DaemonUnavailable, NotFound, PullFailed, UnsupportedHost
from ..MODELS.install_state import DaemonVersion
from ..settings import InstallerSettings
from ..UTILS.repo_tag import RepoTag

logger = logging.getLogger(__name__)


class DaemonGateway:
    """
    Forwards image and container operations to the Docker daemon.
    """

    def __init__(self, settings: Optional[InstallerSettings] = None,
                 client: Optional[docker.APIClient] = None):
        """
        Connect to the daemon.

        Args:
            settings: Connection settings. Defaults to the local socket.
            client: Pre-built API client, used instead of connecting.
        """
        self.settings = settings or InstallerSettings()

        if client is not None:
            self.client = client
        else:
            try:
                self.client = docker.APIClient(
                    base_url=self.settings.base_url,
                    version=self.settings.api_version,
                    timeout=self.settings.timeout,
                )
            except (DockerException, RequestsConnectionError) as e:
                logger.error(f"Cannot connect to Docker at {self.settings.base_url}: {e}")
                raise DaemonUnavailable() from e

    def get_version(self) -> DaemonVersion:
        """
        Fetch the engine version, OS and CPU architecture.

        Raises:
            DaemonUnavailable: The daemon did not answer.
            UnsupportedHost: The daemon runs on another OS than ``supported_os``.
        """
        try:
            info = self.client.version()
        except (DockerException, RequestsConnectionError) as e:
            raise DaemonUnavailable() from e

        if not info or not info.get("Version"):
            raise DaemonUnavailable()

        version = DaemonVersion.from_api(info)
        if version.os != self.settings.supported_os:
            raise UnsupportedHost(version.os)

        logger.info(f"Docker {version.version} ({version.os}/{version.arch})")
        return version

    def list_images(self, reference: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        List images, optionally restricted to a reference such as 'acme/app:1.0'.
        """
        filters = {"reference": [reference]} if reference else None
        return self.client.images(filters=filters)

    def list_containers(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        List all containers, stopped ones included.

        The daemon's name filter is a substring match; callers compare names
        exactly.
        """
        filters = {"name": [name]} if name else None
        return self.client.containers(all=True, filters=filters)

    def inspect_container(self, name: str) -> Dict[str, Any]:
        try:
            return self.client.inspect_container(name)
        except DockerNotFound as e:
            raise NotFound(name) from e

    def inspect_image(self, repo_tag: str) -> Dict[str, Any]:
        try:
            return self.client.inspect_image(repo_tag)
        except DockerNotFound as e:
            raise NotFound(repo_tag, kind="image") from e

    def pull_image(self, repo_tag: str,
                   progress: Optional[Callable[[Dict[str, Any]], None]] = None) -> None:
        """
        Pull an image and wait until the progress stream ends.

        Args:
            repo_tag: Image reference, e.g. 'acme/app:1.0'.
            progress: Called with every decoded progress message.

        Raises:
            PullFailed: The daemon refused the pull or reported an error.
        """
        ref = RepoTag.parse(repo_tag)
        logger.info(f"Pulling {repo_tag}")
        try:
            for message in self.client.pull(ref.full_repo, tag=ref.tag, stream=True, decode=True):
                if "error" in message:
                    raise PullFailed(repo_tag, message["error"])
                logger.debug(f"[{repo_tag}] {message.get('status', '')} {message.get('progress', '')}".rstrip())
                if progress:
                    progress(message)
        except APIError as e:
            raise PullFailed(repo_tag, e.explanation or str(e)) from e

    def create_container(self, config: Dict[str, Any], name: str) -> str:
        """
        Create a container from a raw container-create body.

        Returns:
            The new container id.
        """
        try:
            result = self.client.create_container_from_config(config, name=name)
        except APIError as e:
            raise CreateFailed(name, e.explanation or str(e)) from e

        for warning in result.get("Warnings") or []:
            logger.warning(f"[{name}] {warning}")
        logger.info(f"Created container {name} from {config.get('Image')}")
        return result.get("Id")

    def remove_container(self, name: str) -> None:
        try:
            self.client.remove_container(name)
        except DockerNotFound as e:
            raise NotFound(name) from e
        logger.info(f"Removed container {name}")

    def remove_image(self, repo_tag: str) -> None:
        try:
            self.client.remove_image(repo_tag)
        except DockerNotFound as e:
            raise NotFound(repo_tag, kind="image") from e
        logger.info(f"Removed image {repo_tag}")

    def start_container(self, name: str) -> None:
        try:
            self.client.start(name)
        except DockerNotFound as e:
            raise NotFound(name) from e
        logger.info(f"Started container {name}")

    def stop_container(self, name: str) -> None:
        try:
            self.client.stop(name)
        except DockerNotFound as e:
            raise NotFound(name) from e
        logger.info(f"Stopped container {name}")
