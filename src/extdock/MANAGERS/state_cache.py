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
Install record and container state cache, reconciled against the daemon.
"""
import logging
from typing import Dict, Optional

from ..MODELS.install_state import (
    ContainerState, GenericState, InstallStatus, STOPPED_RAW_STATES,
)
from ..UTILS.repo_tag import RepoTag

logger = logging.getLogger(__name__)


class StateCache:
    """
    Tracks which extensions are installed (name -> tag) and the last known
    state of their containers (name -> ContainerState).

    The cache is owned by one installer instance and is rebuilt from the
    daemon on every refresh; nothing is persisted.
    """
    def __init__(self, gateway):
        """
        :param gateway: Daemon gateway queried on refresh.
        """
        self.gateway = gateway
        self.installed: Dict[str, str] = {}
        self.states: Dict[str, ContainerState] = {}

    def refresh(self, repo_tag: Optional[str] = None):
        """
        Reconciles the cache with the daemon's images and containers.

        An extension counts as installed when an image repo and a container
        share its name. Without ``repo_tag`` the install record is replaced;
        with it only that image's entry is updated.

        :param repo_tag: Restrict the query to this image reference.
        :return: The tag installed for ``repo_tag``, or all installs.
        """
        name_filter = RepoTag.parse(repo_tag).repo if repo_tag else None
        images = self.gateway.list_images(repo_tag)
        containers = self.gateway.list_containers(name_filter)

        installs: Dict[str, str] = {}
        for image in images:
            for image_repo_tag in image.get("RepoTags") or []:
                fields = RepoTag.parse(image_repo_tag)
                for container in containers:
                    names = container.get("Names") or [""]
                    if names[0].replace("/", "", 1) != fields.repo:
                        continue
                    installs[fields.repo] = fields.tag
                    self.set_raw_state(fields.repo, (container.get("State") or "").lower())

        if repo_tag:
            tag = installs.get(name_filter)
            if tag is None:
                self.installed.pop(name_filter, None)
            else:
                self.installed[name_filter] = tag
            return tag

        self.installed = installs
        logger.debug(f"Installed extensions: {installs}")
        return dict(self.installed)

    def set_raw_state(self, name: str, raw_state: Optional[str]) -> None:
        """Records a daemon state; a terminated overlay is kept."""
        self.states.setdefault(name, ContainerState()).raw_state = raw_state

    def mark_terminated(self, name: str) -> None:
        self.states.setdefault(name, ContainerState()).terminated = True

    def clear_terminated(self, name: str) -> None:
        state = self.states.get(name)
        if state:
            state.terminated = False

    def forget(self, name: str) -> None:
        self.installed.pop(name, None)
        self.states.pop(name, None)

    def raw_state(self, name: str) -> Optional[str]:
        state = self.states.get(name)
        return state.raw_state if state else None

    def effective_state(self, name: str) -> Optional[str]:
        state = self.states.get(name)
        return state.effective if state else None

    def status(self, name: str) -> InstallStatus:
        """
        Generic status of an install.

        'created' and 'exited' are reported as 'stopped'; an install with no
        known container state is reported as 'installed'.
        """
        tag = self.installed.get(name)
        if not tag:
            return InstallStatus(state=GenericState.NOT_INSTALLED.value)

        state = self.effective_state(name)
        if state in STOPPED_RAW_STATES:
            state = GenericState.STOPPED.value
        elif not state:
            state = GenericState.INSTALLED.value

        return InstallStatus(state=state, version=tag, tag=tag)

    def query_updates(self, name: Optional[str] = None) -> Dict[str, str]:
        if name is None:
            return dict(self.installed)
        return {name: self.installed[name]} if name in self.installed else {}
