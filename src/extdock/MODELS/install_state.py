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
Models for install and container state as reported to the plugin host.
"""
from typing import Optional
from dataclasses import dataclass
from enum import Enum
from pydantic import BaseModel


class GenericState(str, Enum):
    """
    Daemon independent lifecycle vocabulary.
    """
    NOT_INSTALLED = "not_installed"
    INSTALLED = "installed"
    STOPPED = "stopped"
    RUNNING = "running"
    TERMINATED = "terminated"


# Raw daemon states folded into the generic stopped state
STOPPED_RAW_STATES = ("created", "exited")


@dataclass
class ContainerState:
    """
    Last known daemon state of a container plus the sticky terminated overlay.

    Once ``terminated`` is set, daemon refreshes only update ``raw_state``;
    the reported state stays ``terminated`` until the overlay is cleared by
    an explicit start, a reinstall or an uninstall.
    """
    raw_state: Optional[str] = None
    terminated: bool = False

    @property
    def effective(self) -> Optional[str]:
        if self.terminated:
            return GenericState.TERMINATED.value
        return self.raw_state


class DaemonVersion(BaseModel):
    """
    Version information of the connected Docker engine.
    """
    version: str
    os: str
    arch: str

    @classmethod
    def from_api(cls, info: dict) -> "DaemonVersion":
        return cls(version=info.get("Version", ""),
                   os=info.get("Os", ""),
                   arch=info.get("Arch", ""))


class InstallStatus(BaseModel):
    """
    Status of a single install, or of the daemon when no name is given.
    """
    state: Optional[str] = None
    version: Optional[str] = None
    tag: Optional[str] = None
    logging: Optional[str] = None
