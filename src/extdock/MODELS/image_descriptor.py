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
Models describing an installable extension image and how to install it.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel


class InstallOptions(BaseModel):
    """
    Install-time options merged into the container configuration.
    """
    env: Dict[str, str] = {}
    devices: List[str] = []


class ImageDescriptor(BaseModel):
    """
    Package manifest of an extension shipped as a container image.

    ``config`` is a raw Docker Engine container-create body (``Env``,
    ``HostConfig``, ``Volumes``, ...). ``binds`` lists container paths that
    need a host-backed file, provisioned on install.
    """
    repo: str
    tags: Dict[str, str]
    config: Dict[str, Any] = {}
    binds: List[str] = []
    options: Optional[InstallOptions] = None


class ResolvedVolume(BaseModel):
    """
    A named volume found on a sibling container, reused across reinstalls.
    """
    source: str
    name: str


class BindProperties(BaseModel):
    """
    Where bind files are provisioned on the host.

    Host paths are ``root + binds_path + bind``. ``name`` is the container
    inspected for a volume to reuse; ``volume`` is filled in during install.
    """
    root: str
    binds_path: str = ""
    name: Optional[str] = None
    volume: Optional[ResolvedVolume] = None

    @property
    def host_prefix(self) -> str:
        return self.root + self.binds_path
