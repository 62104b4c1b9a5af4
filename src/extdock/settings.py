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
Runtime settings for the installer.
"""
from typing import Union
from pydantic import BaseModel


class InstallerSettings(BaseModel):
    """
    Connection settings for the Docker daemon.
    """
    base_url: str = "unix:///var/run/docker.sock"
    api_version: str = "auto"
    timeout: Union[int, float] = 60
    supported_os: str = "linux"
