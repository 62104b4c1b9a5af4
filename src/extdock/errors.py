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
Errors raised by the installer.

Daemon errors that have no dedicated class here (for example a failed
``remove``) are propagated as the ``docker.errors.APIError`` raised by the
SDK, and filesystem errors as the raw ``OSError``.
"""
from typing import Optional


class InstallerError(Exception):
    """Base class for all installer errors."""


class DaemonUnavailable(InstallerError):
    """The Docker daemon socket could not be reached."""

    def __init__(self, message: str = "Docker not found"):
        super().__init__(message)


class UnsupportedHost(InstallerError):
    """The daemon runs on an operating system we do not support."""

    def __init__(self, os_name: str):
        self.os_name = os_name
        super().__init__(f"Host OS not supported: {os_name}")


class NoArchitectureImage(InstallerError):
    """The image descriptor has no tag for the daemon's architecture."""

    def __init__(self, arch: Optional[str]):
        self.arch = arch
        super().__init__(f'No image available for "{arch}" architecture')


class NotFound(InstallerError):
    """A container or image does not exist on the daemon."""

    def __init__(self, name: str, kind: str = "container"):
        self.name = name
        self.kind = kind
        super().__init__(f"No such {kind}: {name}")


class PullFailed(InstallerError):
    """Pulling an image failed."""

    def __init__(self, repo_tag: str, reason: str):
        self.repo_tag = repo_tag
        self.reason = reason
        super().__init__(f"Pull of {repo_tag} failed: {reason}")


class CreateFailed(InstallerError):
    """Creating a container failed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Creating container {name} failed: {reason}")
