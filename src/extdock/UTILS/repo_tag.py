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
Repository/tag splitting for image references such as 'acme/app:1.0'.
"""

from typing import Optional
from dataclasses import dataclass


@dataclass
class RepoTag:
    """
    Split image reference.

    Examples:
        - app -> repo='app'
        - acme/app:1.0 -> username='acme', repo='app', tag='1.0'

    The container created for an image is named after ``repo``.
    """

    full_repo: str
    repo: str
    username: Optional[str] = None
    tag: Optional[str] = None

    @classmethod
    def parse(cls, reference: str) -> "RepoTag":
        """
        Split a 'user/repo:tag' reference.

        Args:
            reference: Image reference string.

        Returns:
            Parsed RepoTag.
        """
        if not reference:
            raise ValueError("Empty image reference")

        fields = reference.split(":")
        full_repo = fields[0]
        tag = fields[1] if len(fields) > 1 else None

        parts = full_repo.split("/")
        if len(parts) > 1:
            username, repo = parts[0], parts[1]
        else:
            username, repo = None, parts[0]

        return cls(full_repo=full_repo, repo=repo, username=username, tag=tag)

    @staticmethod
    def join(repo: str, tag: str) -> str:
        return f"{repo}:{tag}"

    def __str__(self) -> str:
        if self.tag:
            return self.join(self.full_repo, self.tag)
        return self.full_repo


def container_name(reference: str) -> str:
    """Container name for an image reference or an already bare name."""
    return RepoTag.parse(reference).repo
