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
Parser for image descriptor manifests written in YAML or JSON.
"""
import os
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from ..MODELS.image_descriptor import ImageDescriptor
from ..UTILS.string_interpolation import interpolate


class DescriptorParser:
    """
    Loads ImageDescriptor manifests.

    Example manifest::

        repo: acme/app
        tags:
          amd64: "1.0"
          arm64: "1.0-arm64"
        binds:
          - /data/db
        config:
          Env: ["MODE=${MODE:-prod}"]
    """
    def __init__(self, context: Optional[Dict[str, str]] = None):
        """
        :param context: Variables for placeholder substitution, the process environment by default.
        """
        self.context = context if context is not None else dict(os.environ)

    def parse(self, manifest_path: str) -> ImageDescriptor:
        """
        Parses a manifest file.

        :param manifest_path: Path to the manifest.
        :return: The descriptor.
        """
        with open(manifest_path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> ImageDescriptor:
        """
        Parses manifest text.

        :raises ValueError: The manifest lacks 'repo' or 'tags' or is malformed.
        """
        try:
            data = yaml.safe_load(interpolate(content, self.context))
        except yaml.YAMLError as e:
            raise ValueError(f"Malformed descriptor manifest: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("Descriptor manifest must be a mapping")

        for key in ('repo', 'tags'):
            if not data.get(key):
                raise ValueError(f"Descriptor manifest is missing '{key}'")
        if not isinstance(data['tags'], dict):
            raise ValueError("Descriptor 'tags' must map architectures to tags")

        try:
            return ImageDescriptor.model_validate(self._normalize(data))
        except ValidationError as e:
            raise ValueError(f"Invalid descriptor manifest: {e}") from e

    @staticmethod
    def _normalize(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        YAML reads unquoted tags such as 1.0 as numbers; tags are strings.
        """
        data = dict(data)
        data['tags'] = {str(arch): str(tag) for arch, tag in data['tags'].items()}
        data['config'] = data.get('config') or {}
        data['binds'] = data.get('binds') or []
        return data
