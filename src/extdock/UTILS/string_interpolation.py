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
${VAR} placeholder substitution for descriptor manifests.
"""
import re
from typing import Dict

# ${VAR}, ${VAR:-default} or ${VAR:+value}
_PLACEHOLDER = re.compile(r'\$\{([^}:]+)(?::(-|\+)([^}]*))?\}')


def interpolate(template: str, context: Dict[str, str]) -> str:
    """
    Replaces placeholders in ``template`` with values from ``context``.

    :param template: Text containing placeholders.
    :param context: Variable values.
    :return: The substituted text.
    :raises KeyError: A plain ${VAR} has no value in ``context``.
    """
    def replace(match):
        var_name, modifier, alt_value = match.group(1), match.group(2), match.group(3)
        value = context.get(var_name)

        if modifier == '-':
            return value if value else alt_value
        if modifier == '+':
            return alt_value if value else ''
        if value is None:
            raise KeyError(f"Variable {var_name} not found in context")
        return value

    return _PLACEHOLDER.sub(replace, template)
