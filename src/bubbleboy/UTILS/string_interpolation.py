"""
Utilities for expanding environment variables in configuration text.
"""
import re
from typing import Dict

# $$ escape, ${VAR}, ${VAR:-default}, ${VAR:+value}
_PATTERN = re.compile(r'\$\$|\$\{([A-Za-z_][A-Za-z0-9_]*)(?::(-|\+)([^}]*))?\}')


class EnvironmentInterpolator:
    """
    Expands ``${VAR}`` references so config files can pull secrets such as
    database passwords from the host environment instead of hard-coding them.
    """
    @staticmethod
    def interpolate(template: str, context: Dict[str, str]) -> str:
        """
        Interpolates environment variables in the template string.

        ``${VAR:-default}`` falls back when VAR is unset or empty,
        ``${VAR:+value}`` yields value only when VAR is set and non-empty,
        and ``$$`` produces a literal ``$``.

        :param template: The string containing ${VAR} placeholders.
        :param context: The environment variables context.
        :return: The interpolated string.
        :raises KeyError: If a bare ``${VAR}`` names an unset variable.
        """
        def replace(match):
            if match.group(0) == "$$":
                return "$"

            var_name, modifier, alt_value = match.group(1), match.group(2), match.group(3)
            value = context.get(var_name)

            if modifier == '-':
                return value if value else alt_value
            if modifier == '+':
                return alt_value if value else ''
            if value is None:
                raise KeyError(var_name)
            return value

        return _PATTERN.sub(replace, template)
