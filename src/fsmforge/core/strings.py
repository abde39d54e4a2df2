"""
String utility functions for fsmforge.

Provides the identifier case conversions used when naming generated code.
"""

from __future__ import annotations

import re

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z\d])([A-Z])")


def to_snake_case(name: str) -> str:
    """
    Convert a PascalCase or camelCase identifier to snake_case.

    Args:
        name: Identifier to convert

    Returns:
        snake_case form of the identifier

    Examples:
        >>> to_snake_case("PassCar")
        'pass_car'
        >>> to_snake_case("HTTPRequest")
        'http_request'
        >>> to_snake_case("HasHostAndLength")
        'has_host_and_length'
        >>> to_snake_case("Msg1")
        'msg1'
    """
    leading = len(name) - len(name.lstrip("_"))
    core = name[leading:]
    core = _ACRONYM_BOUNDARY.sub(r"\1_\2", core)
    core = _WORD_BOUNDARY.sub(r"\1_\2", core)
    return "_" * leading + core.replace("-", "_").lower()
