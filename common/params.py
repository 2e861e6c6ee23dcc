"""
Lenient parsing for paging query parameters.

``limit`` and ``page`` arrive as raw strings so that a malformed value
falls back to the default instead of failing request validation.
"""

from typing import Any, Optional


def parse_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    """
    Parse an integer query value.

    Examples:
        parse_int('25') -> 25
        parse_int('abc', 20) -> 20
        parse_int(None, 1) -> 1
        parse_int('12.5', 20) -> 20
    """
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return default
