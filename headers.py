"""
Header merging for outbound GraphQL requests
"""

import json
from typing import Optional, Union

HeaderOverride = Union[str, dict[str, str], None]


class HeaderParseError(ValueError):
    """Raised when caller-supplied headers are not a JSON object"""


def parse_header_override(override: HeaderOverride) -> dict[str, str]:
    """Parse per-call headers given either as a mapping or as a JSON string"""
    if override is None:
        return {}

    if isinstance(override, str):
        try:
            parsed = json.loads(override)
        except json.JSONDecodeError as e:
            raise HeaderParseError(f"Invalid headers JSON: {e}") from e
    else:
        parsed = override

    if not isinstance(parsed, dict):
        raise HeaderParseError(f"Invalid headers JSON: expected an object, got {type(parsed).__name__}")

    headers = {str(key): str(value) for key, value in parsed.items()}
    for key, value in headers.items():
        if any(char in key or char in value for char in "\r\n\0"):
            raise HeaderParseError(f"Invalid headers JSON: header {key!r} contains a control character")
    return headers


def merge_headers(
    configured: dict[str, str],
    override: HeaderOverride = None,
    bearer: Optional[str] = None,
) -> dict[str, str]:
    """
    Merge header sources into one mapping.

    Precedence, lowest to highest: configured headers, the per-call override,
    then the bearer token. Keys are kept exactly as given.

    Raises:
        HeaderParseError: If a string override is not a JSON object
    """
    merged = dict(configured)
    merged.update(parse_header_override(override))
    if bearer:
        merged["Authorization"] = f"Bearer {bearer}"
    return merged
