"""
MockHarbor Common Utilities

Shared value parsing and emptiness helpers used by the header and settings
managers.
"""

import json
from typing import Any, Optional, Union


def is_empty(value: Any) -> bool:
    """
    Check whether a value counts as "not given".

    None, empty strings and empty collections are all empty. Numbers and
    booleans never are, so a zero delay or a False flag survive.

    Example:
        is_empty('')      # True
        is_empty([])      # True
        is_empty(0)       # False
    """
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    return False


def not_any_empty(*values: Any) -> bool:
    """Return True only if none of the given values is empty."""
    return not any(is_empty(value) for value in values)


def to_text(value: Any) -> Optional[str]:
    """
    Convert a setting value into its persisted string form.

    Booleans are lower-cased to match the JSON spelling ("true"/"false").
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    return str(value)


def parse_bool(value: Optional[str], default: bool) -> bool:
    """
    Parse a boolean setting value.

    Only "true" and "false" (any case, surrounding whitespace ignored) are
    understood. Anything else yields the default.
    """
    if value is None:
        return default

    normalized = str(value).strip().lower()
    if normalized == 'true':
        return True
    if normalized == 'false':
        return False
    return default


def parse_int(value: Optional[str], default: int) -> int:
    """Parse an integer setting value, falling back to default on any error."""
    if value is None:
        return default

    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def safe_json_parse(json_string: Union[str, bytes], default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON text or raw request body to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        body = safe_json_parse(request_body, default={})
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default
