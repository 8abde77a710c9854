"""
MockHarbor Common Utilities

Shared utilities and helpers used across MockHarbor modules.
"""

from .utils import is_empty, not_any_empty, to_text, parse_bool, parse_int, safe_json_parse
from .url_utils import URLMatcher

__all__ = [
    'is_empty',
    'not_any_empty',
    'to_text',
    'parse_bool',
    'parse_int',
    'safe_json_parse',
    'URLMatcher'
]
