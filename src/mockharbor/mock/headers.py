"""
MockHarbor Header Manager

Ordered, multi-valued store for HTTP headers of request and response
templates and of the configuration-wide default response headers.
"""

from collections import abc
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..common import is_empty, not_any_empty, to_text


class HeaderManager:
    """
    Ordered mapping of header name to an ordered list of values.

    Names keep the case they were given with. A name is never stored with an
    empty value list, and empty names or values are dropped on insert. The
    manager is not thread-safe; callers sharing one must serialize access.

    Example:
        headers = HeaderManager()
        headers.add('Set-Cookie', ['a=1', 'b=2'])
        headers.set('Content-Type', 'application/json')
        headers.as_map()
        # {'Set-Cookie': ('a=1', 'b=2'), 'Content-Type': ('application/json',)}
    """

    def __init__(self, headers: Optional[Mapping[str, Union[str, Iterable[str]]]] = None):
        self._headers: Dict[str, List[str]] = {}
        self.add_all(headers)

    def set(self, key: str, value: str) -> None:
        """Replace all values for key with the single given value."""
        text = to_text(value)
        if not_any_empty(key, text):
            self._headers[key] = [text]

    def add(self, key: str, value: Union[str, Iterable[str], None]) -> None:
        """
        Append one value, or each non-empty value of a list, to key.

        Args:
            key: Header name
            value: A single value or an iterable of values
        """
        if is_empty(key) or value is None:
            return

        if isinstance(value, str) or not isinstance(value, abc.Iterable):
            value = [value]
        values = [to_text(v) for v in value if not is_empty(v)]
        if not values:
            return

        self._headers.setdefault(key, []).extend(values)

    def add_all(self, headers: Optional[Mapping[str, Union[str, Iterable[str]]]]) -> None:
        """Add every entry of a name-to-value(s) mapping."""
        if is_empty(headers):
            return

        for key, values in headers.items():
            self.add(key, values)

    def get(self, key: str) -> Optional[str]:
        """Return the first value for key (case-insensitive), or None."""
        values = self.get_all(key)
        return values[0] if values else None

    def get_all(self, key: str) -> List[str]:
        """Return all values for key (case-insensitive) in insertion order."""
        if is_empty(key):
            return []

        wanted = key.lower()
        found: List[str] = []
        for name, values in self._headers.items():
            if name.lower() == wanted:
                found.extend(values)
        return found

    def contains(self, key: str, value: Optional[str] = None) -> bool:
        """
        Check for a header, optionally with a specific value.

        Names compare case-insensitively, values exactly.
        """
        values = self.get_all(key)
        if not values:
            return False
        return value is None or value in values

    def keys(self) -> List[str]:
        return list(self._headers.keys())

    def key_count(self) -> int:
        return len(self._headers)

    def items(self) -> List[Tuple[str, str]]:
        """Flatten into (name, value) pairs, one per value."""
        return [(key, value) for key, values in self._headers.items() for value in values]

    def as_map(self) -> Mapping[str, Tuple[str, ...]]:
        """Return an immutable snapshot of all headers."""
        return MappingProxyType({key: tuple(values) for key, values in self._headers.items()})

    def copy(self) -> 'HeaderManager':
        clone = HeaderManager()
        clone.add_all(self._headers)
        return clone

    def __len__(self) -> int:
        return len(self._headers)

    def __bool__(self) -> bool:
        return bool(self._headers)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderManager):
            return NotImplemented
        return list(self._headers.items()) == list(other._headers.items())

    def __repr__(self) -> str:
        return f"HeaderManager({self._headers!r})"
