"""
MockHarbor Settings Manager

Holds user configured server behavior. These settings are not part of the
HTTP exchange itself; they describe simulated physical characteristics of a
remote server (latency, throughput, redirect handling) and name the
pluggable strategies to use.
"""

import random
import sys
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from ..common import not_any_empty, parse_bool, parse_int, to_text
from .registry import StrategyRegistry, default_registry
from .strategies import RequestFilter, ResponseFilter, TokenHelper, TransformationHelper

FOLLOW_REDIRECTS = "followRedirects"
FALLBACK_BASE_URL = "fallbackBaseUrl"
THROTTLE_BYTE_COUNT = "throttleByteCount"
THROTTLE_MIN_DELAY_MILLIS = "throttleMinDelayMillis"
THROTTLE_MAX_DELAY_MILLIS = "throttleMaxDelayMillis"
TOKEN_HELPER = "tokenHelper"
TRANSFORMATION_HELPER = "transformationHelper"
REQUEST_FILTER = "requestFilter"
RESPONSE_FILTER = "responseFilter"

UNBOUNDED_BYTE_COUNT = sys.maxsize

# Draws from the OS entropy pool; no generator state is shared between threads
_rng = random.SystemRandom()


class SettingsManager:
    """
    Ordered string-to-string settings store with typed accessors.

    Empty keys and values are never stored. Values given as other types are
    stored in their string form, so {"followRedirects": false} and
    {"followRedirects": "false"} mean the same thing.

    Example:
        settings = SettingsManager({'throttleMinDelayMillis': '100'})
        settings.set_if_absent('throttleMinDelayMillis', '5')  # ignored
        settings.throttle_delay_millis()                       # 100
    """

    def __init__(
        self,
        settings: Optional[Mapping[str, Any]] = None,
        registry: Optional[StrategyRegistry] = None
    ):
        self._settings: Dict[str, str] = {}
        self.registry = registry or default_registry
        if settings:
            self.set(settings)

    def set(self, key: Any, value: Any = None) -> None:
        """
        Store a setting, overwriting any existing value.

        Accepts either a key and a value, or a single mapping of settings.
        """
        if isinstance(key, Mapping):
            for entry_key, entry_value in key.items():
                self.set(entry_key, entry_value)
            return

        text = to_text(value)
        if not_any_empty(key, text):
            self._settings[key] = text

    def set_if_absent(self, key: Any, value: Any = None) -> None:
        """
        Store a setting only if no value exists for its key yet.

        Accepts either a key and a value, or a single mapping of settings.
        Used to layer defaults under explicit per-template overrides.
        """
        if isinstance(key, Mapping):
            for entry_key, entry_value in key.items():
                self.set_if_absent(entry_key, entry_value)
            return

        if key not in self._settings:
            self.set(key, value)

    def get(self, key: str) -> Optional[str]:
        return self._settings.get(key)

    def as_map(self) -> Mapping[str, str]:
        """Return an immutable snapshot of all settings."""
        return MappingProxyType(dict(self._settings))

    def entry_count(self) -> int:
        return len(self._settings)

    def copy(self) -> 'SettingsManager':
        return SettingsManager(self._settings, registry=self.registry)

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------

    def follow_redirects(self) -> bool:
        """Whether responses should follow redirects. Defaults to True."""
        return parse_bool(self.get(FOLLOW_REDIRECTS), True)

    def throttle_byte_count(self) -> int:
        """
        Number of response body bytes to send per throttled chunk.

        Unset, unparseable or non-positive values mean unbounded.
        """
        count = parse_int(self.get(THROTTLE_BYTE_COUNT), UNBOUNDED_BYTE_COUNT)
        return count if count > 0 else UNBOUNDED_BYTE_COUNT

    def throttle_min_delay_millis(self) -> int:
        return max(0, parse_int(self.get(THROTTLE_MIN_DELAY_MILLIS), 0))

    def throttle_max_delay_millis(self) -> int:
        return max(0, parse_int(self.get(THROTTLE_MAX_DELAY_MILLIS), 0))

    def throttle_delay_millis(self) -> int:
        """
        Return a random delay between the min and max throttle delays.

        A new value is drawn on every call, in [min, max) when max > min,
        otherwise the (non-negative) min delay is returned as is.
        """
        minimum = self.throttle_min_delay_millis()
        maximum = self.throttle_max_delay_millis()

        if maximum > minimum:
            return _rng.randrange(minimum, maximum)
        return minimum

    def fallback_base_url(self) -> Optional[str]:
        return self.get(FALLBACK_BASE_URL)

    # ------------------------------------------------------------------
    # Strategy accessors
    # ------------------------------------------------------------------

    def token_helper(self) -> Optional[TokenHelper]:
        return self.registry.resolve(TokenHelper, self.get(TOKEN_HELPER))

    def transformation_helper(self) -> Optional[TransformationHelper]:
        return self.registry.resolve(TransformationHelper, self.get(TRANSFORMATION_HELPER))

    def request_filter(self) -> Optional[RequestFilter]:
        return self.registry.resolve(RequestFilter, self.get(REQUEST_FILTER))

    def response_filter(self) -> Optional[ResponseFilter]:
        return self.registry.resolve(ResponseFilter, self.get(RESPONSE_FILTER))

    def __len__(self) -> int:
        return len(self._settings)

    def __bool__(self) -> bool:
        return bool(self._settings)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SettingsManager):
            return NotImplemented
        return list(self._settings.items()) == list(other._settings.items())

    def __repr__(self) -> str:
        return f"SettingsManager({self._settings!r})"
