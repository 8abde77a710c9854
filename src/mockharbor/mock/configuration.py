"""
MockHarbor Configuration

The "mocked Internet": every request template the mock server will ever
serve, plus the default response headers and behavior settings applied when a
template doesn't override them.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .headers import HeaderManager
from .matcher import DefaultRequestFilter
from .settings import SettingsManager
from .strategies import RequestFilter, TokenHelper, TransformationHelper
from .templates import MockRequest, MockResponse

logger = logging.getLogger("mockharbor.configuration")


class Configuration:
    """
    Aggregate of request templates, default headers and default settings.

    The header and settings managers are never None; absence is an empty
    manager. Strategy instances (request filter, token and transformation
    helpers) are shared references and are not persisted by the codec.

    Build one with ConfigurationBuilder or load one with
    mockharbor.mock.codec.load_configuration().
    """

    def __init__(self):
        self._requests: List[MockRequest] = []
        self._headers = HeaderManager()
        self._settings = SettingsManager()
        self._fallback_base_url: Optional[str] = None
        self._request_filter: Optional[RequestFilter] = None
        self._token_helper: Optional[TokenHelper] = None
        self._transformation_helper: Optional[TransformationHelper] = None

    def requests(self) -> Tuple[MockRequest, ...]:
        """Return the templates in catalog order as an immutable tuple."""
        return tuple(self._requests)

    def fallback_base_url(self) -> Optional[str]:
        """
        The real world base URL to target when no template matches and
        falling back to real responses is enabled.

        Templates and the default settings may also carry a
        "fallbackBaseUrl" setting; see resolve_settings().
        """
        return self._fallback_base_url

    def default_headers(self) -> HeaderManager:
        """Return the default response header manager. Never None."""
        return self._headers

    def settings(self) -> SettingsManager:
        """Return the default behavior settings manager. Never None."""
        return self._settings

    def request_filter(self) -> Optional[RequestFilter]:
        """Return the request filter instance override, if any."""
        return self._request_filter

    def token_helper(self) -> Optional[TokenHelper]:
        """Return the token helper instance, or the one named in settings."""
        return self._token_helper or self._settings.token_helper()

    def transformation_helper(self) -> Optional[TransformationHelper]:
        """Return the transformation helper instance, or the one named in settings."""
        return self._transformation_helper or self._settings.transformation_helper()

    def find_template(
        self,
        method: str,
        url: str,
        headers: Optional[Mapping[str, Sequence[str]]] = None
    ) -> Optional[MockRequest]:
        """
        Find the template to serve for a request.

        The active request filter is resolved on every call: the instance
        override first, then the "requestFilter" setting, then the default
        filter. A filter swapped at runtime therefore applies immediately.

        Args:
            method: HTTP method
            url: Request URL
            headers: Request headers, name to list of values

        Returns:
            The matching MockRequest, or None if nothing matches
        """
        request_filter = (
            self._request_filter
            or self._settings.request_filter()
            or DefaultRequestFilter()
        )
        return request_filter.find_request(method, url, headers or {}, self.requests())

    def resolve_settings(
        self,
        request: Optional[MockRequest],
        response: Optional[MockResponse] = None
    ) -> SettingsManager:
        """
        Merge behavior settings for serving a response.

        Response settings win over template settings, which win over the
        configuration defaults. The managers involved are left untouched.
        """
        resolved = SettingsManager(registry=self._settings.registry)
        if response is not None:
            resolved.set(response.settings.as_map())
        if request is not None:
            resolved.set_if_absent(request.settings.as_map())
        resolved.set_if_absent(self._settings.as_map())
        return resolved

    def resolve_headers(self, response: Optional[MockResponse]) -> HeaderManager:
        """
        Merge response headers with the default response headers.

        A default header is only applied when the response doesn't define
        any value for the same (case-insensitive) name.
        """
        resolved = response.headers.copy() if response is not None else HeaderManager()
        for key, values in self._headers.as_map().items():
            if not resolved.contains(key):
                resolved.add(key, list(values))
        return resolved

    # Engine-internal mutation

    def add_request(self, request: MockRequest) -> None:
        """Add a template at runtime. None and already added templates are ignored."""
        if request is None:
            return
        if not any(existing is request for existing in self._requests):
            self._requests.append(request)
            logger.debug(f"Added template: {request.method} {request.url}")

    def set_request_filter(self, request_filter: Optional[RequestFilter]) -> None:
        """Forcefully override the request filter of this configuration."""
        self._request_filter = request_filter

    def __repr__(self) -> str:
        return (
            f"Configuration(requests={len(self._requests)}, "
            f"fallback_base_url={self._fallback_base_url!r})"
        )


class ConfigurationBuilder:
    """
    Builds a Configuration from code, as opposed to loading one from a file.

    Example:
        configuration = (ConfigurationBuilder()
                         .add_request(template)
                         .add_default_response_header('Server', 'mockharbor')
                         .add_default_response_setting('throttleMaxDelayMillis', 200)
                         .set_fallback_base_url('https://api.example.com')
                         .build())
    """

    def __init__(self, source: Optional[Configuration] = None):
        self._configuration = source if source is not None else Configuration()

    def add_request(self, request: MockRequest) -> 'ConfigurationBuilder':
        self._configuration.add_request(request)
        return self

    def set_default_response_header_manager(self, headers: Optional[HeaderManager]) -> 'ConfigurationBuilder':
        self._configuration._headers = headers if headers is not None else HeaderManager()
        return self

    def set_default_response_settings_manager(self, settings: Optional[SettingsManager]) -> 'ConfigurationBuilder':
        self._configuration._settings = settings if settings is not None else SettingsManager()
        return self

    def set_default_response_header(self, key: str, value: str) -> 'ConfigurationBuilder':
        """Set a default response header, replacing existing values for the key."""
        self._configuration._headers.set(key, value)
        return self

    def add_default_response_header(self, key: str, value: str) -> 'ConfigurationBuilder':
        self._configuration._headers.add(key, value)
        return self

    def add_default_response_headers(
        self,
        key_or_headers: Union[str, Mapping[str, Iterable[str]]],
        *values: Union[str, Iterable[str]]
    ) -> 'ConfigurationBuilder':
        """
        Add several default response headers.

        Either a key followed by values (or a single list of values), or one
        mapping of keys to value lists.
        """
        if isinstance(key_or_headers, Mapping):
            self._configuration._headers.add_all(key_or_headers)
            return self

        for value in values:
            self._configuration._headers.add(key_or_headers, value)
        return self

    def add_default_response_setting(self, key: str, value: Any) -> 'ConfigurationBuilder':
        self._configuration._settings.set(key, value)
        return self

    def add_default_response_settings(self, settings: Dict[str, Any]) -> 'ConfigurationBuilder':
        self._configuration._settings.set(settings or {})
        return self

    def set_fallback_base_url(self, base_url: Optional[str]) -> 'ConfigurationBuilder':
        self._configuration._fallback_base_url = base_url or None
        return self

    def set_request_filter(self, request_filter: Optional[RequestFilter]) -> 'ConfigurationBuilder':
        self._configuration._request_filter = request_filter
        return self

    def set_token_helper(self, token_helper: Optional[TokenHelper]) -> 'ConfigurationBuilder':
        self._configuration._token_helper = token_helper
        return self

    def set_transformation_helper(self, helper: Optional[TransformationHelper]) -> 'ConfigurationBuilder':
        self._configuration._transformation_helper = helper
        return self

    def build(self) -> Configuration:
        return self._configuration
