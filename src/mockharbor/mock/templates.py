"""
MockHarbor Request Templates

A MockRequest describes which incoming requests it accepts (method, URL
expression, required headers) and owns one or more candidate MockResponses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, Dict, List, Optional, Tuple

from .headers import HeaderManager
from .matcher import DefaultResponseFilter
from .settings import RESPONSE_FILTER, SettingsManager
from .strategies import ResponseFilter


def reason_phrase(code: int) -> str:
    """Return the standard reason phrase for a status code, or ''."""
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ''


@dataclass(eq=False)
class MockResponse:
    """A mocked response: status line, headers, body and behavior settings."""

    code: int = 200
    phrase: Optional[str] = None
    headers: HeaderManager = field(default_factory=HeaderManager)
    text: Optional[str] = None
    source: Optional[str] = None
    settings: SettingsManager = field(default_factory=SettingsManager)

    def __post_init__(self):
        if not self.phrase:
            self.phrase = reason_phrase(self.code)

    def body(self) -> bytes:
        """Return the inline body text encoded as UTF-8 (empty if unset)."""
        return (self.text or '').encode('utf-8')

    def is_redirect(self) -> bool:
        return 300 <= self.code < 400 and self.headers.contains('Location')


@dataclass(eq=False)
class MockRequest:
    """
    A request template.

    Equality is identity: two templates with the same content are still two
    catalog entries.
    """

    method: str = 'GET'
    url: str = '/'
    headers: HeaderManager = field(default_factory=HeaderManager)
    settings: SettingsManager = field(default_factory=SettingsManager)
    responses: List[MockResponse] = field(default_factory=list)
    response_filter: Optional[ResponseFilter] = None
    _resolved_filter: Optional[Tuple[str, ResponseFilter]] = field(default=None, init=False, repr=False)

    def find_response(self) -> Optional[MockResponse]:
        """
        Pick the response to serve for this template.

        The response filter is, in order of preference, the instance set on
        the template, the one named by the "responseFilter" setting, or the
        default first-response filter. A filter resolved from settings is
        kept for as long as the setting is unchanged, so stateful filters
        (like "sequential") keep their position between calls.
        """
        return self._active_response_filter().find_response(self, self.responses)

    def _active_response_filter(self) -> ResponseFilter:
        if self.response_filter is not None:
            return self.response_filter

        reference = self.settings.get(RESPONSE_FILTER)
        if reference:
            if self._resolved_filter is not None and self._resolved_filter[0] == reference:
                return self._resolved_filter[1]

            resolved = self.settings.response_filter()
            if resolved is not None:
                self._resolved_filter = (reference, resolved)
                return resolved

        return DefaultResponseFilter()


class MockResponseBuilder:
    """
    Stepwise construction of a MockResponse.

    Example:
        response = (MockResponseBuilder()
                    .set_status(201)
                    .add_header('Content-Type', 'application/json')
                    .set_body('{"id": 1}')
                    .build())
    """

    def __init__(self):
        self._response = MockResponse()

    def set_status(self, code: int, phrase: Optional[str] = None) -> 'MockResponseBuilder':
        self._response.code = code
        self._response.phrase = phrase or reason_phrase(code)
        return self

    def add_header(self, key: str, value: str) -> 'MockResponseBuilder':
        self._response.headers.add(key, value)
        return self

    def add_headers(self, headers: Dict[str, Any]) -> 'MockResponseBuilder':
        self._response.headers.add_all(headers)
        return self

    def set_body(self, text: str) -> 'MockResponseBuilder':
        self._response.text = text
        return self

    def set_source(self, source: str) -> 'MockResponseBuilder':
        self._response.source = source
        return self

    def add_setting(self, key: str, value: Any) -> 'MockResponseBuilder':
        self._response.settings.set(key, value)
        return self

    def build(self) -> MockResponse:
        return self._response


class MockRequestBuilder:
    """Stepwise construction of a MockRequest."""

    def __init__(self, method: str = 'GET', url: str = '/'):
        self._request = MockRequest(method=method, url=url)

    def set_method(self, method: str) -> 'MockRequestBuilder':
        self._request.method = method
        return self

    def set_url(self, url: str) -> 'MockRequestBuilder':
        self._request.url = url
        return self

    def add_header(self, key: str, value: str) -> 'MockRequestBuilder':
        self._request.headers.add(key, value)
        return self

    def add_headers(self, headers: Dict[str, Any]) -> 'MockRequestBuilder':
        self._request.headers.add_all(headers)
        return self

    def add_setting(self, key: str, value: Any) -> 'MockRequestBuilder':
        self._request.settings.set(key, value)
        return self

    def add_response(self, response: MockResponse) -> 'MockRequestBuilder':
        if response is not None and not any(r is response for r in self._request.responses):
            self._request.responses.append(response)
        return self

    def set_response_filter(self, response_filter: Optional[ResponseFilter]) -> 'MockRequestBuilder':
        self._request.response_filter = response_filter
        return self

    def build(self) -> MockRequest:
        return self._request
