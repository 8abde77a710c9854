"""
MockHarbor Strategy Contracts

Abstract base classes for the pluggable pieces a configuration can name:
request filters, response filters, token helpers and transformation helpers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from .templates import MockRequest, MockResponse


class RequestFilter(ABC):
    """
    Picks at most one request template for an incoming request.

    Returning None means "no template applies"; it is an expected outcome
    and must not be signalled with an exception.
    """

    @abstractmethod
    def find_request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, Sequence[str]],
        requests: Sequence[MockRequest]
    ) -> Optional[MockRequest]:
        """Return the template to serve, or None."""


class ResponseFilter(ABC):
    """Picks which of a template's candidate responses to serve."""

    @abstractmethod
    def find_response(
        self,
        request: MockRequest,
        responses: Sequence[MockResponse]
    ) -> Optional[MockResponse]:
        """Return the response to serve, or None if there are no candidates."""


class TokenHelper(ABC):
    """Substitutes request-derived tokens into response text."""

    @abstractmethod
    def substitute(
        self,
        text: str,
        method: str,
        url: str,
        headers: Mapping[str, List[str]]
    ) -> str:
        """Return text with any tokens replaced."""


class TransformationHelper(ABC):
    """
    Turns a template recorded from a real server response into the shape it
    should have inside the mock context (host rewrites, header scrubbing...).
    """

    @abstractmethod
    def transform(self, request: MockRequest) -> Optional[MockRequest]:
        """Return the template to keep, or None to discard it."""


STRATEGY_LABELS: Dict[type, str] = {
    RequestFilter: 'request filter',
    ResponseFilter: 'response filter',
    TokenHelper: 'token helper',
    TransformationHelper: 'transformation helper',
}
