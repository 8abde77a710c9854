"""
MockHarbor Request Matcher

Built-in request and response filters.

The default request filter scans the catalog in order and picks the first
template whose method, URL expression and required headers all accept the
incoming request. When several templates qualify, the one requiring the most
headers wins; equally specific templates fall back to catalog order.
"""

from __future__ import annotations

import random
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Sequence

from ..common import URLMatcher
from .strategies import RequestFilter, ResponseFilter

if TYPE_CHECKING:
    from .templates import MockRequest, MockResponse


@dataclass
class MatchScore:
    """Outcome of checking one template against a request."""

    method_match: bool = False
    url_match: bool = False
    headers_match: bool = False
    header_score: int = 0

    @property
    def is_match(self) -> bool:
        return self.method_match and self.url_match and self.headers_match


class DefaultRequestFilter(RequestFilter):
    """
    First-match-wins request filter with header specificity.

    Example:
        request_filter = DefaultRequestFilter()
        template = request_filter.find_request('GET', '/users/1', {}, catalog)
    """

    def find_request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, Sequence[str]],
        requests: Sequence[MockRequest]
    ) -> Optional[MockRequest]:
        best_match = None
        best_score = -1

        for request in requests:
            score = self.score(request, method, url, headers)
            # Strictly greater keeps the earliest of equally specific templates
            if score.is_match and score.header_score > best_score:
                best_match = request
                best_score = score.header_score

        return best_match

    def score(
        self,
        request: MockRequest,
        method: str,
        url: str,
        headers: Optional[Mapping[str, Sequence[str]]]
    ) -> MatchScore:
        """
        Check a single template against the request.

        Args:
            request: Candidate template
            method: Incoming HTTP method (compared case-sensitively)
            url: Incoming request URL
            headers: Incoming headers, name to list of values

        Returns:
            MatchScore with the per-part verdicts
        """
        score = MatchScore()
        score.method_match = request.method == method
        if not score.method_match:
            return score

        score.url_match = URLMatcher.urls_match(request.url, url)
        if not score.url_match:
            return score

        incoming = _lower_keys(headers)
        for key, expected_values in request.headers.as_map().items():
            actual = incoming.get(key.lower())
            if actual is None:
                return score
            if not any(value in actual for value in expected_values):
                return score
            score.header_score += 1

        score.headers_match = True
        return score


class DefaultResponseFilter(ResponseFilter):
    """Always serves the first candidate response."""

    def find_response(
        self,
        request: MockRequest,
        responses: Sequence[MockResponse]
    ) -> Optional[MockResponse]:
        return responses[0] if responses else None


class SequentialResponseFilter(ResponseFilter):
    """
    Cycles through the candidate responses of each template in order.

    Positions are tracked per template instance, so one filter can serve the
    whole catalog.
    """

    def __init__(self):
        self._positions: Dict[int, int] = {}
        self._lock = threading.Lock()

    def find_response(
        self,
        request: MockRequest,
        responses: Sequence[MockResponse]
    ) -> Optional[MockResponse]:
        if not responses:
            return None

        with self._lock:
            position = self._positions.get(id(request), 0)
            self._positions[id(request)] = (position + 1) % len(responses)

        return responses[position % len(responses)]


class RandomResponseFilter(ResponseFilter):
    """Serves a uniformly random candidate response."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.SystemRandom()

    def find_response(
        self,
        request: MockRequest,
        responses: Sequence[MockResponse]
    ) -> Optional[MockResponse]:
        if not responses:
            return None
        return self._rng.choice(list(responses))


def _lower_keys(headers: Optional[Mapping[str, Sequence[str]]]) -> Dict[str, list]:
    """Index incoming headers by lower-cased name, accepting str or list values."""
    indexed: Dict[str, list] = {}
    if not headers:
        return indexed

    for key, values in headers.items():
        if isinstance(values, str):
            values = [values]
        indexed.setdefault(str(key).lower(), []).extend(values)
    return indexed
