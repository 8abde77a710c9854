"""
Tests for MockHarbor Request Matcher

Tests the built-in filters including:
- First-match-wins template selection
- URL expressions (exact, bare path, regex)
- Header disambiguation and specificity
- Response selection strategies
"""

import random

import pytest

from mockharbor.mock.matcher import (
    DefaultRequestFilter,
    DefaultResponseFilter,
    MatchScore,
    RandomResponseFilter,
    SequentialResponseFilter
)
from mockharbor.mock.templates import MockRequest, MockRequestBuilder, MockResponse


@pytest.fixture
def sample_catalog():
    """T1(GET,/a), T2(GET,/a), T3(POST,/a) in that order."""
    return [
        MockRequest(method='GET', url='/a'),
        MockRequest(method='GET', url='/a'),
        MockRequest(method='POST', url='/a'),
    ]


class TestMatchScore:
    """Test MatchScore dataclass."""

    def test_default_is_no_match(self):
        """Test an empty score isn't a match."""
        assert MatchScore().is_match is False

    def test_full_match(self):
        """Test all parts matching makes a match."""
        score = MatchScore(method_match=True, url_match=True, headers_match=True, header_score=2)

        assert score.is_match is True


class TestDefaultRequestFilter:
    """Test the default first-match-wins request filter."""

    def test_first_match_wins(self, sample_catalog):
        """Test the earliest matching template is returned."""
        result = DefaultRequestFilter().find_request('GET', '/a', {}, sample_catalog)

        assert result is sample_catalog[0]

    def test_method_selects_template(self, sample_catalog):
        """Test method narrows the candidates."""
        result = DefaultRequestFilter().find_request('POST', '/a', {}, sample_catalog)

        assert result is sample_catalog[2]

    def test_no_match_returns_none(self, sample_catalog):
        """Test an unknown URL yields None rather than raising."""
        assert DefaultRequestFilter().find_request('GET', '/b', {}, sample_catalog) is None

    def test_empty_catalog(self):
        """Test matching against no templates."""
        assert DefaultRequestFilter().find_request('GET', '/a', {}, []) is None

    def test_method_is_case_sensitive(self, sample_catalog):
        """Test methods compare exactly."""
        assert DefaultRequestFilter().find_request('get', '/a', {}, sample_catalog) is None

    def test_absolute_url_matches_bare_path(self, sample_catalog):
        """Test a path template accepts the absolute URL of a server request."""
        result = DefaultRequestFilter().find_request('GET', 'http://localhost:8080/a', {}, sample_catalog)

        assert result is sample_catalog[0]

    def test_regex_url(self):
        """Test URL expressions are regular expressions over the whole path."""
        template = MockRequest(method='GET', url=r'/users/\d+')
        request_filter = DefaultRequestFilter()

        assert request_filter.find_request('GET', 'http://localhost/users/42', {}, [template]) is template
        assert request_filter.find_request('GET', '/users/abc', {}, [template]) is None
        assert request_filter.find_request('GET', '/users/42/posts', {}, [template]) is None

    def test_query_is_part_of_path(self):
        """Test query strings take part in bare path matching."""
        template = MockRequest(method='GET', url=r'/search\?q=.*')

        assert DefaultRequestFilter().find_request('GET', 'http://h/search?q=mock', {}, [template]) is template

    def test_invalid_regex_treated_as_literal(self):
        """Test a broken pattern only matches itself."""
        template = MockRequest(method='GET', url='/broken[')

        assert DefaultRequestFilter().find_request('GET', '/broken[', {}, [template]) is template
        assert DefaultRequestFilter().find_request('GET', '/broken', {}, [template]) is None

    def test_absolute_template_url(self):
        """Test templates with scheme and host compare the full URL."""
        template = MockRequest(method='GET', url='https://api.example.com/users')

        assert DefaultRequestFilter().find_request('GET', 'https://api.example.com/users', {}, [template]) is template
        assert DefaultRequestFilter().find_request('GET', 'https://other.example.com/users', {}, [template]) is None


class TestHeaderDisambiguation:
    """Test header-based template selection."""

    @pytest.fixture
    def catalog(self):
        generic = MockRequestBuilder('GET', '/items').build()
        json_only = MockRequestBuilder('GET', '/items').add_header('Accept', 'application/json').build()
        authed_json = (MockRequestBuilder('GET', '/items')
                       .add_header('Accept', 'application/json')
                       .add_header('Authorization', 'Bearer token')
                       .build())
        return [generic, json_only, authed_json]

    def test_most_specific_wins(self, catalog):
        """Test the template requiring the most headers wins regardless of order."""
        headers = {'accept': ['application/json'], 'authorization': ['Bearer token']}

        result = DefaultRequestFilter().find_request('GET', '/items', headers, catalog)

        assert result is catalog[2]

    def test_partial_header_match(self, catalog):
        """Test templates requiring absent headers are skipped."""
        result = DefaultRequestFilter().find_request('GET', '/items', {'Accept': ['application/json']}, catalog)

        assert result is catalog[1]

    def test_no_headers_falls_back_to_generic(self, catalog):
        """Test the header-less template serves header-less requests."""
        assert DefaultRequestFilter().find_request('GET', '/items', {}, catalog) is catalog[0]

    def test_header_value_must_match(self, catalog):
        """Test required header values compare exactly."""
        result = DefaultRequestFilter().find_request('GET', '/items', {'Accept': ['text/html']}, catalog)

        assert result is catalog[0]

    def test_string_header_values_accepted(self, catalog):
        """Test incoming headers may map to plain strings."""
        result = DefaultRequestFilter().find_request('GET', '/items', {'Accept': 'application/json'}, catalog)

        assert result is catalog[1]

    def test_ties_broken_by_catalog_order(self):
        """Test equally specific templates resolve to the first one."""
        first = MockRequestBuilder('GET', '/x').add_header('A', '1').build()
        second = MockRequestBuilder('GET', '/x').add_header('B', '2').build()

        result = DefaultRequestFilter().find_request('GET', '/x', {'A': ['1'], 'B': ['2']}, [first, second])

        assert result is first


class TestResponseFilters:
    """Test built-in response filters."""

    @pytest.fixture
    def template(self):
        return MockRequest(responses=[MockResponse(code=200), MockResponse(code=201), MockResponse(code=202)])

    def test_default_returns_first(self, template):
        """Test the default filter always serves the first response."""
        response_filter = DefaultResponseFilter()

        assert response_filter.find_response(template, template.responses).code == 200
        assert response_filter.find_response(template, template.responses).code == 200

    def test_no_responses(self, template):
        """Test every filter returns None without candidates."""
        for response_filter in (DefaultResponseFilter(), SequentialResponseFilter(), RandomResponseFilter()):
            assert response_filter.find_response(template, []) is None

    def test_sequential_cycles(self, template):
        """Test the sequential filter cycles through responses."""
        response_filter = SequentialResponseFilter()

        codes = [response_filter.find_response(template, template.responses).code for _ in range(4)]

        assert codes == [200, 201, 202, 200]

    def test_sequential_tracks_templates_separately(self, template):
        """Test positions are kept per template."""
        other = MockRequest(responses=[MockResponse(code=404), MockResponse(code=500)])
        response_filter = SequentialResponseFilter()

        response_filter.find_response(template, template.responses)

        assert response_filter.find_response(other, other.responses).code == 404

    def test_random_picks_candidate(self, template):
        """Test the random filter only serves candidates."""
        response_filter = RandomResponseFilter(rng=random.Random(7))

        codes = {response_filter.find_response(template, template.responses).code for _ in range(50)}

        assert codes == {200, 201, 202}
