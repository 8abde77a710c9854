"""
Tests for MockHarbor Strategy Registry

Tests name-based strategy resolution including:
- Registered factories
- Dotted path imports
- Failure isolation (never raising)
"""

import logging

import pytest

from mockharbor.mock.matcher import DefaultRequestFilter, DefaultResponseFilter
from mockharbor.mock.registry import StrategyRegistry, default_registry, register_strategy
from mockharbor.mock.strategies import RequestFilter, ResponseFilter, TransformationHelper


class NamedFilter(RequestFilter):
    """Request filter that never matches."""

    def find_request(self, method, url, headers, requests):
        return None


class ExplodingHelper(TransformationHelper):
    """Transformation helper whose constructor fails."""

    def __init__(self):
        raise RuntimeError("boom")

    def transform(self, request):
        return request


@pytest.fixture
def registry():
    """Fresh registry with one custom filter."""
    registry = StrategyRegistry()
    registry.register(RequestFilter, 'never', NamedFilter)
    return registry


class TestRegistration:
    """Test registering factories."""

    def test_register_and_resolve(self, registry):
        """Test a registered name resolves to a new instance."""
        first = registry.resolve(RequestFilter, 'never')
        second = registry.resolve(RequestFilter, 'never')

        assert isinstance(first, NamedFilter)
        assert first is not second

    def test_names_are_per_kind(self, registry):
        """Test names registered for one kind don't leak into another."""
        assert registry.names(RequestFilter) == ['never']
        assert registry.names(ResponseFilter) == []

    def test_unregister(self, registry):
        """Test unregistered names no longer resolve."""
        registry.unregister(RequestFilter, 'never')

        assert registry.resolve(RequestFilter, 'never') is None

    def test_register_rejects_bad_input(self, registry):
        """Test registration validates its arguments."""
        with pytest.raises(ValueError):
            registry.register(RequestFilter, '', NamedFilter)
        with pytest.raises(TypeError):
            registry.register(RequestFilter, 'bad', 'not callable')

    def test_default_registry_builtins(self):
        """Test the process-wide registry knows the built-in filters."""
        assert isinstance(default_registry.resolve(RequestFilter, 'default'), DefaultRequestFilter)
        assert isinstance(default_registry.resolve(ResponseFilter, 'default'), DefaultResponseFilter)
        assert set(default_registry.names(ResponseFilter)) >= {'default', 'sequential', 'random'}

    def test_register_strategy_on_default_registry(self):
        """Test names registered process-wide resolve from settings references."""
        register_strategy(RequestFilter, 'never-matching', NamedFilter)
        try:
            assert isinstance(default_registry.resolve(RequestFilter, 'never-matching'), NamedFilter)
        finally:
            default_registry.unregister(RequestFilter, 'never-matching')


class TestDottedPaths:
    """Test import-based resolution."""

    def test_dotted_path(self, registry):
        """Test module.Class references."""
        instance = registry.resolve(RequestFilter, 'mockharbor.mock.matcher.DefaultRequestFilter')

        assert isinstance(instance, DefaultRequestFilter)

    def test_colon_path(self, registry):
        """Test module:Class references."""
        instance = registry.resolve(RequestFilter, 'mockharbor.mock.matcher:DefaultRequestFilter')

        assert isinstance(instance, DefaultRequestFilter)


class TestFailureIsolation:
    """Test that resolution failures never raise."""

    @pytest.mark.parametrize('reference', [
        'unknown',
        'no.such.module.Filter',
        'mockharbor.mock.matcher.NoSuchClass',
        'mockharbor.mock.matcher:',
    ])
    def test_unresolvable_reference(self, registry, caplog, reference):
        """Test unknown references return None and log once at INFO."""
        with caplog.at_level(logging.INFO, logger="mockharbor.registry"):
            assert registry.resolve(RequestFilter, reference) is None

        assert len(caplog.records) == 1
        assert caplog.records[0].levelno == logging.INFO
        assert "request filter" in caplog.records[0].getMessage()

    def test_constructor_failure(self, registry, caplog):
        """Test a failing constructor is absorbed."""
        with caplog.at_level(logging.INFO, logger="mockharbor.registry"):
            result = registry.resolve(TransformationHelper, f"{__name__}.ExplodingHelper")

        assert result is None
        assert 'boom' in caplog.records[0].getMessage()

    def test_capability_mismatch(self, registry, caplog):
        """Test instances of the wrong kind are rejected."""
        with caplog.at_level(logging.INFO, logger="mockharbor.registry"):
            result = registry.resolve(ResponseFilter, 'mockharbor.mock.matcher.DefaultRequestFilter')

        assert result is None
        assert len(caplog.records) == 1

    @pytest.mark.parametrize('reference', [None, ''])
    def test_empty_reference(self, registry, caplog, reference):
        """Test empty references resolve to None silently."""
        with caplog.at_level(logging.INFO, logger="mockharbor.registry"):
            assert registry.resolve(RequestFilter, reference) is None

        assert caplog.records == []
