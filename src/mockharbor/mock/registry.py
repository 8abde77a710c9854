"""
MockHarbor Strategy Registry

Resolves the strategy references stored in settings ("requestFilter",
"tokenHelper", ...) into instances.

A reference is first looked up among the names registered for the wanted
strategy kind. Unregistered references that look like dotted paths
("package.module.Class" or "package.module:Class") are imported. Resolution
never raises: any failure is logged at INFO and yields None, so one bad
reference cannot break serving of otherwise valid templates.
"""

import importlib
import logging
from typing import Any, Callable, Dict, List, Optional

from ..common import is_empty
from .matcher import (
    DefaultRequestFilter,
    DefaultResponseFilter,
    RandomResponseFilter,
    SequentialResponseFilter
)
from .strategies import STRATEGY_LABELS, RequestFilter, ResponseFilter

logger = logging.getLogger("mockharbor.registry")


class StrategyRegistry:
    """
    Maps stable names to strategy factories, grouped by strategy kind.

    Example:
        registry = StrategyRegistry()
        registry.register(RequestFilter, 'strict', StrictRequestFilter)
        request_filter = registry.resolve(RequestFilter, 'strict')
    """

    def __init__(self):
        self._factories: Dict[type, Dict[str, Callable[[], Any]]] = {}

    def register(self, kind: type, name: str, factory: Callable[[], Any]) -> None:
        """
        Register a factory under a name for a strategy kind.

        Args:
            kind: Strategy base class (RequestFilter, TokenHelper, ...)
            name: Reference string configurations use
            factory: Zero-argument callable returning an instance
        """
        if is_empty(name):
            raise ValueError("Strategy name must not be empty")
        if not callable(factory):
            raise TypeError(f"Factory for '{name}' is not callable")

        self._factories.setdefault(kind, {})[name] = factory

    def unregister(self, kind: type, name: str) -> None:
        self._factories.get(kind, {}).pop(name, None)

    def names(self, kind: type) -> List[str]:
        return list(self._factories.get(kind, {}).keys())

    def resolve(self, kind: type, reference: Optional[str]) -> Optional[Any]:
        """
        Instantiate the strategy a reference names.

        Args:
            kind: Strategy base class the instance must derive from
            reference: Registered name or dotted import path

        Returns:
            A new strategy instance, or None if the reference is empty or
            can't be resolved
        """
        if is_empty(reference):
            return None

        label = STRATEGY_LABELS.get(kind, kind.__name__)

        try:
            instance = self._instantiate(kind, reference)
        except Exception as e:
            logger.info(f"Couldn't resolve {label} '{reference}': {e}")
            return None

        if not isinstance(instance, kind):
            logger.info(
                f"Couldn't resolve {label} '{reference}': "
                f"{type(instance).__name__} is not a {kind.__name__}"
            )
            return None

        return instance

    def _instantiate(self, kind: type, reference: str) -> Any:
        factory = self._factories.get(kind, {}).get(reference)
        if factory is None:
            factory = _import_reference(reference)
        return factory()


def _import_reference(reference: str) -> Any:
    """Import the attribute a dotted path reference points at."""
    if ':' in reference:
        module_name, _, attribute = reference.partition(':')
    else:
        module_name, _, attribute = reference.rpartition('.')

    if not module_name or not attribute:
        raise LookupError(f"no strategy registered as '{reference}'")

    module = importlib.import_module(module_name)
    return getattr(module, attribute)


def _create_default_registry() -> StrategyRegistry:
    registry = StrategyRegistry()
    registry.register(RequestFilter, 'default', DefaultRequestFilter)
    registry.register(ResponseFilter, 'default', DefaultResponseFilter)
    registry.register(ResponseFilter, 'sequential', SequentialResponseFilter)
    registry.register(ResponseFilter, 'random', RandomResponseFilter)
    return registry


default_registry = _create_default_registry()


def register_strategy(kind: type, name: str, factory: Callable[[], Any]) -> None:
    """Register a factory with the process-wide default registry."""
    default_registry.register(kind, name, factory)
