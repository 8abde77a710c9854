"""
MockHarbor Mock Module

Mock HTTP server definition engine.

This module provides:
- Header and behavior settings managers
- Request/response templates and the configuration holding them
- Pluggable request matching and response selection
- JSON/YAML configuration codec
- FastAPI-based mock server
"""

from .headers import HeaderManager
from .settings import SettingsManager
from .strategies import RequestFilter, ResponseFilter, TokenHelper, TransformationHelper
from .matcher import (
    MatchScore,
    DefaultRequestFilter,
    DefaultResponseFilter,
    SequentialResponseFilter,
    RandomResponseFilter
)
from .registry import StrategyRegistry, default_registry, register_strategy
from .templates import MockRequest, MockResponse, MockRequestBuilder, MockResponseBuilder
from .configuration import Configuration, ConfigurationBuilder
from .codec import (
    ConfigurationFormatError,
    loads,
    dumps,
    load_configuration,
    save_configuration
)
from .server import MockServer, ServerConfig, create_mock_server

__all__ = [
    # Managers
    'HeaderManager',
    'SettingsManager',

    # Strategies
    'RequestFilter',
    'ResponseFilter',
    'TokenHelper',
    'TransformationHelper',
    'MatchScore',
    'DefaultRequestFilter',
    'DefaultResponseFilter',
    'SequentialResponseFilter',
    'RandomResponseFilter',
    'StrategyRegistry',
    'default_registry',
    'register_strategy',

    # Templates and configuration
    'MockRequest',
    'MockResponse',
    'MockRequestBuilder',
    'MockResponseBuilder',
    'Configuration',
    'ConfigurationBuilder',

    # Codec
    'ConfigurationFormatError',
    'loads',
    'dumps',
    'load_configuration',
    'save_configuration',

    # Server
    'MockServer',
    'ServerConfig',
    'create_mock_server',
]

__version__ = '1.0.0'
