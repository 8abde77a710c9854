"""
MockHarbor Configuration Codec

Converts a Configuration to and from its persisted text form (JSON, or
YAML for hand-written fixtures).

Persisted shape:

    {
      "fallbackBaseUrl": "https://api.example.com",
      "headers": [{"key": "Server", "value": "mockharbor"}],
      "settings": {"throttleMaxDelayMillis": "200"},
      "requests": [
        {
          "method": "GET",
          "url": "/users/\\d+",
          "headers": "Accept: application/json",
          "responses": [
            {"code": 200, "headers": [...], "text": "{...}"}
          ]
        }
      ]
    }

The "headers" field of the configuration, of a request and of a response can
be written either as a newline separated "Key: value" string or as a list of
{"key", "value"} objects (a plain {"Key": "value"} object is accepted too).
Decoding is done in two phases per entity: normalize_header_field() rewrites
only the headers field into list form, then a plain structural decoder reads
the normalized entity. The plain decoders never call the normalizer for the
entity they are decoding, so decoding can't recurse into itself. Encoding
always writes the list form.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from ..common import to_text
from .configuration import Configuration, ConfigurationBuilder
from .headers import HeaderManager
from .settings import SettingsManager
from .templates import MockRequest, MockResponse, reason_phrase

HEADERS = 'headers'
YAML_SUFFIXES = ('.yaml', '.yml')


class ConfigurationFormatError(ValueError):
    """
    Raised when persisted text can't be decoded into a Configuration.

    Nothing is ever partially applied: decoding builds a new object graph and
    either returns all of it or raises this error.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


# ============================================================================
# PHASE 1: HEADER NORMALIZATION
# ============================================================================

def split_headers(header_string: str) -> List[Dict[str, str]]:
    """
    Split a "Key: value" per line header string into key/value objects.

    Each line is split on its first colon and both sides are trimmed. Lines
    without a colon are dropped.

    Example:
        split_headers("Content-Type: text/json\\nX-Foo: bar")
        # [{'key': 'Content-Type', 'value': 'text/json'},
        #  {'key': 'X-Foo', 'value': 'bar'}]
    """
    entries = []
    for line in header_string.split('\n'):
        key, colon, value = line.partition(':')
        if colon:
            entries.append({'key': key.strip(), 'value': value.strip()})
    return entries


def normalize_header_field(data: Any, entity: str) -> Dict[str, Any]:
    """
    Rewrite the headers field of an entity into the canonical list form.

    Only the headers field is looked at; the rest of the entity is copied
    over untouched for the structural decoder.

    Args:
        data: Raw decoded entity (must be a mapping)
        entity: Entity name for error messages

    Returns:
        A shallow copy of data with a list-form headers field
    """
    if not isinstance(data, Mapping):
        raise ConfigurationFormatError(
            f"Expected {entity} to be an object, got {type(data).__name__}"
        )

    normalized = dict(data)
    headers = normalized.get(HEADERS)

    if isinstance(headers, str):
        normalized[HEADERS] = split_headers(headers)
    elif isinstance(headers, Mapping):
        normalized[HEADERS] = _header_mapping_to_list(headers)

    return normalized


def _header_mapping_to_list(headers: Mapping[str, Any]) -> List[Dict[str, Any]]:
    entries = []
    for key, value in headers.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            entries.append({'key': key, 'value': item})
    return entries


# ============================================================================
# PHASE 2: STRUCTURAL DECODING
# ============================================================================

def decode_configuration(data: Any) -> Configuration:
    """Decode a raw configuration document (object, or a bare request list)."""
    if isinstance(data, list):
        data = {'requests': data}
    return _decode_configuration_fields(normalize_header_field(data, 'configuration'))


def decode_request(data: Any) -> MockRequest:
    """Decode one request template, accepting either header form."""
    return _decode_request_fields(normalize_header_field(data, 'request'))


def decode_response(data: Any) -> MockResponse:
    """Decode one response template, accepting either header form."""
    return _decode_response_fields(normalize_header_field(data, 'response'))


def _decode_configuration_fields(data: Dict[str, Any]) -> Configuration:
    builder = ConfigurationBuilder()
    builder.set_fallback_base_url(_optional_str(data, 'fallbackBaseUrl', 'configuration'))
    builder.set_default_response_header_manager(_decode_header_list(data.get(HEADERS), 'configuration'))
    builder.set_default_response_settings_manager(_decode_settings(data.get('settings'), 'configuration'))

    for raw_request in _optional_list(data, 'requests', 'configuration'):
        builder.add_request(decode_request(raw_request))

    return builder.build()


def _decode_request_fields(data: Dict[str, Any]) -> MockRequest:
    responses = [
        decode_response(raw_response)
        for raw_response in _optional_list(data, 'responses', 'request')
    ]

    return MockRequest(
        method=_optional_str(data, 'method', 'request') or 'GET',
        url=_optional_str(data, 'url', 'request') or '/',
        headers=_decode_header_list(data.get(HEADERS), 'request'),
        settings=_decode_settings(data.get('settings'), 'request'),
        responses=responses
    )


def _decode_response_fields(data: Dict[str, Any]) -> MockResponse:
    code = data.get('code', 200)
    if isinstance(code, bool) or not isinstance(code, int):
        raise ConfigurationFormatError(f"Expected response 'code' to be an integer, got {code!r}")

    return MockResponse(
        code=code,
        phrase=_optional_str(data, 'phrase', 'response'),
        headers=_decode_header_list(data.get(HEADERS), 'response'),
        text=_optional_str(data, 'text', 'response'),
        source=_optional_str(data, 'source', 'response'),
        settings=_decode_settings(data.get('settings'), 'response')
    )


def _decode_header_list(entries: Any, entity: str) -> HeaderManager:
    headers = HeaderManager()
    if entries is None:
        return headers

    if not isinstance(entries, list):
        raise ConfigurationFormatError(
            f"Expected {entity} 'headers' to be a list, got {type(entries).__name__}"
        )

    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ConfigurationFormatError(f"Expected {entity} header entry to be an object, got {entry!r}")

        key = entry.get('key')
        value = entry.get('value')
        if key is not None and not isinstance(key, str):
            raise ConfigurationFormatError(f"Expected {entity} header key to be a string, got {key!r}")
        if value is not None and not isinstance(value, (str, int, float)):
            raise ConfigurationFormatError(f"Expected {entity} header value to be a string, got {value!r}")

        headers.add(key, to_text(value))

    return headers


def _decode_settings(settings: Any, entity: str) -> SettingsManager:
    manager = SettingsManager()
    if settings is None:
        return manager

    if not isinstance(settings, Mapping):
        raise ConfigurationFormatError(
            f"Expected {entity} 'settings' to be an object, got {type(settings).__name__}"
        )

    for key, value in settings.items():
        if not isinstance(key, str):
            raise ConfigurationFormatError(f"Expected {entity} setting name to be a string, got {key!r}")
        if value is not None and not isinstance(value, (str, int, float, bool)):
            raise ConfigurationFormatError(f"Expected {entity} setting '{key}' to be a scalar, got {value!r}")
        manager.set(key, value)

    return manager


def _optional_str(data: Mapping[str, Any], key: str, entity: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigurationFormatError(
            f"Expected {entity} '{key}' to be a string, got {type(value).__name__}"
        )
    return value


def _optional_list(data: Mapping[str, Any], key: str, entity: str) -> List[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigurationFormatError(
            f"Expected {entity} '{key}' to be a list, got {type(value).__name__}"
        )
    return value


# ============================================================================
# ENCODING
# ============================================================================

def encode_configuration(configuration: Configuration) -> Dict[str, Any]:
    """Convert a Configuration into plain data. Strategy instances are not persisted."""
    data: Dict[str, Any] = {}
    _put(data, 'fallbackBaseUrl', configuration.fallback_base_url())
    _put(data, HEADERS, _encode_headers(configuration.default_headers()))
    _put(data, 'settings', dict(configuration.settings().as_map()))
    data['requests'] = [encode_request(request) for request in configuration.requests()]
    return data


def encode_request(request: MockRequest) -> Dict[str, Any]:
    data: Dict[str, Any] = {'method': request.method, 'url': request.url}
    _put(data, HEADERS, _encode_headers(request.headers))
    _put(data, 'settings', dict(request.settings.as_map()))
    _put(data, 'responses', [encode_response(response) for response in request.responses])
    return data


def encode_response(response: MockResponse) -> Dict[str, Any]:
    data: Dict[str, Any] = {'code': response.code}
    if response.phrase and response.phrase != reason_phrase(response.code):
        data['phrase'] = response.phrase
    _put(data, HEADERS, _encode_headers(response.headers))
    _put(data, 'text', response.text)
    _put(data, 'source', response.source)
    _put(data, 'settings', dict(response.settings.as_map()))
    return data


def _encode_headers(headers: HeaderManager) -> List[Dict[str, str]]:
    return [{'key': key, 'value': value} for key, value in headers.items()]


def _put(data: Dict[str, Any], key: str, value: Any) -> None:
    """Store value unless it is None or an empty collection."""
    if value is None:
        return
    if isinstance(value, (list, dict)) and not value:
        return
    data[key] = value


# ============================================================================
# TEXT AND FILE I/O
# ============================================================================

def loads(text: Union[str, bytes], fmt: str = 'json') -> Configuration:
    """
    Parse configuration text.

    Args:
        text: JSON or YAML document
        fmt: 'json' or 'yaml'

    Returns:
        The decoded Configuration

    Raises:
        ConfigurationFormatError: On syntax errors or wrongly typed fields
    """
    try:
        if fmt == 'yaml':
            data = yaml.safe_load(text)
        elif fmt == 'json':
            data = json.loads(text)
        else:
            raise ConfigurationFormatError(f"Unknown configuration format '{fmt}'")
        return decode_configuration(data)
    except ConfigurationFormatError:
        raise
    except (ValueError, TypeError, RecursionError, yaml.YAMLError) as e:
        raise ConfigurationFormatError(f"Invalid {fmt} configuration: {e}", cause=e) from e


def dumps(configuration: Configuration, fmt: str = 'json') -> str:
    """Serialize a Configuration as pretty printed JSON or YAML."""
    data = encode_configuration(configuration)

    if fmt == 'yaml':
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)
    if fmt == 'json':
        return json.dumps(data, indent=2, ensure_ascii=False)
    raise ConfigurationFormatError(f"Unknown configuration format '{fmt}'")


def format_for_path(path: Union[str, Path]) -> str:
    return 'yaml' if Path(path).suffix.lower() in YAML_SUFFIXES else 'json'


def load_configuration(path: Union[str, Path], fmt: Optional[str] = None) -> Configuration:
    """Load a Configuration from a JSON or YAML file (format picked by suffix)."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        text = f.read()
    return loads(text, fmt or format_for_path(path))


def save_configuration(
    configuration: Configuration,
    path: Union[str, Path],
    fmt: Optional[str] = None
) -> None:
    """Write a Configuration to a JSON or YAML file (format picked by suffix)."""
    path = Path(path)
    text = dumps(configuration, fmt or format_for_path(path))
    with open(path, 'w', encoding='utf-8') as f:
        f.write(text)
        if not text.endswith('\n'):
            f.write('\n')
