"""
MockHarbor Mock Server

FastAPI-based HTTP server that serves responses from a Configuration.

Features:
- Template matching through the configured request filter
- Default response header merging
- Throttled (chunked and delayed) response bodies
- Fallback relay to the real server for unmatched requests, optionally
  recording the real responses as new templates
- Admin API for inspecting and extending the live configuration
"""

from __future__ import annotations  # Enable forward references for type hints

import asyncio
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Union

import requests
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.concurrency import run_in_threadpool

from ..common import URLMatcher, safe_json_parse
from .codec import ConfigurationFormatError, decode_request, encode_configuration, load_configuration
from .configuration import Configuration
from .headers import HeaderManager
from .settings import UNBOUNDED_BYTE_COUNT, SettingsManager
from .templates import MockRequest, MockResponse

# Managed by the ASGI server, never copied from templates or real responses
HOP_BY_HOP_HEADERS = {'content-length', 'transfer-encoding', 'connection', 'content-encoding'}
RELAY_SKIPPED_REQUEST_HEADERS = {'host', 'content-length', 'connection'}


@dataclass
class ServerConfig:
    """Configuration for mock server process behavior."""

    # Server options
    host: str = "127.0.0.1"
    port: int = 8080
    log_level: str = "info"

    # Fallback behavior
    fallback_enabled: bool = False  # Relay unmatched requests to the fallback base URL
    record_fallbacks: bool = False  # Add relayed real responses to the catalog
    relay_timeout: float = 30.0  # Seconds
    not_found_status: int = 404

    # Admin API
    admin_enabled: bool = True
    admin_prefix: str = "/__admin__"


class MockServer:
    """
    FastAPI-based mock server for a MockHarbor Configuration.

    Example:
        configuration = load_configuration('mocks.json')
        server = MockServer(configuration, ServerConfig(port=9090))
        server.start()

        # In tests
        client = TestClient(MockServer(configuration).get_app())
    """

    def __init__(
        self,
        configuration: Configuration,
        config: Optional[ServerConfig] = None,
        base_dir: Optional[Union[str, Path]] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize mock server.

        Args:
            configuration: Templates and default behavior to serve
            config: Optional ServerConfig for process behavior
            base_dir: Directory response "source" paths are relative to
            session: Optional requests session used for fallback relays
        """
        self.configuration = configuration
        self.config = config or ServerConfig()
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.session = session or requests.Session()

        # Matching is read-mostly; runtime catalog additions take the same lock
        self._lock = threading.RLock()

        self.logger = logging.getLogger("mockharbor.server")
        self.logger.setLevel(getattr(logging, self.config.log_level.upper()))

        self.app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application with routes."""
        app = FastAPI(
            title="MockHarbor Mock Server",
            description="Mock HTTP server serving configured request templates",
            version="1.0.0"
        )

        if self.config.admin_enabled:
            @app.get(f"{self.config.admin_prefix}/config")
            async def get_config():
                """Get the live configuration in its persisted form."""
                with self._lock:
                    return JSONResponse(content=encode_configuration(self.configuration))

            @app.post(f"{self.config.admin_prefix}/requests")
            async def add_request(request: Request):
                """Add a request template at runtime."""
                data = safe_json_parse(await request.body())
                if data is None:
                    return JSONResponse(content={'error': 'Request body is not valid JSON'}, status_code=400)

                try:
                    template = decode_request(data)
                except ConfigurationFormatError as e:
                    return JSONResponse(content={'error': str(e)}, status_code=400)

                with self._lock:
                    self.configuration.add_request(template)
                    total = len(self.configuration.requests())

                self.logger.info(f"Added template at runtime: {template.method} {template.url}")
                return JSONResponse(content={'status': 'added', 'total_requests': total}, status_code=201)

        # Main catch-all route for mocking
        @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"])
        async def mock_request(request: Request, path: str):
            """Handle incoming requests and serve mock responses."""
            return await self._handle_request(request)

        return app

    async def _handle_request(self, request: Request) -> Response:
        method = request.method
        url = str(request.url)
        headers = _multi_value_headers(request)
        body = await request.body()

        self.logger.debug(f"Incoming: {method} {url}")

        with self._lock:
            template = self.configuration.find_template(method, url, headers)

        if template is None:
            self.logger.warning(f"No match found for {method} {url}")
            return await self._handle_unmatched(method, url, headers, body)

        mock_response = template.find_response()
        if mock_response is None:
            self.logger.warning(f"Template {template.method} {template.url} has no responses")
            return self._not_found(method, url)

        settings = self.configuration.resolve_settings(template, mock_response)
        try:
            content = self._response_body(mock_response)
        except OSError as e:
            self.logger.warning(f"Can't read response body source '{mock_response.source}': {e}")
            return JSONResponse(
                content={'error': 'Response body source unavailable', 'source': mock_response.source},
                status_code=500,
                headers={'X-MockHarbor-Matched': 'true'}
            )

        token_helper = self.configuration.token_helper()
        if token_helper is not None and content:
            content = token_helper.substitute(content.decode('utf-8'), method, url, headers).encode('utf-8')

        return await self._create_response(
            mock_response.code,
            self.configuration.resolve_headers(mock_response),
            content,
            settings
        )

    def _response_body(self, response: MockResponse) -> bytes:
        """Return the inline body, or the contents of the source file."""
        if response.text is not None or not response.source:
            return response.body()

        source = Path(response.source)
        if not source.is_absolute():
            source = self.base_dir / source
        return source.read_bytes()

    async def _create_response(
        self,
        status_code: int,
        headers: HeaderManager,
        content: bytes,
        settings: SettingsManager
    ) -> Response:
        """
        Create a (possibly throttled) FastAPI Response.

        Without a throttle byte count the whole body is sent after one delay.
        Otherwise the body is streamed in chunks of that size, each preceded
        by a freshly drawn delay.
        """
        byte_count = settings.throttle_byte_count()

        if byte_count == UNBOUNDED_BYTE_COUNT or len(content) <= byte_count:
            await _sleep_millis(settings.throttle_delay_millis())
            response = Response(content=content, status_code=status_code)
        else:
            response = StreamingResponse(_throttled(content, byte_count, settings), status_code=status_code)

        for key, value in headers.items():
            if key.lower() not in HOP_BY_HOP_HEADERS:
                response.raw_headers.append((key.lower().encode('latin-1'), value.encode('latin-1')))

        return response

    async def _handle_unmatched(
        self,
        method: str,
        url: str,
        headers: Dict[str, List[str]],
        body: bytes
    ) -> Response:
        settings = self.configuration.settings()
        base_url = self.configuration.fallback_base_url() or settings.fallback_base_url()

        if not (self.config.fallback_enabled and base_url):
            return self._not_found(method, url)

        target = URLMatcher.rebase_url(url, base_url)
        self.logger.info(f"Relaying {method} {url} to {target}")

        try:
            real = await run_in_threadpool(
                self.session.request,
                method,
                target,
                headers={k: ', '.join(v) for k, v in headers.items() if k.lower() not in RELAY_SKIPPED_REQUEST_HEADERS},
                data=body or None,
                allow_redirects=settings.follow_redirects(),
                timeout=self.config.relay_timeout
            )
        except requests.RequestException as e:
            self.logger.warning(f"Fallback relay to {target} failed: {e}")
            return JSONResponse(
                content={'error': 'Fallback relay failed', 'target': target, 'reason': str(e)},
                status_code=502
            )

        real_headers = HeaderManager({k: v for k, v in real.headers.items() if k.lower() not in HOP_BY_HOP_HEADERS})

        if self.config.record_fallbacks:
            self._record(method, url, real.status_code, real_headers, real.content)

        return await self._create_response(real.status_code, real_headers, real.content, settings)

    def _record(self, method: str, url: str, status_code: int, headers: HeaderManager, content: bytes) -> None:
        """Add a template built from a relayed real response to the catalog."""
        template = MockRequest(
            method=method,
            url=URLMatcher.path_and_query(url),
            responses=[MockResponse(
                code=status_code,
                headers=headers,
                text=content.decode('utf-8', errors='replace')
            )]
        )

        helper = self.configuration.transformation_helper()
        if helper is not None:
            template = helper.transform(template)
            if template is None:
                return

        with self._lock:
            self.configuration.add_request(template)
        self.logger.debug(f"Recorded template: {template.method} {template.url}")

    def _not_found(self, method: str, url: str) -> Response:
        return JSONResponse(
            content={'error': 'No matching request template found', 'method': method, 'url': url},
            status_code=self.config.not_found_status,
            headers={'X-MockHarbor-Matched': 'false'}
        )

    def start(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        access_log: bool = True
    ):
        """
        Start the mock server.

        Args:
            host: Host to bind to (overrides config)
            port: Port to bind to (overrides config)
            access_log: Enable access logging
        """
        actual_host = host or self.config.host
        actual_port = port or self.config.port

        print("MockHarbor Mock Server starting...")
        print(f"   Host: {actual_host}:{actual_port}")
        print(f"   Templates loaded: {len(self.configuration.requests())}")

        if self.config.fallback_enabled:
            print(f"   Fallback: {self.configuration.fallback_base_url() or '(from settings)'}")

        if self.config.admin_enabled:
            print(f"   Admin API: http://{actual_host}:{actual_port}{self.config.admin_prefix}/config")

        print()

        uvicorn.run(
            self.app,
            host=actual_host,
            port=actual_port,
            log_level=self.config.log_level,
            access_log=access_log
        )

    def get_app(self) -> FastAPI:
        """
        Get the FastAPI app instance for testing or custom deployment.

        Returns:
            FastAPI application instance
        """
        return self.app


def _multi_value_headers(request: Request) -> Dict[str, List[str]]:
    headers: Dict[str, List[str]] = {}
    for key, value in request.headers.items():
        headers.setdefault(key, []).append(value)
    return headers


async def _sleep_millis(millis: int) -> None:
    if millis > 0:
        await asyncio.sleep(millis / 1000)


async def _throttled(content: bytes, byte_count: int, settings: SettingsManager) -> AsyncIterator[bytes]:
    for offset in range(0, len(content), byte_count):
        await _sleep_millis(settings.throttle_delay_millis())
        yield content[offset:offset + byte_count]


def create_mock_server(
    config_file: str,
    host: str = "127.0.0.1",
    port: int = 8080,
    fallback_enabled: bool = False,
    record_fallbacks: bool = False,
    log_level: str = "info"
) -> MockServer:
    """
    Convenience function to load a configuration file and create a server.

    Response "source" paths are resolved relative to the file's directory.

    Example:
        server = create_mock_server('mocks.yaml', port=8080, fallback_enabled=True)
        server.start()
    """
    configuration = load_configuration(config_file)
    config = ServerConfig(
        host=host,
        port=port,
        log_level=log_level,
        fallback_enabled=fallback_enabled,
        record_fallbacks=record_fallbacks
    )
    return MockServer(configuration, config=config, base_dir=Path(config_file).parent)
