#!/usr/bin/env python3
"""
MockHarbor CLI

Command-line interface for MockHarbor mock server configurations.

Commands:
    serve       - Start a mock HTTP server for a configuration file
    validate    - Check that a configuration file decodes
    convert     - Rewrite a configuration file in canonical JSON or YAML

Examples:
    # Start mock server
    python3 mockharbor-serve.py serve mocks.json --port 8080

    # Relay unmatched requests to the real server and record the answers
    python3 mockharbor-serve.py serve mocks.yaml --fallback --record

    # Validate a hand-written fixture
    python3 mockharbor-serve.py validate mocks.yaml

    # Convert YAML fixture to canonical JSON
    python3 mockharbor-serve.py convert mocks.yaml --output mocks.json
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent / 'src'))

from mockharbor.mock import ConfigurationFormatError, dumps, load_configuration
from mockharbor.mock.codec import format_for_path
from mockharbor.mock.server import MockServer, ServerConfig


def cmd_serve(args):
    """
    Start the mock server.

    Args:
        args: Parsed command-line arguments
    """
    configuration = _load(args.config_file)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        fallback_enabled=args.fallback,
        record_fallbacks=args.record,
        admin_enabled=not args.no_admin
    )

    server = MockServer(configuration, config=config, base_dir=Path(args.config_file).parent)
    server.start()


def cmd_validate(args):
    """Check that a configuration file decodes and summarize it."""
    configuration = _load(args.config_file)
    requests = configuration.requests()

    print(f"OK: {args.config_file}")
    print(f"   Templates: {len(requests)}")
    print(f"   Responses: {sum(len(r.responses) for r in requests)}")
    print(f"   Default headers: {configuration.default_headers().key_count()}")
    print(f"   Default settings: {configuration.settings().entry_count()}")

    if configuration.fallback_base_url():
        print(f"   Fallback base URL: {configuration.fallback_base_url()}")


def cmd_convert(args):
    """Rewrite a configuration in canonical form."""
    configuration = _load(args.config_file)

    fmt = args.format or (format_for_path(args.output) if args.output else 'json')
    text = dumps(configuration, fmt)

    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(text if text.endswith('\n') else text + '\n')
        print(f"Wrote {args.output}")
    else:
        print(text)


def _load(config_file: str):
    try:
        return load_configuration(config_file)
    except FileNotFoundError:
        print(f"Error: configuration file not found: {config_file}", file=sys.stderr)
        sys.exit(1)
    except ConfigurationFormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


def main():
    parser = argparse.ArgumentParser(
        description="MockHarbor - configurable mock HTTP servers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Start mock HTTP server')
    serve.add_argument('config_file', help='JSON or YAML configuration file')
    serve.add_argument('--host', default='127.0.0.1', help='Host to bind to (default: 127.0.0.1)')
    serve.add_argument('--port', type=int, default=8080, help='Port to listen on (default: 8080)')
    serve.add_argument('--log-level', default='info', dest='log_level',
                       choices=['debug', 'info', 'warning', 'error'],
                       help='Server log level (default: info)')
    serve.add_argument('--fallback', action='store_true',
                       help='Relay unmatched requests to the fallback base URL')
    serve.add_argument('--record', action='store_true',
                       help='Add relayed real responses to the live configuration')
    serve.add_argument('--no-admin', action='store_true', dest='no_admin',
                       help='Disable the admin API')

    validate = subparsers.add_parser('validate', help='Validate a configuration file')
    validate.add_argument('config_file', help='JSON or YAML configuration file')

    convert = subparsers.add_parser('convert', help='Rewrite a configuration in canonical form')
    convert.add_argument('config_file', help='JSON or YAML configuration file')
    convert.add_argument('--output', '-o', help='Output file (default: stdout)')
    convert.add_argument('--format', choices=['json', 'yaml'], help='Output format (default: from output suffix)')

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.command == 'serve':
        cmd_serve(args)
    elif args.command == 'validate':
        cmd_validate(args)
    elif args.command == 'convert':
        cmd_convert(args)


if __name__ == '__main__':
    main()
