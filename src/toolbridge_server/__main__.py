"""CLI entry point for toolbridge-server.

This module provides the command-line interface for starting the server.
It can be invoked as `toolbridge-server` (via the script entry point) or
`python -m toolbridge_server`.
"""

import argparse
import logging
import sys

import uvicorn

from toolbridge_server import __version__, create_app
from toolbridge_server.config import ToolBridgeSettings


def main() -> None:
    """Main entry point for the toolbridge-server CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    parser = argparse.ArgumentParser(
        prog="toolbridge-server",
        description="Tool-calling chat server bridging Ollama models and an MCP tool provider",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"toolbridge-server {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via TOOLBRIDGE_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via TOOLBRIDGE_PORT)",
    )

    parser.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        help="Ollama server URL (default: http://localhost:11434, can be set via TOOLBRIDGE_OLLAMA_HOST)",
    )

    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Chat model used for every turn (can be set via TOOLBRIDGE_MODEL)",
    )

    parser.add_argument(
        "--provider-command",
        type=str,
        default=None,
        help="Executable of the tool provider (default: node, can be set via TOOLBRIDGE_PROVIDER_COMMAND)",
    )

    parser.add_argument(
        "--provider-arg",
        dest="provider_args",
        action="append",
        default=None,
        help="Argument for the tool provider; repeat for several (can be set via TOOLBRIDGE_PROVIDER_ARGS)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via TOOLBRIDGE_LOG_LEVEL)",
    )

    args = parser.parse_args()

    # Build settings, CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.ollama_host is not None:
        settings_kwargs["ollama_host"] = args.ollama_host
    if args.model is not None:
        settings_kwargs["model"] = args.model
    if args.provider_command is not None:
        settings_kwargs["provider_command"] = args.provider_command
    if args.provider_args is not None:
        settings_kwargs["provider_args"] = args.provider_args
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = ToolBridgeSettings(**settings_kwargs)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Create the FastAPI app
    app = create_app(settings=settings)

    # Start uvicorn
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())
