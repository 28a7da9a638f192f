"""toolbridge-server: tool-calling chat server for Ollama models.

This package bridges a chat model with the tools exposed by an external
Model Context Protocol provider process, routing each user turn through a
two-pass function-calling exchange.
"""

from toolbridge_server.app import create_app

__version__ = "0.1.0"

__all__ = ["create_app", "__version__"]
