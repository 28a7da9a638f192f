"""Ollama client wrapper and integration layer.

This package provides the async client wrapper used to reach the chat model.
All Ollama chat interactions are async and use streaming.
"""

from toolbridge_server.ollama.client import OllamaClient
from toolbridge_server.ollama.types import ModelInfo

__all__ = ["OllamaClient", "ModelInfo"]
