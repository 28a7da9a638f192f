"""Pytest configuration for integration tests.

This module provides integration-test-specific fixtures that replace the
Ollama client with a mock, so API tests run against the real fake tool
provider without a model server.
"""

from unittest.mock import AsyncMock, patch

import pytest

from toolbridge_server.ollama import ModelInfo


@pytest.fixture(autouse=True)
def mock_ollama_client():
    """Mock OllamaClient for all integration tests.

    This fixture patches the OllamaClient class before the app is created,
    ensuring the lifespan uses our mock instead of creating a real client.
    Tests script the model by assigning a ScriptedChat to ``chat_stream``.
    """
    with patch("toolbridge_server.app.OllamaClient") as mock_client_class:
        mock_instance = AsyncMock()
        mock_instance.host = "http://localhost:11434"
        mock_instance.check_connection.return_value = True
        mock_instance.get_model_info.return_value = ModelInfo(
            name="llama3.1:8b",
            family="llama",
            parameter_size="8.0B",
            capabilities=["completion", "tools"],
            context_length=131072,
        )

        mock_client_class.return_value = mock_instance

        yield mock_instance
