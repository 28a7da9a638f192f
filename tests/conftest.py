"""Pytest configuration and shared fixtures for toolbridge-server tests.

This module provides common fixtures used across all test modules,
including test app creation, async client setup, the fake tool provider,
and a scripted stand-in for the Ollama chat stream.
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from toolbridge_server import create_app
from toolbridge_server.config import ToolBridgeSettings

FAKE_PROVIDER = Path(__file__).parent / "fixtures" / "fake_provider.py"
RAW_PROVIDER = Path(__file__).parent / "fixtures" / "raw_provider.py"


class ScriptedChat:
    """Replacement for OllamaClient.chat_stream.

    Each call consumes the next scripted list of chunks and records what it
    was sent.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    async def __call__(self, model, messages, tools=None, options=None):
        self.calls.append(
            {"model": model, "messages": messages, "tools": tools, "options": options}
        )
        for chunk in self.responses.pop(0):
            yield chunk

    @staticmethod
    def text(content):
        """Chunks for a plain text answer."""
        return [
            {"message": {"role": "assistant", "content": content}, "done": False},
            {"message": {"role": "assistant", "content": ""}, "done": True},
        ]

    @staticmethod
    def tool_call(name, arguments, content=""):
        """Chunks for a tool call, optionally with accompanying text."""
        return [
            {
                "message": {
                    "role": "assistant",
                    "content": content,
                    "tool_calls": [{"function": {"name": name, "arguments": arguments}}],
                },
                "done": False,
            },
            {"message": {"role": "assistant", "content": ""}, "done": True},
        ]


@pytest.fixture
def scripted_chat():
    """The ScriptedChat class."""
    return ScriptedChat


@pytest.fixture
def fake_provider_path():
    """Path to the fake stdio tool provider script."""
    return FAKE_PROVIDER


@pytest.fixture
def raw_provider_path():
    """Path to the line-level provider script for protocol edge cases."""
    return RAW_PROVIDER


@pytest.fixture
def spawn_log(tmp_path):
    """File the fake provider appends one line to per start."""
    return tmp_path / "spawns.log"


@pytest.fixture
def test_settings(tmp_path, spawn_log):
    """Create test settings that run the fake provider.

    Args:
        tmp_path: Pytest fixture providing a temporary directory.
        spawn_log: Spawn counter file.

    Returns:
        ToolBridgeSettings: Settings instance configured for testing.
    """
    return ToolBridgeSettings(
        host="127.0.0.1",
        port=8000,
        ollama_host="http://localhost:11434",
        model="llama3.1:8b",
        provider_command=sys.executable,
        provider_args=[str(FAKE_PROVIDER)],
        provider_env={
            "FAKE_PROVIDER_MODE": "normal",
            "FAKE_PROVIDER_SPAWN_LOG": str(spawn_log),
        },
        provider_cwd=str(tmp_path),
        provider_request_timeout=5.0,
        provider_startup_timeout=10.0,
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def test_app(test_settings):
    """Create a FastAPI test application instance.

    Args:
        test_settings: Test settings fixture.

    Returns:
        FastAPI: Configured test application.
    """
    return create_app(settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Args:
        test_app: Test application fixture.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
