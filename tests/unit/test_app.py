"""Unit tests for the FastAPI app factory and configuration."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from toolbridge_server import __version__, create_app
from toolbridge_server.config import DEFAULT_SYSTEM_PROMPT, ToolBridgeSettings
from toolbridge_server.errors import ProviderTimeout, ToolBridgeError


def test_create_app_returns_fastapi_instance():
    """Test that create_app returns a FastAPI instance."""
    app = create_app()
    assert isinstance(app, FastAPI)


def test_create_app_with_settings(test_settings):
    """Test that create_app accepts custom settings."""
    app = create_app(settings=test_settings)
    assert isinstance(app, FastAPI)
    assert app.state.settings is test_settings


def test_create_app_metadata():
    """Test that app has correct metadata."""
    app = create_app()
    assert app.title == "toolbridge-server"
    assert app.version == "0.1.0"
    assert "MCP tool provider" in app.description


def test_create_app_registers_routes():
    """Test that all routers are registered."""
    app = create_app()

    routes = [route.path for route in app.routes]  # type: ignore[attr-defined]
    assert "/api/v1/health" in routes
    assert "/api/v1/tools" in routes
    assert "/api/v1/chat" in routes


def test_create_app_has_cors_middleware(test_settings):
    """Test that CORS middleware is configured."""
    app = create_app(settings=test_settings)

    middleware_classes = [m.cls.__name__ for m in app.user_middleware]  # type: ignore[attr-defined]
    assert "CORSMiddleware" in middleware_classes


def test_version_constant():
    """Test that __version__ is defined and matches app version."""
    assert __version__ == "0.1.0"


def test_settings_default_values():
    """Test that settings have correct default values."""
    settings = ToolBridgeSettings()

    assert settings.host == "127.0.0.1"
    assert settings.port == 8000
    assert settings.ollama_host == "http://localhost:11434"
    assert settings.model == "llama3.1:8b"
    assert settings.system_prompt == DEFAULT_SYSTEM_PROMPT
    assert settings.provider_command == "node"
    assert settings.provider_args == []
    assert settings.catalog_mode == "discover"
    assert settings.provider_request_timeout == 60.0
    assert settings.log_level == "INFO"
    assert settings.chat_options == {}


def test_settings_env_prefix(monkeypatch):
    """Test that settings respect TOOLBRIDGE_ environment variable prefix."""
    monkeypatch.setenv("TOOLBRIDGE_PORT", "9000")
    monkeypatch.setenv("TOOLBRIDGE_OLLAMA_HOST", "http://custom:11434")
    monkeypatch.setenv("TOOLBRIDGE_PROVIDER_ARGS", '["dist/index.js"]')
    monkeypatch.setenv("TOOLBRIDGE_PROVIDER_ENV", '{"HUBSPOT_ACCESS_TOKEN": "abc"}')
    monkeypatch.setenv("TOOLBRIDGE_CHAT_OPTIONS", '{"temperature": 0.2}')

    settings = ToolBridgeSettings()

    assert settings.port == 9000
    assert settings.ollama_host == "http://custom:11434"
    assert settings.provider_args == ["dist/index.js"]
    assert settings.provider_env == {"HUBSPOT_ACCESS_TOKEN": "abc"}
    assert settings.chat_options == {"temperature": 0.2}


def test_settings_resolved_provider_cwd(tmp_path):
    """Test the resolved provider working directory."""
    assert ToolBridgeSettings().resolved_provider_cwd is None
    assert ToolBridgeSettings(provider_cwd=str(tmp_path)).resolved_provider_cwd == tmp_path


class _Unavailable(ToolBridgeError):
    status_code = 503


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (ProviderTimeout("Tool provider did not answer 'tools/call' within 1s"), 500),
        (_Unavailable("down"), 503),
    ],
)
async def test_toolbridge_errors_render_as_error_body(test_settings, error, status_code):
    """Test that a ToolBridgeError becomes {"error": message} with its status."""
    app = create_app(settings=test_settings)

    @app.get("/fail")
    async def fail():
        raise error

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/fail")

    assert response.status_code == status_code
    assert response.json() == {"error": str(error)}
