"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown,
error rendering, and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from toolbridge_server.config import ToolBridgeSettings
from toolbridge_server.errors import ToolBridgeError
from toolbridge_server.ollama import OllamaClient
from toolbridge_server.routers import chat, health, tools
from toolbridge_server.sessions import ToolSessionManager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    The Ollama client and the session manager are created once at startup
    and stored in app.state. The provider process itself is not started
    here: the session manager spawns it on the first turn.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control is yielded while the app is running.
    """
    settings: ToolBridgeSettings = app.state.settings
    app.state.ollama_client = OllamaClient(host=settings.ollama_host)
    logger.info(f"Initialized Ollama client with host: {settings.ollama_host}")

    connected = await app.state.ollama_client.check_connection()
    if connected:
        logger.info("Successfully connected to Ollama")
        await _check_model(app.state.ollama_client, settings.model)
    else:
        logger.warning("Could not connect to Ollama - check if server is running")

    app.state.session_manager = ToolSessionManager(
        settings=settings,
        ollama_client=app.state.ollama_client,
    )

    yield

    # Shutdown: stop the provider process and clean up the client
    if hasattr(app.state, "session_manager"):
        await app.state.session_manager.close()

    if hasattr(app.state, "ollama_client"):
        await app.state.ollama_client.close()
        logger.info("Ollama client closed")


async def _check_model(ollama_client: OllamaClient, model: str) -> None:
    """Warn early when the configured model cannot call tools."""
    try:
        model_info = await ollama_client.get_model_info(model)
    except Exception as e:
        logger.warning(f"Could not look up model {model}: {e}")
        return

    if model_info is None:
        logger.warning(f"Model '{model}' not found in Ollama")
    elif not model_info.supports_tools:
        logger.warning(f"Model '{model}' does not advertise tool support")


async def _handle_toolbridge_error(request: Request, exc: ToolBridgeError) -> JSONResponse:
    """Render any turn failure as {"error": "<message>"}."""
    logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


def create_app(settings: ToolBridgeSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional ToolBridgeSettings instance. If not provided,
                  settings will be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from toolbridge_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="toolbridge-server",
        description="Tool-calling chat server bridging Ollama models and an MCP tool provider",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings in app.state for lifespan access
    app.state.settings = settings

    # Configure CORS
    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Starlette types handlers as taking a bare Exception
    app.add_exception_handler(ToolBridgeError, _handle_toolbridge_error)  # type: ignore[arg-type]

    # Register routers
    app.include_router(health.router)
    app.include_router(tools.router)
    app.include_router(chat.router)

    return app
