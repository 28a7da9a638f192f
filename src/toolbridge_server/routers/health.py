"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Request

from toolbridge_server.models.health import HealthResponse
from toolbridge_server.ollama import OllamaClient
from toolbridge_server.sessions import SessionState, ToolSessionManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Health check endpoint.

    Returns the current health status and version of the toolbridge-server,
    Ollama connectivity, and the state of the tool provider session. This
    never starts the provider.

    Args:
        request: The FastAPI request object.

    Returns:
        HealthResponse: Health status and version information.
    """
    ollama_connected = None
    ollama_host = None

    if hasattr(request.app.state, "ollama_client"):
        ollama_client: OllamaClient = request.app.state.ollama_client
        ollama_host = ollama_client.host

        try:
            ollama_connected = await ollama_client.check_connection()
            logger.debug(f"Ollama connectivity check: {ollama_connected}")
        except Exception as e:
            logger.warning(f"Ollama connectivity check failed: {e}")
            ollama_connected = False

    session_state = SessionState.UNINITIALIZED
    tool_count = None

    if hasattr(request.app.state, "session_manager"):
        session_manager: ToolSessionManager = request.app.state.session_manager
        session_state = session_manager.state
        if session_manager.session is not None:
            tool_count = len(session_manager.session.catalog)

    return HealthResponse(
        status="ok",
        version="0.1.0",
        ollama_connected=ollama_connected,
        ollama_host=ollama_host,
        model=request.app.state.settings.model,
        session_state=session_state.value,
        tool_count=tool_count,
    )
