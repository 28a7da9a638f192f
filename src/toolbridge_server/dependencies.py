"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject common dependencies like settings and services.
"""

from functools import lru_cache

from fastapi import HTTPException, Request

from toolbridge_server.config import ToolBridgeSettings
from toolbridge_server.services import TurnOrchestrator
from toolbridge_server.sessions import ToolSessionManager


@lru_cache
def get_settings() -> ToolBridgeSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the TOOLBRIDGE_ prefix.

    Returns:
        ToolBridgeSettings: The application configuration settings.
    """
    return ToolBridgeSettings()


def get_session_manager(request: Request) -> ToolSessionManager:
    """Get the process-wide ToolSessionManager from app state.

    Unlike the other services, the manager is not created per request: it
    owns the provider process, which must be shared by every turn.

    Args:
        request: The FastAPI request object.

    Returns:
        ToolSessionManager: The shared session manager.

    Raises:
        HTTPException: If the manager is not initialized (503 Service Unavailable).
    """
    if not hasattr(request.app.state, "session_manager"):
        raise HTTPException(
            status_code=503,
            detail="Session manager not initialized",
        )
    return request.app.state.session_manager


def get_turn_orchestrator(request: Request) -> TurnOrchestrator:
    """Get a TurnOrchestrator bound to the shared session manager.

    Args:
        request: The FastAPI request object.

    Returns:
        TurnOrchestrator: A new orchestrator for this request.
    """
    # Use settings from app.state instead of cached get_settings()
    # This ensures tests can use their own isolated settings
    settings = request.app.state.settings
    return TurnOrchestrator(
        session_manager=get_session_manager(request),
        system_prompt=settings.system_prompt,
    )
