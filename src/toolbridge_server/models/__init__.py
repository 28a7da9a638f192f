"""Pydantic models for API request and response schemas.

This package contains all Pydantic models used for validating and
serializing API requests and responses across all endpoints.
"""

from toolbridge_server.models.chat import (
    ErrorResponse,
    HistoryMessage,
    TurnMessage,
    TurnRequest,
    TurnResponse,
)
from toolbridge_server.models.health import HealthResponse
from toolbridge_server.models.tools import ToolListResponse, ToolResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "HistoryMessage",
    "ToolListResponse",
    "ToolResponse",
    "TurnMessage",
    "TurnRequest",
    "TurnResponse",
]
