"""Service layer for toolbridge-server.

This package contains the chat model adapter and the turn orchestrator.
"""

from toolbridge_server.services.model import ChatModel
from toolbridge_server.services.orchestrator import (
    TurnOrchestrator,
    TurnOutcome,
    TurnState,
    parse_call_arguments,
    prepare_history,
)

__all__ = [
    "ChatModel",
    "TurnOrchestrator",
    "TurnOutcome",
    "TurnState",
    "parse_call_arguments",
    "prepare_history",
]
