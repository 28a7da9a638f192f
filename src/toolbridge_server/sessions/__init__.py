"""Session management for toolbridge-server.

This package holds the process-wide provider session (transport, model
adapter, and tool catalog) and the manager that initializes it once.
"""

from toolbridge_server.sessions.manager import ToolSessionManager, build_transport
from toolbridge_server.sessions.types import SessionState, ToolSession

__all__ = [
    "ToolSessionManager",
    "ToolSession",
    "SessionState",
    "build_transport",
]
