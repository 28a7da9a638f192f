"""Data types for the provider session."""

from dataclasses import dataclass
from enum import Enum

from toolbridge_server.provider.transport import StdioTransport
from toolbridge_server.provider.types import ToolCatalog
from toolbridge_server.services.model import ChatModel


class SessionState(str, Enum):
    """Initialization state of the process-wide session."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass
class ToolSession:
    """Everything a turn needs, shared by all turns of the running server.

    Attributes:
        transport: The started provider transport
        chat_model: Model adapter bound to the shared Ollama client
        catalog: Tools discovered when the session started
        started_at: ISO 8601 timestamp of the successful initialization
    """

    transport: StdioTransport
    chat_model: ChatModel
    catalog: ToolCatalog
    started_at: str
