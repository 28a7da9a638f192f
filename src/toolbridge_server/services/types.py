"""Data types for conversation turns.

This module defines the messages exchanged with the chat model during a
turn and the two shapes a model decision can take.
"""

from dataclasses import dataclass
from enum import Enum


class CallPolicy(str, Enum):
    """Whether the model may call a function on this invocation."""

    AUTO = "auto"  # the model decides
    NONE = "none"  # plain follow-up, no functions offered


@dataclass
class CallIntent:
    """A model's request to invoke a tool.

    ``raw_arguments`` is the serialized JSON text of the arguments exactly
    as the model produced them; it is parsed only when the tool is invoked.
    """

    tool_name: str
    raw_arguments: str = ""


@dataclass
class DirectAnswer:
    """A plain text answer from the model."""

    text: str


ModelDecision = DirectAnswer | CallIntent


@dataclass
class UserMessage:
    """A message from the user."""

    role: str = "user"
    content: str = ""

    def __post_init__(self) -> None:
        """Validate role is always 'user'."""
        self.role = "user"


@dataclass
class SystemMessage:
    """The system instruction."""

    role: str = "system"
    content: str = ""

    def __post_init__(self) -> None:
        """Validate role is always 'system'."""
        self.role = "system"


@dataclass
class AssistantMessage:
    """A response from the model, optionally replaying a call intent."""

    role: str = "assistant"
    content: str = ""
    call_intent: CallIntent | None = None

    def __post_init__(self) -> None:
        """Validate role is always 'assistant'."""
        self.role = "assistant"


@dataclass
class FunctionResultMessage:
    """A tool result fed back to the model."""

    role: str = "function"
    tool_name: str = ""
    content: str = ""

    def __post_init__(self) -> None:
        """Validate role is always 'function'."""
        self.role = "function"


# Union type for all message types
Message = UserMessage | SystemMessage | AssistantMessage | FunctionResultMessage


@dataclass
class OutboundMessage:
    """A message returned to the caller at the end of a turn."""

    role: str
    content: str
