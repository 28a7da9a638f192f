"""Conversation turn orchestration.

One turn runs the two-pass protocol:

1. Ask the model, offering the whole tool catalog, whether it wants a tool.
2. If it answers in plain text, that text is the turn's answer.
3. Otherwise invoke the requested tool on the provider, replay the call and
   its normalized result to the model, and return the model's final answer.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable

from toolbridge_server.config import DEFAULT_SYSTEM_PROMPT
from toolbridge_server.errors import ArgumentParseFallback, ToolInvocationError
from toolbridge_server.provider.invocation import call_tool
from toolbridge_server.services.types import (
    AssistantMessage,
    CallIntent,
    CallPolicy,
    DirectAnswer,
    FunctionResultMessage,
    Message,
    OutboundMessage,
    SystemMessage,
    UserMessage,
)
from toolbridge_server.tools.schema import to_function_declarations

if TYPE_CHECKING:
    from toolbridge_server.sessions.manager import ToolSessionManager

logger = logging.getLogger(__name__)


class TurnState(str, Enum):
    """States a turn moves through."""

    AWAITING_FIRST_MODEL_RESPONSE = "awaiting_first_model_response"
    DIRECT_ANSWER = "direct_answer"
    TOOL_REQUESTED = "tool_requested"
    AWAITING_SECOND_MODEL_RESPONSE = "awaiting_second_model_response"
    DONE = "done"


@dataclass
class TurnOutcome:
    """Result of one turn.

    Attributes:
        messages: New messages for the caller, in order
        state: Terminal state (DIRECT_ANSWER or DONE)
        tool_name: Tool invoked during the turn, if any
    """

    messages: list[OutboundMessage] = field(default_factory=list)
    state: TurnState = TurnState.DONE
    tool_name: str | None = None


def parse_call_arguments(raw_arguments: str) -> dict[str, Any]:
    """Parse a call intent's raw arguments.

    Empty text means no arguments.

    Raises:
        ArgumentParseFallback: If the text is not a JSON object
    """
    if not raw_arguments.strip():
        return {}

    try:
        value = json.loads(raw_arguments)
    except json.JSONDecodeError as e:
        raise ArgumentParseFallback(f"Arguments are not valid JSON: {e}") from e

    if not isinstance(value, dict):
        raise ArgumentParseFallback(
            f"Arguments are a JSON {type(value).__name__}, not an object"
        )
    return value


def prepare_history(history: Iterable[tuple[str, str]]) -> list[Message]:
    """Convert caller-supplied (role, content) pairs to turn messages.

    Function-result echoes from earlier turns are dropped: they carry no
    call intent to pair with, and the assistant acknowledgment that precedes
    them already records what was called.
    """
    messages: list[Message] = []
    for role, content in history:
        if role == "user":
            messages.append(UserMessage(content=content))
        elif role == "assistant":
            messages.append(AssistantMessage(content=content))
        else:
            logger.debug(f"Dropping {role} message from history")
    return messages


class TurnOrchestrator:
    """Runs conversation turns against the shared provider session.

    Attributes:
        session_manager: Provides the process-wide session
        system_prompt: Instruction placed first in every model request
    """

    def __init__(
        self,
        session_manager: "ToolSessionManager",
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        self.session_manager = session_manager
        self.system_prompt = system_prompt

    async def run_turn(
        self,
        user_message: str,
        history: list[Message] | None = None,
    ) -> TurnOutcome:
        """Run one turn.

        Args:
            user_message: The new user message
            history: Prior conversation, oldest first

        Returns:
            TurnOutcome: One assistant message for a direct answer; an
            acknowledgment, the tool output, and the final answer when a
            tool was invoked

        Raises:
            InitializationError: If the provider session could not be set up
            ModelUnavailable: If either model pass fails
            ToolInvocationError: If the tool is unknown or the provider reports an error
            ProviderTimeout: If the tool call times out
            ProviderProtocolError: If the tool call response is malformed
        """
        session = await self.session_manager.get_session()
        functions = to_function_declarations(session.catalog)

        conversation: list[Message] = [
            SystemMessage(content=self.system_prompt),
            *(history or []),
            UserMessage(content=user_message),
        ]

        state = TurnState.AWAITING_FIRST_MODEL_RESPONSE
        logger.info(
            f"Turn {state.value}: {len(conversation)} messages, {len(functions)} functions"
        )

        decision = await session.chat_model.invoke(conversation, functions, CallPolicy.AUTO)

        if isinstance(decision, DirectAnswer):
            state = TurnState.DIRECT_ANSWER
            logger.info(f"Turn {state.value}: {len(decision.text)} characters")
            return TurnOutcome(
                messages=[OutboundMessage(role="assistant", content=decision.text)],
                state=state,
            )

        intent: CallIntent = decision
        state = TurnState.TOOL_REQUESTED
        logger.info(f"Turn {state.value}: {intent.tool_name}")

        if intent.tool_name not in session.catalog:
            raise ToolInvocationError(
                f"Model requested unknown tool '{intent.tool_name}'"
            )

        arguments = self._resolve_arguments(intent)
        result = await call_tool(session.transport, intent.tool_name, arguments)

        follow_up: list[Message] = [
            *conversation,
            AssistantMessage(content="", call_intent=intent),
            FunctionResultMessage(tool_name=intent.tool_name, content=result.text),
        ]

        state = TurnState.AWAITING_SECOND_MODEL_RESPONSE
        logger.info(f"Turn {state.value}: {len(follow_up)} messages")

        final = await session.chat_model.invoke(follow_up, [], CallPolicy.NONE)
        final_text = final.text if isinstance(final, DirectAnswer) else ""

        state = TurnState.DONE
        logger.info(f"Turn {state.value}: {len(final_text)} characters")

        return TurnOutcome(
            messages=[
                OutboundMessage(
                    role="assistant",
                    content=f"Called {intent.tool_name} with {json.dumps(arguments)}",
                ),
                OutboundMessage(role="function", content=result.text),
                OutboundMessage(role="assistant", content=final_text),
            ],
            state=state,
            tool_name=intent.tool_name,
        )

    def _resolve_arguments(self, intent: CallIntent) -> dict[str, Any]:
        try:
            return parse_call_arguments(intent.raw_arguments)
        except ArgumentParseFallback as e:
            logger.warning(
                f"Could not parse arguments for {intent.tool_name}, "
                f"calling it with no arguments: {e}"
            )
            return {}
