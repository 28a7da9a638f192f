"""Chat model adapter.

ChatModel turns the streaming Ollama chat API into a single request/response
call that returns either a DirectAnswer or a CallIntent.
"""

import json
import logging
from typing import Any

from toolbridge_server.errors import ModelUnavailable
from toolbridge_server.ollama.client import OllamaClient
from toolbridge_server.services.types import (
    AssistantMessage,
    CallIntent,
    CallPolicy,
    DirectAnswer,
    FunctionResultMessage,
    Message,
    ModelDecision,
)
from toolbridge_server.tools.schema import to_ollama_tools

logger = logging.getLogger(__name__)


def replay_arguments(intent: CallIntent) -> dict[str, Any]:
    """Arguments of a call intent in the mapping form Ollama expects.

    Raw arguments that are not a JSON object replay as the empty object,
    which is also what the tool was invoked with.
    """
    try:
        value = json.loads(intent.raw_arguments) if intent.raw_arguments.strip() else {}
    except json.JSONDecodeError:
        return {}
    return value if isinstance(value, dict) else {}


def _convert_messages_to_ollama_format(messages: list[Message]) -> list[dict[str, Any]]:
    """Convert turn messages to Ollama API format.

    Args:
        messages: List of message objects (SystemMessage, UserMessage,
                  AssistantMessage, FunctionResultMessage)

    Returns:
        List of message dicts in Ollama format: [{"role": "...", "content": "..."}, ...]
    """
    ollama_messages = []

    for msg in messages:
        if isinstance(msg, FunctionResultMessage):
            # Ollama names the function-result role "tool"
            ollama_messages.append(
                {"role": "tool", "content": msg.content, "tool_name": msg.tool_name}
            )
            continue

        ollama_msg: dict[str, Any] = {
            "role": msg.role,
            "content": msg.content,
        }

        # Replay the call the model asked for
        if isinstance(msg, AssistantMessage) and msg.call_intent is not None:
            # Ollama only accepts a mapping here, so raw arguments that are not a
            # JSON object replay as {}, the same arguments the tool received
            ollama_msg["tool_calls"] = [
                {
                    "function": {
                        "name": msg.call_intent.tool_name,
                        "arguments": replay_arguments(msg.call_intent),
                    }
                }
            ]

        ollama_messages.append(ollama_msg)

    return ollama_messages


def _intent_from_tool_call(tool_call: Any) -> CallIntent:
    function = tool_call.get("function") if isinstance(tool_call, dict) else None
    name = function.get("name") if isinstance(function, dict) else None
    if not isinstance(name, str) or not name:
        raise ModelUnavailable(f"Model returned a malformed tool call: {tool_call!r}")

    arguments = function.get("arguments")
    if arguments is None:
        raw_arguments = ""
    elif isinstance(arguments, str):
        raw_arguments = arguments
    else:
        raw_arguments = json.dumps(arguments)

    return CallIntent(tool_name=name, raw_arguments=raw_arguments)


class ChatModel:
    """The model capability used by the turn orchestrator.

    Attributes:
        client: The shared Ollama client
        model: Model name sent with every request
        options: Optional model parameters (temperature, etc.)
    """

    def __init__(
        self,
        client: OllamaClient,
        model: str,
        options: dict[str, Any] | None = None,
    ) -> None:
        self.client = client
        self.model = model
        self.options = options

    async def invoke(
        self,
        messages: list[Message],
        functions: list[dict[str, Any]],
        policy: CallPolicy = CallPolicy.AUTO,
    ) -> ModelDecision:
        """Send one request to the model and classify its response.

        A tool call takes precedence over any text the model produced
        alongside it. If several calls come back, only the first is used.

        Args:
            messages: Conversation to send, in order
            functions: Function declarations ({"name", "description", "parameters"})
            policy: AUTO to let the model decide, NONE for a plain follow-up

        Returns:
            ModelDecision: DirectAnswer or CallIntent

        Raises:
            ModelUnavailable: If the model call fails or produces no response
        """
        tools = to_ollama_tools(functions) if policy is CallPolicy.AUTO and functions else None
        ollama_messages = _convert_messages_to_ollama_format(messages)

        content_parts: list[str] = []
        tool_calls: list[Any] = []
        completed = False

        try:
            async for chunk in self.client.chat_stream(
                model=self.model,
                messages=ollama_messages,
                tools=tools,
                options=self.options,
            ):
                message = chunk.get("message") or {}
                content = message.get("content") or ""
                if content:
                    content_parts.append(content)

                tool_calls.extend(message.get("tool_calls") or [])

                if chunk.get("done"):
                    completed = True
        except Exception as e:
            logger.error(f"Ollama streaming error: {e}")
            raise ModelUnavailable(
                f"Failed to get response from model {self.model}: {e}"
            ) from e

        if not completed:
            raise ModelUnavailable(
                f"Model {self.model} stream ended without completion marker"
            )

        text = "".join(content_parts)

        if tool_calls and policy is CallPolicy.AUTO:
            if len(tool_calls) > 1:
                logger.warning(
                    f"Model returned {len(tool_calls)} tool calls, using only the first"
                )
            if text:
                logger.debug("Discarding text returned alongside a tool call")
            return _intent_from_tool_call(tool_calls[0])

        return DirectAnswer(text=text)
