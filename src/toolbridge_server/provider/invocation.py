"""Tool invocation and result normalization."""

import json
import logging
from typing import Any

from toolbridge_server.errors import ToolInvocationError
from toolbridge_server.provider.transport import ProviderFailure, StdioTransport
from toolbridge_server.provider.types import ToolResult

logger = logging.getLogger(__name__)


def normalize_tool_output(result: dict[str, Any]) -> str:
    """Flatten a tools/call result into the text the model will see.

    Text segments are joined in order with a single space. When the result
    has no text segment at all, the whole result is rendered as JSON.

    Args:
        result: The provider's tools/call result object

    Returns:
        str: Normalized tool output
    """
    content = result.get("content")
    if isinstance(content, list):
        texts = [
            segment["text"]
            for segment in content
            if isinstance(segment, dict)
            and segment.get("type") == "text"
            and isinstance(segment.get("text"), str)
        ]
        if texts:
            return " ".join(texts)

    return json.dumps(result, separators=(",", ":"))


async def call_tool(
    transport: StdioTransport,
    name: str,
    arguments: dict[str, Any],
) -> ToolResult:
    """Invoke one tool on the provider.

    Args:
        transport: A started transport
        name: Tool name from the catalog
        arguments: Argument object for the tool

    Returns:
        ToolResult: The normalized, successful result

    Raises:
        ToolInvocationError: If the provider reports an error
        ProviderTimeout: If the provider does not answer in time
        ProviderProtocolError: If the response cannot be parsed
    """
    logger.info(f"Calling tool {name}")
    logger.debug(f"Tool {name} arguments: {arguments}")

    response = await transport.request(
        "tools/call", {"name": name, "arguments": arguments}
    )

    if isinstance(response, ProviderFailure):
        raise ToolInvocationError(f"Tool '{name}' failed: {response.message}")

    text = normalize_tool_output(response.result)

    if response.result.get("isError"):
        raise ToolInvocationError(f"Tool '{name}' failed: {text}")

    logger.info(f"Tool {name} returned {len(text)} characters")
    return ToolResult(text=text, raw=response.result)
