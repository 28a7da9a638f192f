"""Tool provider integration layer.

This package owns the external tool provider process: the stdio transport,
catalog discovery, and tool invocation.
"""

from toolbridge_server.provider.catalog import build_catalog, discover_tools
from toolbridge_server.provider.invocation import call_tool, normalize_tool_output
from toolbridge_server.provider.transport import (
    ProviderFailure,
    ProviderResponse,
    ProviderSuccess,
    StdioTransport,
)
from toolbridge_server.provider.types import ToolCatalog, ToolDescriptor, ToolResult

__all__ = [
    "StdioTransport",
    "ProviderResponse",
    "ProviderSuccess",
    "ProviderFailure",
    "ToolCatalog",
    "ToolDescriptor",
    "ToolResult",
    "build_catalog",
    "discover_tools",
    "call_tool",
    "normalize_tool_output",
]
