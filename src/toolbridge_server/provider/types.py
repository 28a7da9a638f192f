"""Type definitions for the tool provider integration.

This module contains the dataclasses describing what the provider exposes
(tool descriptors and the catalog built from them) and what a tool call
returns.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping

from toolbridge_server.errors import ProviderProtocolError


def _empty_object_schema() -> dict[str, Any]:
    return {"type": "object", "properties": {}}


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool exposed by the provider.

    Attributes:
        name: Unique tool name (e.g. "create-contact")
        description: Human-readable description shown to the model
        parameter_schema: JSON-Schema-like object describing the arguments
    """

    name: str
    description: str = ""
    parameter_schema: dict[str, Any] = field(default_factory=_empty_object_schema)

    @staticmethod
    def from_provider_entry(entry: Any) -> "ToolDescriptor":
        """Create a ToolDescriptor from one entry of a tools/list result.

        Args:
            entry: Raw tool entry ({"name", "description", "inputSchema"})

        Returns:
            ToolDescriptor: The validated descriptor

        Raises:
            ProviderProtocolError: If the entry does not describe a tool
        """
        if not isinstance(entry, Mapping):
            raise ProviderProtocolError(f"Tool entry is not an object: {entry!r}")

        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ProviderProtocolError(f"Tool entry has no valid name: {entry!r}")

        description = entry.get("description")
        if description is None:
            description = ""
        elif not isinstance(description, str):
            raise ProviderProtocolError(f"Tool '{name}' has a non-string description")

        schema = entry.get("inputSchema")
        if schema is None:
            schema = _empty_object_schema()
        elif not isinstance(schema, Mapping):
            raise ProviderProtocolError(f"Tool '{name}' has a malformed inputSchema")

        return ToolDescriptor(
            name=name,
            description=description,
            parameter_schema=dict(schema),
        )


class ToolCatalog:
    """Ordered, read-only collection of tool descriptors keyed by name."""

    def __init__(self, tools: list[ToolDescriptor]) -> None:
        by_name: dict[str, ToolDescriptor] = {}
        for tool in tools:
            if tool.name in by_name:
                raise ProviderProtocolError(f"Duplicate tool name in catalog: {tool.name}")
            by_name[tool.name] = tool

        self._tools = tuple(tools)
        self._by_name = by_name

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def names(self) -> list[str]:
        return [tool.name for tool in self._tools]


@dataclass
class ToolResult:
    """Normalized output of one tool call.

    Attributes:
        text: Text the model sees (joined text segments or a JSON rendering)
        raw: The provider's result object, kept for logging
    """

    text: str
    raw: dict[str, Any] = field(default_factory=dict)
