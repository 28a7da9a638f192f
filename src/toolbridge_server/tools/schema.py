"""Conversion of the tool catalog into function-calling schemas.

The catalog is the single source of truth for what the model may call:
every descriptor becomes exactly one function declaration, in catalog order,
with no filtering or renaming.
"""

from typing import Any, Iterable

from toolbridge_server.provider.types import ToolDescriptor


def to_function_declarations(tools: Iterable[ToolDescriptor]) -> list[dict[str, Any]]:
    """Project tool descriptors onto function declarations.

    Args:
        tools: Tool descriptors (usually a ToolCatalog)

    Returns:
        list[dict]: [{"name", "description", "parameters"}, ...] in input order
    """
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameter_schema,
        }
        for tool in tools
    ]


def to_ollama_tools(declarations: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Wrap function declarations in the tool format of the Ollama chat API."""
    return [{"type": "function", "function": declaration} for declaration in declarations]
