"""Tool schema conversion layer.

This package converts the provider's tool catalog into the function-calling
schema the chat model understands.
"""

from toolbridge_server.tools.schema import to_function_declarations, to_ollama_tools

__all__ = ["to_function_declarations", "to_ollama_tools"]
