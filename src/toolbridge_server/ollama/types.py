"""Type definitions for Ollama integration."""

from dataclasses import dataclass
from typing import Any


@dataclass
class ModelInfo:
    """Information about an Ollama model.

    Attributes:
        name: Full model name (e.g., "llama3.1:8b")
        family: Model family (e.g., "llama")
        parameter_size: Human-readable parameter count (e.g., "8.0B")
        capabilities: List of model capabilities (e.g., ["completion", "tools"])
        context_length: Maximum context window size in tokens
    """

    name: str
    family: str
    parameter_size: str
    capabilities: list[str]
    context_length: int

    @property
    def supports_tools(self) -> bool:
        """Whether the model advertises function calling."""
        return "tools" in self.capabilities

    @staticmethod
    def from_ollama_model(model_name: str, model_data: Any) -> "ModelInfo":
        """Create a ModelInfo instance from an Ollama show response.

        Args:
            model_name: The name the model was looked up by
            model_data: Raw show response (object or dict)

        Returns:
            ModelInfo: Parsed model information
        """

        # Helper to get value from either object attribute or dict key
        def get_value(obj: Any, key: str, default: Any = None) -> Any:
            if isinstance(obj, dict):
                return obj.get(key, default)
            if hasattr(obj, key):
                return getattr(obj, key, default)
            return default

        details = get_value(model_data, "details", {}) or {}
        family = get_value(details, "family", "unknown") or "unknown"
        parameter_size = get_value(details, "parameter_size", "unknown") or "unknown"

        # Default to completion if not specified
        capabilities = list(get_value(model_data, "capabilities", None) or ["completion"])

        modelinfo = get_value(model_data, "modelinfo", {}) or {}
        context_length = 2048
        context_key = f"{family}.context_length"
        if isinstance(modelinfo, dict) and context_key in modelinfo:
            context_length = int(modelinfo[context_key])
        elif isinstance(modelinfo, dict) and "context_length" in modelinfo:
            context_length = int(modelinfo["context_length"])

        return ModelInfo(
            name=model_name,
            family=family,
            parameter_size=parameter_size,
            capabilities=capabilities,
            context_length=context_length,
        )
