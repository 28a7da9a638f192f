"""Health check response model."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health check endpoint.

    Attributes:
        status: Health status indicator ("ok" or "error").
        version: The version of toolbridge-server.
        ollama_connected: Whether the Ollama server answered.
        ollama_host: The Ollama host URL.
        model: The configured chat model.
        session_state: Provider session state.
        tool_count: Number of tools in the catalog, once discovered.
    """

    status: str = Field(..., description="Health status of the service")
    version: str = Field(..., description="Version of toolbridge-server")
    ollama_connected: bool | None = Field(
        default=None,
        description="Whether Ollama is connected",
    )
    ollama_host: str | None = Field(
        default=None,
        description="Ollama host URL",
    )
    model: str | None = Field(default=None, description="Configured chat model")
    session_state: str = Field(
        default="uninitialized",
        description="Provider session state (uninitialized, initializing, ready)",
    )
    tool_count: int | None = Field(
        default=None,
        description="Number of discovered tools (null until the session is ready)",
    )
