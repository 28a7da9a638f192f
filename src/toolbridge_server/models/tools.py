"""Pydantic models for the tool catalog API."""

from typing import Any

from pydantic import BaseModel, Field


class ToolResponse(BaseModel):
    """A tool as offered to the model."""

    name: str = Field(description="Tool name")
    description: str = Field(default="", description="Tool description")
    parameters: dict[str, Any] = Field(
        default_factory=dict, description="JSON Schema of the tool arguments"
    )


class ToolListResponse(BaseModel):
    """Response for GET /api/v1/tools."""

    tools: list[ToolResponse] = Field(description="Tools in catalog order")
