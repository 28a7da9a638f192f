"""Pydantic models for the chat turn API.

Field names on the wire are camelCase (``userMessage``, ``newMessages``)
because existing chat front ends send and read them that way.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HistoryMessage(BaseModel):
    """A message from earlier in the conversation."""

    role: Literal["user", "assistant", "function"] = Field(
        description="Who produced the message"
    )
    content: str = Field(default="", description="Message text")


class TurnRequest(BaseModel):
    """Request body for POST /api/v1/chat."""

    user_message: str = Field(
        alias="userMessage",
        description="The new user message",
    )
    history: list[HistoryMessage] = Field(
        default_factory=list,
        description="Prior conversation, oldest first",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "userMessage": "Create a contact named Jane Doe, jane@example.com",
                    "history": [],
                },
                {
                    "userMessage": "What's the weather like?",
                    "history": [
                        {"role": "user", "content": "Hi"},
                        {"role": "assistant", "content": "Hello! How can I help?"},
                    ],
                },
            ]
        },
    )


class TurnMessage(BaseModel):
    """A message produced by a turn."""

    role: Literal["assistant", "function"] = Field(description="Message role")
    content: str = Field(description="Message text")


class TurnResponse(BaseModel):
    """Response body for POST /api/v1/chat.

    One assistant message for a direct answer. When a tool ran: an assistant
    acknowledgment, a function message with the tool output, and the final
    assistant answer.
    """

    new_messages: list[TurnMessage] = Field(
        alias="newMessages",
        description="Messages to append to the conversation, in order",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "newMessages": [
                    {
                        "role": "assistant",
                        "content": 'Called create-contact with {"fullname": "Jane Doe", "email": "jane@example.com"}',
                    },
                    {"role": "function", "content": "Contact created successfully"},
                    {"role": "assistant", "content": "Jane Doe has been added."},
                ]
            }
        },
    )


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    error: str = Field(description="What went wrong")
