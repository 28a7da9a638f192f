"""Chat turn endpoint.

This module exposes the turn orchestrator over HTTP. Failures are not
handled here: every ToolBridgeError propagates to the exception handler
registered in create_app(), which renders the uniform error body.
"""

import logging

from fastapi import APIRouter, Depends

from toolbridge_server.dependencies import get_turn_orchestrator
from toolbridge_server.models.chat import (
    ErrorResponse,
    TurnMessage,
    TurnRequest,
    TurnResponse,
)
from toolbridge_server.services.orchestrator import TurnOrchestrator, prepare_history

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


@router.post(
    "",
    response_model=TurnResponse,
    responses={500: {"model": ErrorResponse}},
)
async def run_turn(
    request_body: TurnRequest,
    orchestrator: TurnOrchestrator = Depends(get_turn_orchestrator),
) -> TurnResponse:
    """Run one conversation turn.

    The model sees the whole tool catalog and decides whether to call a
    tool. If it does, the tool runs on the provider and the model answers
    again with the tool's output in view.

    Args:
        request_body: The new user message and prior history
        orchestrator: Injected turn orchestrator

    Returns:
        TurnResponse with the new messages, in order
    """
    history = prepare_history(
        (message.role, message.content) for message in request_body.history
    )

    logger.info(f"Received turn with {len(request_body.history)} history messages")

    outcome = await orchestrator.run_turn(
        user_message=request_body.user_message,
        history=history,
    )

    return TurnResponse(
        new_messages=[
            TurnMessage(role=message.role, content=message.content)
            for message in outcome.messages
        ]
    )
