"""Tool catalog endpoint."""

import logging

from fastapi import APIRouter, Depends

from toolbridge_server.dependencies import get_session_manager
from toolbridge_server.models.chat import ErrorResponse
from toolbridge_server.models.tools import ToolListResponse, ToolResponse
from toolbridge_server.sessions import ToolSessionManager
from toolbridge_server.tools.schema import to_function_declarations

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tools", tags=["tools"])


@router.get(
    "",
    response_model=ToolListResponse,
    responses={500: {"model": ErrorResponse}},
)
async def list_tools(
    session_manager: ToolSessionManager = Depends(get_session_manager),
) -> ToolListResponse:
    """List the tools offered to the model.

    Starts the provider session if no turn has done so yet.

    Args:
        session_manager: Injected session manager

    Returns:
        ToolListResponse: The catalog, as the model sees it
    """
    session = await session_manager.get_session()
    declarations = to_function_declarations(session.catalog)

    logger.debug(f"Listing {len(declarations)} tools")

    return ToolListResponse(
        tools=[ToolResponse(**declaration) for declaration in declarations]
    )
