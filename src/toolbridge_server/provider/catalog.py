"""Tool catalog discovery.

The catalog is fetched once per provider session with ``tools/list`` and
never refreshed; tools the provider adds later stay invisible until the
server restarts.
"""

import logging
from typing import Any

from toolbridge_server.errors import NoToolsAvailable, ProviderProtocolError
from toolbridge_server.provider.transport import ProviderFailure, StdioTransport
from toolbridge_server.provider.types import ToolCatalog, ToolDescriptor

logger = logging.getLogger(__name__)

# Guards against a provider that keeps handing out cursors
MAX_CATALOG_PAGES = 100


def build_catalog(entries: list[Any]) -> ToolCatalog:
    """Validate raw tool entries and build a catalog.

    Args:
        entries: Raw tool entries in provider format

    Returns:
        ToolCatalog: The validated catalog

    Raises:
        NoToolsAvailable: If there are no entries
        ProviderProtocolError: If an entry is malformed or a name repeats
    """
    if not entries:
        raise NoToolsAvailable("No tools available from tool provider")

    tools = [ToolDescriptor.from_provider_entry(entry) for entry in entries]
    return ToolCatalog(tools)


async def discover_tools(transport: StdioTransport) -> ToolCatalog:
    """Ask the provider for its tools and build the catalog.

    Follows ``nextCursor`` pagination until the provider stops returning one.

    Args:
        transport: A started transport

    Returns:
        ToolCatalog: Every tool the provider reported, in provider order

    Raises:
        NoToolsAvailable: If the provider reports zero tools
        ProviderProtocolError: If the response is an error or malformed
        ProviderTimeout: If the provider does not answer in time
    """
    entries: list[Any] = []
    cursor: str | None = None

    for _ in range(MAX_CATALOG_PAGES):
        params = {"cursor": cursor} if cursor else {}
        response = await transport.request("tools/list", params)

        if isinstance(response, ProviderFailure):
            raise ProviderProtocolError(
                f"Tool provider failed to list tools: {response.message}"
            )

        page = response.result.get("tools")
        if not isinstance(page, list):
            raise ProviderProtocolError("tools/list response has no tools array")
        entries.extend(page)

        next_cursor = response.result.get("nextCursor")
        if not next_cursor:
            break
        cursor = str(next_cursor)
    else:
        raise ProviderProtocolError(
            f"tools/list did not finish within {MAX_CATALOG_PAGES} pages"
        )

    catalog = build_catalog(entries)
    logger.info(f"Discovered {len(catalog)} tools: {', '.join(catalog.names)}")
    return catalog
