"""ToolSessionManager: lazy, at-most-once setup of the provider session.

The first turn that needs tools spawns the provider process and discovers
its catalog; every later turn reuses the same session. Turns that arrive
while setup is in flight wait for that same setup instead of starting their
own. A failed setup leaves the manager uninitialized so the next turn can
try again from scratch.
"""

import asyncio
import contextlib
import logging
import os
from datetime import datetime, timezone
from typing import Callable

from toolbridge_server.config import ToolBridgeSettings
from toolbridge_server.errors import (
    InitializationError,
    ProviderUnavailable,
    ToolBridgeError,
)
from toolbridge_server.ollama.client import OllamaClient
from toolbridge_server.provider.catalog import build_catalog, discover_tools
from toolbridge_server.provider.transport import StdioTransport
from toolbridge_server.provider.types import ToolCatalog
from toolbridge_server.services.model import ChatModel
from toolbridge_server.sessions.types import SessionState, ToolSession

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], StdioTransport]


def build_transport(settings: ToolBridgeSettings) -> StdioTransport:
    """Create the provider transport described by the settings.

    Variables named in ``provider_required_env`` are copied from the server
    environment; ``provider_env`` entries are added on top.

    Raises:
        ProviderUnavailable: If a required variable is not set
    """
    missing = [name for name in settings.provider_required_env if not os.environ.get(name)]
    if missing:
        raise ProviderUnavailable(f"Missing {' or '.join(missing)}")

    env = {name: os.environ[name] for name in settings.provider_required_env}
    env.update(settings.provider_env)

    return StdioTransport(
        command=settings.provider_command,
        args=settings.provider_args,
        env=env,
        cwd=settings.resolved_provider_cwd,
        request_timeout=settings.provider_request_timeout,
        startup_timeout=settings.provider_startup_timeout,
    )


class ToolSessionManager:
    """Owns the single process-wide ToolSession.

    Attributes:
        settings: Application settings
        chat_model: Model adapter shared by every session
    """

    def __init__(
        self,
        settings: ToolBridgeSettings,
        ollama_client: OllamaClient,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        self.settings = settings
        self.chat_model = ChatModel(
            client=ollama_client,
            model=settings.model,
            options=settings.chat_options or None,
        )
        self._transport_factory = transport_factory or (lambda: build_transport(settings))
        self._session: ToolSession | None = None
        self._initializing: asyncio.Task[ToolSession] | None = None

    @property
    def session(self) -> ToolSession | None:
        """The ready session, or None if not initialized."""
        return self._session

    @property
    def state(self) -> SessionState:
        if self._session is not None:
            return SessionState.READY
        if self._initializing is not None and not self._initializing.done():
            return SessionState.INITIALIZING
        return SessionState.UNINITIALIZED

    async def get_session(self) -> ToolSession:
        """Return the session, initializing it on first use.

        Concurrent callers share one initialization; a caller that goes
        away does not cancel it for the others.

        Raises:
            InitializationError: If the provider could not be started or
                reported no usable tools
        """
        if self._session is not None:
            return self._session

        if self._initializing is None or self._initializing.done():
            logger.info("Initializing tool provider session")
            task = asyncio.create_task(self._initialize())
            task.add_done_callback(self._initialization_finished)
            self._initializing = task

        return await asyncio.shield(self._initializing)

    async def close(self) -> None:
        """Stop the provider process, if one was started."""
        pending = self._initializing
        if pending is not None and not pending.done():
            pending.cancel()
            with contextlib.suppress(asyncio.CancelledError, ToolBridgeError):
                await pending

        if self._session is not None:
            await self._session.transport.close()
            self._session = None
            logger.info("Tool provider session closed")

    async def _initialize(self) -> ToolSession:
        try:
            transport = self._transport_factory()
        except ToolBridgeError as e:
            raise InitializationError(f"Failed to initialize tool provider: {e}") from e

        try:
            await transport.start()
            catalog = await self._load_catalog(transport)
        except ToolBridgeError as e:
            await transport.close()
            raise InitializationError(f"Failed to initialize tool provider: {e}") from e
        except BaseException:
            await transport.close()
            raise

        session = ToolSession(
            transport=transport,
            chat_model=self.chat_model,
            catalog=catalog,
            started_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        )
        self._session = session

        logger.info(f"Tool provider session ready with {len(catalog)} tools")
        return session

    async def _load_catalog(self, transport: StdioTransport) -> ToolCatalog:
        if self.settings.catalog_mode == "static":
            logger.info("Using the configured static tool catalog, discovery skipped")
            return build_catalog(self.settings.static_tools)
        return await discover_tools(transport)

    def _initialization_finished(self, task: asyncio.Task[ToolSession]) -> None:
        if self._initializing is task:
            self._initializing = None

        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.error(f"Tool provider session initialization failed: {error}")
