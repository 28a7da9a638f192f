"""Stdio transport for the external tool provider process.

The provider is a child process that speaks the Model Context Protocol over
its standard streams. StdioTransport owns that process through the MCP SDK
(``stdio_client`` plus ``ClientSession``): it spawns it, performs the
initialize handshake, and logs whatever the child writes to stderr. Results
and JSON-RPC errors come back as ProviderSuccess / ProviderFailure, and every
other failure is mapped onto the server's error taxonomy.

The SDK's context managers run on anyio task groups, which must be entered
and exited by the same task. Sessions are started from one task and closed
from another (the lifespan), so a dedicated runner task owns them for the
whole session lifetime.
"""

import asyncio
import contextlib
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import IO, Any

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError
from mcp.types import Implementation, LoggingMessageNotificationParams
from pydantic import ValidationError

from toolbridge_server.errors import (
    ProviderProtocolError,
    ProviderTimeout,
    ProviderUnavailable,
    ToolBridgeError,
)

logger = logging.getLogger(__name__)

# Error codes the SDK reports for a closed connection and an expired read timeout
CONNECTION_CLOSED = -32000
REQUEST_TIMEOUT = 408

# Provider stderr lines can be long stack traces
STREAM_LIMIT = 16 * 1024 * 1024

CLOSE_GRACE_SECONDS = 5.0

_PROVIDER_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL,
    "emergency": logging.CRITICAL,
}


@dataclass(frozen=True)
class ProviderSuccess:
    """A correlated response carrying a JSON-RPC result object."""

    result: dict[str, Any]


@dataclass(frozen=True)
class ProviderFailure:
    """A correlated response carrying a JSON-RPC error object."""

    code: int
    message: str
    data: Any = None


ProviderResponse = ProviderSuccess | ProviderFailure


def resolve_executable(command: str) -> str:
    """Resolve the provider command to an executable path.

    Args:
        command: A command name on PATH or a path to an executable

    Returns:
        str: The resolved executable path

    Raises:
        ProviderUnavailable: If the command does not resolve
    """
    resolved = shutil.which(command)
    if resolved:
        return resolved

    if Path(command).is_file():
        return command

    raise ProviderUnavailable(f"Tool provider executable not found: {command}")


class StdioTransport:
    """MCP client session bound to a single provider child process.

    One instance spawns at most one process. Requests may be issued
    concurrently from any task; each one is bounded by a timeout.

    Attributes:
        command: Executable name or path
        args: Arguments passed to the executable
        env: Variables passed to the child on top of the SDK's inherited baseline
        cwd: Working directory of the child (None for the server's cwd)
        request_timeout: Default bounded wait for request() in seconds
        startup_timeout: Bounded wait for the initialize handshake in seconds
        server_info: serverInfo reported by the provider during initialize
    """

    def __init__(
        self,
        command: str,
        args: list[str] | None = None,
        env: dict[str, str] | None = None,
        cwd: str | Path | None = None,
        request_timeout: float = 60.0,
        startup_timeout: float = 30.0,
        client_name: str = "toolbridge-server",
        client_version: str = "0.1.0",
    ) -> None:
        self.command = command
        self.args = list(args or [])
        self.env = dict(env or {})
        self.cwd = cwd
        self.request_timeout = request_timeout
        self.startup_timeout = startup_timeout
        self.client_name = client_name
        self.client_version = client_version

        self.server_info: dict[str, Any] = {}

        self._session: ClientSession | None = None
        self._runner: asyncio.Task[None] | None = None
        self._ready: asyncio.Future[None] | None = None
        self._stop: asyncio.Event | None = None
        self._errlog: IO[str] | None = None
        self._stderr_task: asyncio.Task[None] | None = None
        self._closing = False

    @property
    def is_running(self) -> bool:
        """Whether the MCP session is up."""
        return (
            self._session is not None
            and self._runner is not None
            and not self._runner.done()
        )

    async def start(self) -> None:
        """Spawn the provider and complete the initialize handshake.

        Returns once the provider has answered ``initialize``, which is the
        signal that it accepts requests.

        Raises:
            ProviderUnavailable: If the executable does not resolve or spawning fails
            ProviderTimeout: If the handshake does not complete in time
            ProviderProtocolError: If the provider rejects the handshake
        """
        if self._runner is not None:
            logger.debug("Tool provider already started")
            return

        executable = resolve_executable(self.command)
        logger.info(f"Spawning tool provider: {executable} {' '.join(self.args)}".rstrip())

        params = StdioServerParameters(
            command=executable,
            args=self.args,
            env=self.env,
            cwd=self.cwd,
        )

        self._closing = False
        self._ready = asyncio.get_running_loop().create_future()
        self._stop = asyncio.Event()
        self._open_stderr_pipe()
        self._runner = asyncio.create_task(self._run(params))

        try:
            await asyncio.wait_for(
                asyncio.shield(self._ready), timeout=self.startup_timeout
            )
        except asyncio.TimeoutError:
            self._ready.cancel()
            await self.close()
            raise ProviderTimeout(
                f"Tool provider did not answer 'initialize' within {self.startup_timeout:g}s"
            ) from None
        except ToolBridgeError:
            await self.close()
            raise

        logger.info(
            f"Tool provider ready: {self.server_info.get('name', 'unknown')} "
            f"{self.server_info.get('version', '')}".rstrip()
        )

    async def request(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> ProviderResponse:
        """Send one request and wait for its correlated response.

        Supports catalog discovery (``tools/list``, with an optional
        ``cursor``) and tool invocation (``tools/call``, with ``name`` and
        ``arguments``).

        Args:
            method: MCP method name
            params: Optional params object
            timeout: Bounded wait in seconds (defaults to request_timeout)

        Returns:
            ProviderResponse: ProviderSuccess or ProviderFailure

        Raises:
            ProviderTimeout: If no response arrives in time
            ProviderProtocolError: If the response cannot be parsed or validated
            ProviderUnavailable: If the session is not running or the connection drops
        """
        session = self._require_session()
        params = params or {}
        wait = self.request_timeout if timeout is None else timeout

        if method == "tools/list":
            call = session.list_tools(cursor=params.get("cursor"))
        elif method == "tools/call":
            call = session.call_tool(
                params["name"],
                params.get("arguments") or {},
                read_timeout_seconds=timedelta(seconds=wait),
            )
        else:
            raise ProviderProtocolError(f"Unsupported tool provider method: {method}")

        logger.debug(f"Sending provider request: {method}")

        try:
            result = await asyncio.wait_for(call, timeout=wait)
        except asyncio.TimeoutError:
            raise ProviderTimeout(
                f"Tool provider did not answer '{method}' within {wait:g}s"
            ) from None
        except McpError as e:
            if e.error.code == REQUEST_TIMEOUT:
                raise ProviderTimeout(
                    f"Tool provider did not answer '{method}' within {wait:g}s"
                ) from e
            if e.error.code == CONNECTION_CLOSED:
                raise ProviderUnavailable(
                    f"Tool provider connection closed during '{method}': {e.error.message}"
                ) from e
            return ProviderFailure(
                code=e.error.code, message=e.error.message, data=e.error.data
            )
        except (anyio.ClosedResourceError, anyio.BrokenResourceError, anyio.EndOfStream) as e:
            raise ProviderUnavailable(
                f"Tool provider connection closed during '{method}'"
            ) from e
        except (ValidationError, RuntimeError) as e:
            raise ProviderProtocolError(
                f"Tool provider sent an invalid '{method}' response: {e}"
            ) from e

        return ProviderSuccess(
            result=result.model_dump(by_alias=True, exclude_none=True, mode="json")
        )

    async def close(self) -> None:
        """End the MCP session and stop the provider process.

        The runner leaves the SDK contexts, which close stdin and then
        terminate the process if it does not exit on its own.
        """
        runner = self._runner
        if runner is None:
            return

        self._closing = True

        if self._session is None:
            # Still in the handshake; cancelling makes the SDK kill the process
            runner.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await runner
        else:
            assert self._stop is not None
            self._stop.set()
            try:
                await asyncio.wait_for(asyncio.shield(runner), timeout=CLOSE_GRACE_SECONDS)
            except asyncio.TimeoutError:
                logger.warning("Tool provider session did not shut down in time, cancelling")
                runner.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await runner

        if self._errlog is not None:
            self._errlog.close()
        if self._stderr_task is not None:
            try:
                await asyncio.wait_for(self._stderr_task, timeout=CLOSE_GRACE_SECONDS)
            except asyncio.TimeoutError:
                logger.debug("Tool provider stderr still open after shutdown")

        self._runner = None
        self._session = None
        self._stop = None
        self._errlog = None
        self._stderr_task = None

        logger.info("Tool provider stopped")

    def _require_session(self) -> ClientSession:
        if self._session is None or self._runner is None or self._runner.done():
            raise ProviderUnavailable("Tool provider has not been started")
        return self._session

    async def _run(self, params: StdioServerParameters) -> None:
        """Own the SDK contexts from spawn until close() asks to stop."""
        assert self._ready is not None and self._stop is not None

        try:
            async with stdio_client(params, errlog=self._errlog) as (read, write):
                async with ClientSession(
                    read,
                    write,
                    client_info=Implementation(
                        name=self.client_name, version=self.client_version
                    ),
                    logging_callback=self._log_provider_message,
                ) as session:
                    result = await session.initialize()
                    self.server_info = result.serverInfo.model_dump(exclude_none=True)
                    self._session = session

                    if not self._ready.done():
                        self._ready.set_result(None)

                    await self._stop.wait()
        except Exception as e:
            self._fail_start(_startup_error(_unwrap_group(e), params.command))
        finally:
            self._session = None
            if not self._closing:
                logger.warning("Tool provider session ended")

    def _fail_start(self, exc: ToolBridgeError) -> None:
        if self._ready is not None and not self._ready.done():
            self._ready.set_exception(exc)
        else:
            logger.error(str(exc))

    async def _log_provider_message(self, params: LoggingMessageNotificationParams) -> None:
        level = _PROVIDER_LOG_LEVELS.get(params.level, logging.INFO)
        source = f"[provider {params.logger}]" if params.logger else "[provider]"
        logger.log(level, f"{source} {params.data}")

    def _open_stderr_pipe(self) -> None:
        read_fd, write_fd = os.pipe()
        self._errlog = os.fdopen(write_fd, "w")
        self._stderr_task = asyncio.create_task(
            self._drain_stderr(os.fdopen(read_fd, "rb"))
        )

    async def _drain_stderr(self, pipe: IO[bytes]) -> None:
        """Forward provider stderr to the log, line by line."""
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=STREAM_LIMIT)
        pipe_transport, _ = await loop.connect_read_pipe(
            lambda: asyncio.StreamReaderProtocol(reader), pipe
        )

        try:
            while True:
                try:
                    line = await reader.readline()
                except ValueError:
                    logger.warning("Dropped an oversized stderr line from the tool provider")
                    continue

                if not line:
                    return

                text = line.decode("utf-8", errors="replace").rstrip()
                if text:
                    logger.info(f"[provider stderr] {text}")
        finally:
            pipe_transport.close()


def _unwrap_group(exc: BaseException) -> BaseException:
    """Return the single failure inside an anyio exception group."""
    while isinstance(exc, BaseExceptionGroup) and len(exc.exceptions) == 1:
        exc = exc.exceptions[0]
    return exc


def _startup_error(exc: BaseException, command: str) -> ToolBridgeError:
    """Map a failure raised while opening the session to the error taxonomy."""
    if isinstance(exc, ToolBridgeError):
        return exc
    if isinstance(exc, OSError):
        return ProviderUnavailable(f"Failed to spawn tool provider {command}: {exc}")
    if isinstance(exc, McpError):
        if exc.error.code == CONNECTION_CLOSED:
            return ProviderUnavailable(
                f"Tool provider exited during initialize: {exc.error.message}"
            )
        return ProviderProtocolError(
            f"Tool provider rejected initialize: {exc.error.message}"
        )
    if isinstance(exc, (ValidationError, RuntimeError)):
        return ProviderProtocolError(f"Tool provider sent an invalid initialize response: {exc}")
    return ProviderUnavailable(f"Tool provider session failed: {exc}")
