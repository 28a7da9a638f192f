"""Error taxonomy for toolbridge-server.

Every failure that can abort a turn derives from ToolBridgeError. The HTTP
layer maps all of them to the same response shape: {"error": "<message>"}
with a uniform failure status, so the message text is the only thing that
distinguishes one failure from another for callers.
"""


class ToolBridgeError(Exception):
    """Base class for all turn-aborting failures."""

    status_code: int = 500


class ProviderUnavailable(ToolBridgeError):
    """The tool provider process could not be spawned or has exited."""


class ProviderTimeout(ToolBridgeError):
    """The tool provider did not answer within the bounded wait."""


class ProviderProtocolError(ToolBridgeError):
    """A provider message could not be parsed, correlated, or validated."""


class NoToolsAvailable(ToolBridgeError):
    """The provider reported an empty tool catalog."""


class ModelUnavailable(ToolBridgeError):
    """The chat model call failed or produced no response."""


class ToolInvocationError(ToolBridgeError):
    """The provider reported a failure while executing a tool."""


class InitializationError(ToolBridgeError):
    """First-time session setup failed.

    The underlying provider-side failure is attached as ``__cause__``.
    """


class ArgumentParseFallback(ValueError):
    """Raised when a call intent's raw arguments are not a JSON object.

    This never aborts a turn: the orchestrator catches it, logs it, and
    invokes the tool with an empty argument set instead.
    """
