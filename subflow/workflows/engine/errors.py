from typing import Optional


class EngineError(Exception):
    """Base class for all engine errors."""
    pass


class UnknownNodeTypeError(EngineError):
    """Raised when a node type has no registered handler."""
    pass


class PluginError(EngineError):
    """Base class for errors that abort a plugin invocation."""

    def __init__(self, message: str, plugin_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.plugin_id = plugin_id


class MalformedIdentifierError(PluginError):
    """Raised when a plugin identifier cannot be parsed."""
    pass


class PluginUnauthorizedError(PluginError):
    """Raised when the caller lacks permission on a personal plugin."""
    pass


class PluginNotFoundError(PluginError):
    """Raised when the plugin store has no plugin for the lookup key."""
    pass


class PluginHasNoInputError(PluginError):
    """Raised when a plugin graph declares no plugin input node."""
    pass


class DispatchFailureError(PluginError):
    """Raised when the graph dispatcher fails to run a plugin graph."""
    pass


class PluginNestingError(PluginError):
    """Raised when a nested plugin call is rejected before it starts."""
    pass


class PluginDepthExceededError(PluginNestingError):
    """Raised when plugins are nested deeper than the configured limit."""
    pass


class PluginCycleError(PluginNestingError):
    """Raised when a plugin (directly or indirectly) invokes itself."""
    pass
