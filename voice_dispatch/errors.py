"""Exception types raised inside the dispatch bridge."""


class BridgeError(Exception):
    """Base class for dispatch bridge errors."""


class RealtimeConnectionError(BridgeError):
    """The AI leg could not be opened or was lost."""


class FunctionCallError(BridgeError):
    """A function call from the AI leg could not be executed."""


class CallStoreError(BridgeError):
    """The external record store rejected or failed a request."""
