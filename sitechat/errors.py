"""Error taxonomy shared by the request layer, gateway and session."""


class ProtocolError(Exception):
    """Base class for every failure the protocol layer reports."""


class ParseError(ProtocolError):
    """A tag marker was present but its body did not match the grammar.

    Only ever logged; the tag grammar never raises it to callers.
    """


class NetworkError(ProtocolError):
    """Transport-level failure. Retried by the request layer."""

    retryable = True


class RequestTimeout(NetworkError):
    def __init__(self, after_ms: int):
        self.after_ms = after_ms
        super().__init__(f"Request timeout after {after_ms}ms")


class ConnectionFailure(NetworkError):
    pass


class ServerFailure(NetworkError):
    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body[:200]}")


class ClientRejected(ProtocolError):
    """4xx response. Fatal for the call, never retried."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body[:200]}")


class InvalidResponseShape(ProtocolError):
    """A transport success whose payload is unusable."""


class NoPendingPreview(ProtocolError):
    """Approval requested while nothing is awaiting approval."""


class TurnInProgress(ProtocolError):
    """A turn was started while a previous one is still in flight."""
