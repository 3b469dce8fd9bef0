"""Error taxonomy for the document assistant client.

Network-class errors come from the request gateway. Precondition errors are
raised locally, before any request is attempted or any state is touched.
"""


class GatewayError(Exception):
    """Base class for failures of an outbound call."""

    pass


class RequestTimeout(GatewayError):
    """Raised when a call exceeds its time budget and is cancelled."""

    def __init__(self, endpoint: str, timeout: float | None = None) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        message = f"Request to {endpoint} timed out"
        if timeout is not None:
            message = f"{message} after {timeout:g}s"
        super().__init__(message)


class NetworkError(GatewayError):
    """Raised when no response was received."""

    pass


class HttpError(GatewayError):
    """Raised for non-2xx responses.

    Attributes:
        status: HTTP status code.
        detail: Server-provided error detail, or a generic status message.
    """

    def __init__(self, status: int, detail: str) -> None:
        self.status = status
        self.detail = detail
        super().__init__(detail)


class ChatRejectedError(Exception):
    """Base class for chat submissions rejected before any request."""

    pass


class EmptyMessageError(ChatRejectedError):
    """Raised for empty or whitespace-only chat input."""

    def __init__(self) -> None:
        super().__init__("Message is empty")


class BusyError(ChatRejectedError):
    """Raised when a chat call is already outstanding."""

    def __init__(self) -> None:
        super().__init__("A message is already being sent")


class DisconnectedError(ChatRejectedError):
    """Raised when the remote service is known to be unreachable."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        message = "API server is not reachable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SessionIndexError(IndexError):
    """Raised when a session index is out of range."""

    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(f"Session index {index} out of range (0..{size - 1})")


class InvalidTransitionError(Exception):
    """Raised when an upload file status change would break monotonicity."""

    pass


class UploadValidationError(Exception):
    """Raised when a file cannot be accepted for upload."""

    pass
