from typing import Optional

CONNECTION_ERROR_MESSAGE = "Connection error"


class TrackerError(Exception):
    """Base class for every error raised by the tracker package."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigError(TrackerError):
    pass


class BackendError(TrackerError):
    """Non-2xx response. ``message`` is the backend's ``error`` field verbatim."""

    def __init__(self, status: int, message: str, path: Optional[str] = None, verbatim: bool = True):
        super().__init__(message)
        self.status = status
        self.path = path
        self.verbatim = verbatim  # False when the body carried no message

    def __repr__(self) -> str:
        return f"BackendError({self.status}, {self.message!r})"


class ConnectionFailed(TrackerError):
    def __init__(self, detail: str = ""):
        super().__init__(CONNECTION_ERROR_MESSAGE)
        self.detail = detail


class MalformedResponse(TrackerError):
    pass
