"""Tracking error taxonomy, mapped to HTTP responses in core.middleware"""


class TrackingError(Exception):
    """Base class for errors raised by the tracking core"""
    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class InvalidInput(TrackingError):
    """Caller supplied a malformed sent record (e.g. missing id)"""
    status_code = 400
    public_message = "Invalid input"


class PersistenceFailure(TrackingError):
    """An event log append or truncate failed"""
    status_code = 500
    public_message = "Failed to persist tracking data"


class Unauthorized(TrackingError):
    """Admin operation attempted without a valid credential"""
    status_code = 401
    public_message = "Not authorized"
