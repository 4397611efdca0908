"""Errors raised while handling a wizard submission"""

from typing import Optional


class SubmissionError(Exception):
    """Base class for failures reported back to the wizard front-end.

    ``error`` and ``message`` are safe to show to the caller; anything more
    specific stays in the server log.
    """

    status_code = 500
    error = "Failed to process submission"
    message = "An error occurred while processing your request. Please try again or contact support."

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None):
        if error is not None:
            self.error = error
        if message is not None:
            self.message = message
        super().__init__(self.error)

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}

    def headers(self) -> dict:
        return {}


class ValidationError(SubmissionError):
    """Raised when a submission is missing its required fields"""

    status_code = 400
    error = "Missing required fields"
    message = "Email and company name are required"


class TransportError(SubmissionError):
    """Raised when the mail transport fails to accept an email"""

    pass


class ConfigurationWarning(UserWarning):
    """Emitted at startup when mail settings are missing"""

    pass


class RateLimitExceeded(SubmissionError):
    """Raised when one client sends too many submissions inside the window"""

    status_code = 429
    error = "Too many requests"
    message = "Too many submissions from this IP, please try again later."

    def __init__(self, retry_after: int):
        super().__init__()
        self.retry_after = retry_after

    def headers(self) -> dict:
        return {"Retry-After": str(self.retry_after)}
