"""Exception types raised inside paramlogger.

None of these ever reach an HTTP client: the middleware logs them through
the host logger and lets the request continue.
"""


class ParamLoggerError(Exception):
    """Base class for paramlogger errors."""


class FormExtractionError(ParamLoggerError):
    """Raised when a request body cannot be turned into form fields."""

    def __init__(self, method: str, path: str, reason: str):
        self.method = method
        self.path = path
        super().__init__(f"Could not extract form fields from {method} {path}: {reason}")
