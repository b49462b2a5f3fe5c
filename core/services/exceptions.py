class SourceError(Exception):
    """Base error for anything that goes wrong talking to an external platform."""

    def __init__(self, message, platform=None, status_code=None):
        super().__init__(message)
        self.platform = platform
        self.status_code = status_code


class TransientSourceError(SourceError):
    """Timeouts, connection failures, 429 and 5xx responses. Worth retrying."""


class MalformedSourceError(SourceError):
    """The platform answered, but not in the shape we parse."""
