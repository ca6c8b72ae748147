"""Errors raised (or warned) by the medal engine."""


class MedalEngineError(Exception):
    """Base class for all recoverable engine errors."""
    pass


class ValidationError(MedalEngineError, ValueError):
    """Raised when a score or band value is rejected.

    The rejected write is never applied: the previous value is kept.
    """
    pass


class NotFoundError(MedalEngineError, KeyError):
    """Raised for an unknown sample id or band id."""

    def __str__(self) -> str:
        # KeyError repr()s its argument, which reads badly in messages
        return str(self.args[0]) if self.args else ""


class PersistenceError(MedalEngineError):
    """A single row failed to reach the backing store.

    Attributes:
        error_kind: Short machine-readable category (e.g. "timeout",
            "network", "http_503", "not_found")
        sample_id: The row that failed, when known
    """

    def __init__(self, message: str, error_kind: str = "backend", sample_id=None):
        super().__init__(message)
        self.error_kind = error_kind
        self.sample_id = sample_id


class ConfigurationError(MedalEngineError):
    """Required settings are missing or invalid."""
    pass


class MalformedBandWarning(UserWarning):
    """An active band has min > max and will never match any aggregate."""
    pass
