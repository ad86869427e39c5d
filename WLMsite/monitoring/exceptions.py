class MonitoringError(Exception):
    """Base class for errors raised by the monitoring app."""


class EntryValidationError(MonitoringError):
    """A required field is missing or malformed; nothing was sent to the store."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or {}


class AuthError(MonitoringError):
    """No authenticated identity, or the identity's role may not do this."""


class NetworkError(MonitoringError):
    """The store or aggregation collaborator failed. Safe to retry."""


class FetchError(NetworkError):
    """An aggregation report could not be fetched."""


class DuplicateSubmission(MonitoringError):
    """The same submission token was already recorded."""
