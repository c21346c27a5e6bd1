# safespend/errors.py


class LedgerError(Exception):
    """Base class for every error surfaced to the presentation layer."""


class ValidationError(LedgerError, ValueError):
    """Malformed input; nothing was written to the store."""


class AdmissionError(LedgerError):
    """An expense was submitted for a month without recorded income."""


class StoreError(LedgerError):
    """The underlying transaction store failed to open, read or write."""


class PartialFailureError(StoreError):
    """A multi-step store mutation stopped half way.

    ``deleted_ids`` lists the rows that were already removed when the
    failure happened, so the caller can tell the user what to review.
    """

    def __init__(self, message, deleted_ids=()):
        super().__init__(message)
        self.deleted_ids = list(deleted_ids)


class SessionClosedError(LedgerError):
    """The session was disposed before or during the call."""
