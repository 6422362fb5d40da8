"""
Error taxonomy for examdeck.

Ingestion errors skip a single document; store errors are scoped to the
store or statement that failed; logic errors are caller mistakes that are
reported and turned into no-ops.
"""


class ExamDeckError(Exception):
    """Base class for all examdeck errors."""

    pass


class ValidationError(ExamDeckError):
    """Raised when a source document is malformed or incomplete."""

    pass


class StoreOpenError(ExamDeckError):
    """Raised when a store file cannot be opened or its schema created."""

    pass


class StatementError(ExamDeckError):
    """An individual read or write against an open store failed."""

    pass


class CapacityError(ExamDeckError):
    """Raised when a document holds more questions than the ingestion limit."""

    pass


class LogicError(ExamDeckError):
    """A caller violated an invariant (e.g. discarding an unanswered question)."""

    pass
