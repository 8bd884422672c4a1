"""Domain-specific exceptions for the expense tracker core services."""

class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements."""


class RecordNotFoundError(LookupError):
    """Raised when an expense record cannot be located."""


class ImportFormatError(ValueError):
    """Raised when an import payload is not a JSON array of records."""


class PersistenceError(IOError):
    """Raised when the persistence layer encounters unrecoverable issues."""
