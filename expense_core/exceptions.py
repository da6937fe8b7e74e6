"""Domain-specific exceptions for the expense tracker core."""

class ValidationError(ValueError):
    """Raised when a draft, field set or request does not meet validation requirements."""


class RecordNotFoundError(LookupError):
    """Raised by entry surfaces when an expense cannot be located."""


class PersistenceError(IOError):
    """Raised by storage backends when a slot cannot be read or written."""
