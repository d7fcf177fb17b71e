"""
Domain-specific exceptions for koudens app.

These exceptions represent lookup failures in the ledger entry store and
should be caught in views and converted to appropriate HTTP responses.
"""


class KoudensServiceError(Exception):
    """Base exception for all koudens service errors."""
    pass


class KoudenNotFoundError(KoudensServiceError):
    """Raised when a ledger does not exist."""
    pass


class KoudenEntryNotFoundError(KoudensServiceError):
    """Raised when a gift entry does not exist."""
    pass
