"""
Domain-specific exceptions for returns app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""

from rest_framework.exceptions import APIException

from apps.koudens.services.exceptions import KoudenNotFoundError, KoudenEntryNotFoundError


class ReturnsServiceError(Exception):
    """Base exception for all returns service errors."""
    pass


class UnauthenticatedError(ReturnsServiceError):
    """Raised when a mutating operation is called without a resolved user."""
    pass


class DuplicateReturnRecordError(ReturnsServiceError):
    """Raised when a gift entry already has a return record."""
    pass


class ForbiddenFieldError(ReturnsServiceError):
    """Raised when a field outside the update allow-list is targeted."""
    pass


class InvalidFieldValueError(ReturnsServiceError):
    """Raised when a value cannot be stored in the targeted field."""
    pass


class ReturnRecordNotFoundError(ReturnsServiceError):
    """Raised when a return record does not exist."""
    pass


class InvalidFilterError(ReturnsServiceError):
    """Raised when bulk filters, updates or page parameters are malformed."""
    pass


class InvalidReturnItemError(ReturnsServiceError):
    """Raised when a return item line is malformed."""
    pass


class DuplicateItemMasterError(ReturnsServiceError):
    """Raised when a ledger already has an item master with the same name."""
    pass


class ItemMasterNotFoundError(ReturnsServiceError):
    """Raised when a return item master does not exist."""
    pass


class ReturnPersistenceError(ReturnsServiceError):
    """Raised when the database rejects a read or write."""
    pass


class ConflictError(APIException):
    """Resource already exists."""
    status_code = 409
    default_detail = 'Resource already exists.'
    default_code = 'conflict'


__all__ = [
    'ReturnsServiceError',
    'UnauthenticatedError',
    'DuplicateReturnRecordError',
    'ForbiddenFieldError',
    'InvalidFieldValueError',
    'ReturnRecordNotFoundError',
    'KoudenNotFoundError',
    'KoudenEntryNotFoundError',
    'InvalidFilterError',
    'InvalidReturnItemError',
    'DuplicateItemMasterError',
    'ItemMasterNotFoundError',
    'ReturnPersistenceError',
    'ConflictError',
]
