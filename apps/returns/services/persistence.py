"""
Helpers shared by the return services: caller checks and database error
wrapping.
"""

import logging
from contextlib import contextmanager

from django.db import DatabaseError

from .exceptions import ReturnPersistenceError, UnauthenticatedError

logger = logging.getLogger(__name__)


def require_user(user) -> None:
    """
    Reject calls without an authenticated caller.

    Raises:
        UnauthenticatedError: If user is None or anonymous
    """
    if user is None or not getattr(user, 'is_authenticated', False):
        raise UnauthenticatedError("Authentication required")


@contextmanager
def persistence_errors(operation: str, **context):
    """
    Translate database failures into ReturnPersistenceError.

    The failure is logged with the operation name and context before
    being re-raised.
    """
    try:
        yield
    except DatabaseError as exc:
        logger.exception("Return persistence failure in %s %s", operation, context)
        raise ReturnPersistenceError(f"{operation} failed: {exc}") from exc
