"""
Ledger entry reader.

Read-only access to ledgers and gift entries for the return engine.
"""

from uuid import UUID

from django.db.models import QuerySet

from apps.koudens.models import Kouden, KoudenEntry

from .exceptions import KoudenNotFoundError, KoudenEntryNotFoundError


def get_kouden(*, kouden_id: UUID) -> Kouden:
    """
    Get a ledger by ID.

    Raises:
        KoudenNotFoundError: If the ledger doesn't exist
    """
    try:
        return Kouden.objects.get(id=kouden_id)
    except Kouden.DoesNotExist:
        raise KoudenNotFoundError(f"Kouden with ID {kouden_id} not found")


def get_entry(*, entry_id: UUID) -> KoudenEntry:
    """
    Get a gift entry by ID with its relationship loaded.

    Args:
        entry_id: UUID of the gift entry

    Returns:
        KoudenEntry instance

    Raises:
        KoudenEntryNotFoundError: If the entry doesn't exist
    """
    try:
        return (
            KoudenEntry.objects
            .select_related('relationship', 'kouden')
            .get(id=entry_id)
        )
    except KoudenEntry.DoesNotExist:
        raise KoudenEntryNotFoundError(f"Kouden entry with ID {entry_id} not found")


def list_entries(*, kouden_id: UUID) -> QuerySet[KoudenEntry]:
    """All gift entries of a ledger, newest first."""
    return (
        KoudenEntry.objects
        .filter(kouden_id=kouden_id)
        .select_related('relationship')
        .order_by('-created_at', '-id')
    )
