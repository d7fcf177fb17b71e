"""
Return record repository.

Create, read and delete return records. There is exactly one record per
gift entry; duplicates are detected from the database unique constraint.
Every mutation schedules cache invalidation for the affected ledger after
the transaction commits.
"""

import logging
from datetime import date
from typing import Any, Iterable, List, Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.koudens.services import get_entry
from apps.returns.cache import CacheInvalidator, schedule_invalidation
from apps.returns.models import ReturnEntryRecord, ReturnStatus

from .exceptions import (
    DuplicateReturnRecordError,
    InvalidFieldValueError,
    ReturnRecordNotFoundError,
)
from .persistence import require_user, persistence_errors
from .return_items import normalize_return_items, calculate_items_cost

logger = logging.getLogger(__name__)


@transaction.atomic
def create_return_record(
    *,
    user,
    kouden_entry_id: UUID,
    return_status: str = ReturnStatus.PENDING,
    return_items: Optional[Iterable[Any]] = None,
    funeral_gift_amount: int = 0,
    return_method: str = '',
    arrangement_date: Optional[date] = None,
    remarks: str = '',
    shipping_postal_code: str = '',
    shipping_address: str = '',
    shipping_phone_number: str = '',
    invalidator: Optional[CacheInvalidator] = None
) -> ReturnEntryRecord:
    """
    Create the return record for a gift entry.

    This operation:
    1. Verifies the caller and the gift entry
    2. Normalizes the item lines and derives their cost
    3. Inserts the record (the unique constraint rejects a second one)
    4. Schedules cache invalidation for the ledger

    Args:
        user: Caller creating the record
        kouden_entry_id: UUID of the gift entry
        return_status: Initial status (defaults to PENDING)
        return_items: Item lines; their cost becomes return_items_cost
        funeral_gift_amount: Value returned in kind at the funeral
        invalidator: Cache invalidator override

    Returns:
        Created ReturnEntryRecord with generated columns loaded

    Raises:
        UnauthenticatedError: If user is not authenticated
        KoudenEntryNotFoundError: If the gift entry doesn't exist
        DuplicateReturnRecordError: If the entry already has a record
        InvalidReturnItemError: If an item line is malformed
        InvalidFieldValueError: If status or amounts are invalid
    """
    require_user(user)

    if return_status not in ReturnStatus.values:
        raise InvalidFieldValueError(f"Invalid return status: {return_status}")
    if isinstance(funeral_gift_amount, bool) or not isinstance(funeral_gift_amount, int) or funeral_gift_amount < 0:
        raise InvalidFieldValueError("funeral_gift_amount must be a non-negative integer")

    items = normalize_return_items(return_items)

    with persistence_errors('create_return_record', kouden_entry_id=kouden_entry_id):
        entry = get_entry(entry_id=kouden_entry_id)
        try:
            with transaction.atomic():
                record = ReturnEntryRecord.objects.create(
                    kouden_entry=entry,
                    return_status=return_status,
                    return_items=items,
                    return_items_cost=calculate_items_cost(items),
                    funeral_gift_amount=funeral_gift_amount,
                    return_method=return_method or '',
                    arrangement_date=arrangement_date,
                    remarks=remarks or '',
                    shipping_postal_code=shipping_postal_code or '',
                    shipping_address=shipping_address or '',
                    shipping_phone_number=shipping_phone_number or '',
                    created_by=user,
                )
        except IntegrityError:
            # Only the one-record-per-entry constraint is a duplicate
            if ReturnEntryRecord.objects.filter(kouden_entry_id=kouden_entry_id).exists():
                raise DuplicateReturnRecordError(
                    f"Kouden entry {kouden_entry_id} already has a return record"
                )
            raise

    schedule_invalidation(entry.kouden_id, invalidator)
    logger.info("Created return record %s for entry %s", record.id, entry.id)

    record.refresh_from_db()
    return record


def get_return_record(*, kouden_entry_id: UUID) -> Optional[ReturnEntryRecord]:
    """Return the record of a gift entry, or None when it has none."""
    with persistence_errors('get_return_record', kouden_entry_id=kouden_entry_id):
        return (
            ReturnEntryRecord.objects
            .select_related('kouden_entry', 'kouden_entry__relationship')
            .filter(kouden_entry_id=kouden_entry_id)
            .first()
        )


def get_return_record_by_id(*, record_id: UUID) -> ReturnEntryRecord:
    """
    Get a return record by its own ID.

    Raises:
        ReturnRecordNotFoundError: If the record doesn't exist
    """
    with persistence_errors('get_return_record_by_id', record_id=record_id):
        record = (
            ReturnEntryRecord.objects
            .select_related('kouden_entry', 'kouden_entry__relationship')
            .filter(id=record_id)
            .first()
        )
    if record is None:
        raise ReturnRecordNotFoundError(f"Return record with ID {record_id} not found")
    return record


def list_return_records(*, kouden_id: UUID) -> QuerySet[ReturnEntryRecord]:
    """
    All return records of a ledger, newest first.

    The queryset is lazy; callers evaluate it inside persistence_errors.
    """
    return (
        ReturnEntryRecord.objects
        .filter(kouden_entry__kouden_id=kouden_id)
        .select_related('kouden_entry', 'kouden_entry__relationship')
        .order_by('-created_at', '-id')
    )


@transaction.atomic
def delete_return_record(
    *,
    user,
    kouden_entry_id: UUID,
    invalidator: Optional[CacheInvalidator] = None
) -> bool:
    """
    Delete the return record of a gift entry.

    Deleting a record that does not exist is not an error.

    Returns:
        True if a row was removed

    Raises:
        UnauthenticatedError: If user is not authenticated
    """
    require_user(user)

    with persistence_errors('delete_return_record', kouden_entry_id=kouden_entry_id):
        kouden_id = (
            ReturnEntryRecord.objects
            .filter(kouden_entry_id=kouden_entry_id)
            .values_list('kouden_entry__kouden_id', flat=True)
            .first()
        )
        if kouden_id is None:
            return False
        deleted, _ = ReturnEntryRecord.objects.filter(kouden_entry_id=kouden_entry_id).delete()

    schedule_invalidation(kouden_id, invalidator)
    logger.info("Deleted return record of entry %s", kouden_entry_id)
    return deleted > 0


@transaction.atomic
def delete_return_records(
    *,
    user,
    record_ids: Iterable[UUID],
    kouden_id: Optional[UUID] = None,
    invalidator: Optional[CacheInvalidator] = None
) -> int:
    """
    Delete many return records by their IDs.

    Unknown IDs are ignored, as are records outside kouden_id when it is
    given. Every distinct ledger touched is invalidated once; an empty ID
    list does nothing.

    Returns:
        Number of records removed

    Raises:
        UnauthenticatedError: If user is not authenticated
    """
    require_user(user)

    record_ids: List[UUID] = list(record_ids)
    if not record_ids:
        return 0

    with persistence_errors('delete_return_records', count=len(record_ids)):
        queryset = ReturnEntryRecord.objects.filter(id__in=record_ids)
        if kouden_id is not None:
            queryset = queryset.filter(kouden_entry__kouden_id=kouden_id)
        kouden_ids = set(queryset.values_list('kouden_entry__kouden_id', flat=True))
        if not kouden_ids:
            return 0
        deleted, _ = queryset.delete()

    for touched_id in kouden_ids:
        schedule_invalidation(touched_id, invalidator)
    logger.info("Deleted %d return record(s) across %d kouden(s)", deleted, len(kouden_ids))
    return deleted
