"""
Field update gateway.

Single-field edits of a return record, as made by inline table editing.
Only fields in UPDATABLE_FIELDS may be written; the generated
additional_return_amount column can never be targeted. Concurrent edits
are last-write-wins.
"""

import logging
from typing import Any, Dict, Mapping, Optional
from uuid import UUID

from django.core.exceptions import ValidationError, FieldDoesNotExist
from django.db import models, transaction
from django.utils import timezone

from apps.returns.cache import CacheInvalidator, schedule_invalidation
from apps.returns.models import ReturnEntryRecord

from .exceptions import (
    ForbiddenFieldError,
    InvalidFieldValueError,
    ReturnRecordNotFoundError,
)
from .persistence import require_user, persistence_errors
from .return_items import calculate_items_cost

logger = logging.getLogger(__name__)


UPDATABLE_FIELDS = frozenset({
    'return_status',
    'funeral_gift_amount',
    'return_method',
    'arrangement_date',
    'remarks',
    'shipping_postal_code',
    'shipping_address',
    'shipping_phone_number',
    'return_items_cost',
})


def check_updatable_field(field_name: str) -> None:
    """
    Raises:
        ForbiddenFieldError: If field_name is not in the allow-list
    """
    if field_name not in UPDATABLE_FIELDS:
        raise ForbiddenFieldError(f"Field '{field_name}' cannot be updated")


def clean_field_value(field_name: str, value: Any) -> Any:
    """
    Coerce and validate a value with the model field's own rules.

    Raises:
        InvalidFieldValueError: If the value is rejected
    """
    try:
        field = ReturnEntryRecord._meta.get_field(field_name)
    except FieldDoesNotExist:
        raise ForbiddenFieldError(f"Field '{field_name}' cannot be updated")

    # int() would accept True and truncate 1500.9
    if isinstance(field, models.IntegerField):
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise InvalidFieldValueError(f"'{field_name}' must be an integer")

    # Text columns are NOT NULL; null clears them
    if value is None and field.empty_strings_allowed and not field.null:
        value = ''

    try:
        return field.clean(value, None)
    except ValidationError as exc:
        raise InvalidFieldValueError(
            f"Invalid value for '{field_name}': {'; '.join(exc.messages)}"
        )


@transaction.atomic
def _apply_update(
    queryset,
    *,
    values: Dict[str, Any],
    lookup: str,
    invalidator: Optional[CacheInvalidator]
) -> ReturnEntryRecord:
    with persistence_errors('load_return_record', lookup=lookup):
        record = queryset.select_related('kouden_entry').first()
    if record is None:
        raise ReturnRecordNotFoundError(f"Return record for {lookup} not found")

    # Stored cost follows the lines while any exist
    if 'return_items_cost' in values and record.return_items:
        values = {**values, 'return_items_cost': calculate_items_cost(record.return_items)}

    fields = sorted(values)
    with persistence_errors('update_field', record_id=record.id, fields=fields):
        ReturnEntryRecord.objects.filter(id=record.id).update(
            **values, updated_at=timezone.now()
        )

    schedule_invalidation(record.kouden_entry.kouden_id, invalidator)
    logger.info("Updated %s of return record %s", ', '.join(fields), record.id)

    record.refresh_from_db()
    return record


def update_field(
    *,
    user,
    record_id: UUID,
    field_name: str,
    value: Any,
    invalidator: Optional[CacheInvalidator] = None
) -> ReturnEntryRecord:
    """
    Update one field of a return record identified by its ID.

    This operation:
    1. Rejects fields outside the allow-list before touching the database
    2. Validates the value with the model field
    3. Writes the field and updated_at in a single UPDATE
    4. Schedules cache invalidation for the ledger

    Args:
        user: Caller performing the edit
        record_id: UUID of the return record
        field_name: Field to write (see UPDATABLE_FIELDS)
        value: New value, coerced by the model field
        invalidator: Cache invalidator override

    Returns:
        Refreshed ReturnEntryRecord

    Raises:
        UnauthenticatedError: If user is not authenticated
        ForbiddenFieldError: If the field may not be updated
        InvalidFieldValueError: If the value is invalid for the field
        ReturnRecordNotFoundError: If the record doesn't exist
    """
    require_user(user)
    check_updatable_field(field_name)
    value = clean_field_value(field_name, value)

    return _apply_update(
        ReturnEntryRecord.objects.filter(id=record_id),
        values={field_name: value},
        lookup=f"record {record_id}",
        invalidator=invalidator,
    )


def update_field_by_entry_id(
    *,
    user,
    kouden_entry_id: UUID,
    field_name: str,
    value: Any,
    invalidator: Optional[CacheInvalidator] = None
) -> ReturnEntryRecord:
    """
    Update one field of the return record belonging to a gift entry.

    Same rules as update_field; only the lookup key differs.
    """
    require_user(user)
    check_updatable_field(field_name)
    value = clean_field_value(field_name, value)

    return _apply_update(
        ReturnEntryRecord.objects.filter(kouden_entry_id=kouden_entry_id),
        values={field_name: value},
        lookup=f"entry {kouden_entry_id}",
        invalidator=invalidator,
    )


def update_fields(
    *,
    user,
    kouden_entry_id: UUID,
    values: Mapping[str, Any],
    invalidator: Optional[CacheInvalidator] = None
) -> ReturnEntryRecord:
    """
    Update several fields of a gift entry's return record at once.

    Every field is checked against the allow-list and validated before
    anything is written; one bad field rejects the whole edit. The fields
    are then written together in a single UPDATE.

    Raises:
        UnauthenticatedError: If user is not authenticated
        ForbiddenFieldError: If any field may not be updated
        InvalidFieldValueError: If values is empty or any value is invalid
        ReturnRecordNotFoundError: If the entry has no return record
    """
    require_user(user)
    if not values:
        raise InvalidFieldValueError("No fields to update")

    for field_name in values:
        check_updatable_field(field_name)
    cleaned = {
        field_name: clean_field_value(field_name, value)
        for field_name, value in values.items()
    }

    return _apply_update(
        ReturnEntryRecord.objects.filter(kouden_entry_id=kouden_entry_id),
        values=cleaned,
        lookup=f"entry {kouden_entry_id}",
        invalidator=invalidator,
    )
