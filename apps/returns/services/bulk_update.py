"""
Bulk filter & update engine.

Selects the return records of a ledger through AND-combined predicates
over the record and its gift entry, then applies one update payload to
every match in a single UPDATE.

The match set is resolved first and the write targets those identifiers,
not the live predicate: a record that stops matching between the two
steps is still updated.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.koudens.models import AttendanceType
from apps.returns.cache import CacheInvalidator, schedule_invalidation
from apps.returns.models import ReturnEntryRecord, ReturnStatus

from .exceptions import InvalidFilterError
from .persistence import require_user, persistence_errors

logger = logging.getLogger(__name__)


FILTER_KEYS = frozenset({
    'amount_range',
    'relationship_ids',
    'current_statuses',
    'attendance_types',
    'has_offering',
})

UPDATE_KEYS = frozenset({
    'status',
    'return_method',
    'arrangement_date',
    'remarks',
    'return_items',
})


@dataclass
class BulkUpdateFilters:
    """Validated filter set; empty values impose no constraint."""
    amount_min: Optional[int] = None
    amount_max: Optional[int] = None
    relationship_ids: List[UUID] = field(default_factory=list)
    current_statuses: List[str] = field(default_factory=list)
    attendance_types: List[str] = field(default_factory=list)
    has_offering: Optional[bool] = None


@dataclass
class BulkUpdateData:
    """Validated update payload; None means leave the column unchanged."""
    status: Optional[str] = None
    return_method: Optional[str] = None
    arrangement_date: Optional[date] = None
    remarks: Optional[str] = None
    return_items: Optional[Any] = None

    def as_update_kwargs(self) -> Dict[str, Any]:
        kwargs = {}
        if self.status is not None:
            kwargs['return_status'] = self.status
        if self.return_method is not None:
            kwargs['return_method'] = self.return_method
        if self.arrangement_date is not None:
            kwargs['arrangement_date'] = self.arrangement_date
        if self.remarks is not None:
            kwargs['remarks'] = self.remarks
        return kwargs


def _amount_bound(value: Any, name: str) -> Optional[int]:
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise InvalidFilterError(f"amount_range.{name} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidFilterError(f"amount_range.{name} must be an integer")
    if number < 0:
        raise InvalidFilterError(f"amount_range.{name} must not be negative")
    return number


def _choice_list(values: Any, name: str, allowed) -> List[str]:
    if values is None:
        return []
    if isinstance(values, (str, bytes)) or not hasattr(values, '__iter__'):
        raise InvalidFilterError(f"{name} must be a list")
    result = []
    for value in values:
        if value not in allowed:
            raise InvalidFilterError(f"Invalid value in {name}: {value}")
        result.append(str(value))
    return result


def parse_filters(filters: Optional[Mapping[str, Any]]) -> BulkUpdateFilters:
    """
    Validate raw filters into BulkUpdateFilters.

    Raises:
        InvalidFilterError: On unknown keys or malformed values
    """
    if not filters:
        return BulkUpdateFilters()
    if not isinstance(filters, Mapping):
        raise InvalidFilterError("filters must be an object")

    unknown = set(filters) - FILTER_KEYS
    if unknown:
        raise InvalidFilterError(f"Unknown filter(s): {', '.join(sorted(unknown))}")

    parsed = BulkUpdateFilters()

    amount_range = filters.get('amount_range')
    if amount_range:
        if not isinstance(amount_range, Mapping):
            raise InvalidFilterError("amount_range must be an object")
        parsed.amount_min = _amount_bound(amount_range.get('min'), 'min')
        parsed.amount_max = _amount_bound(amount_range.get('max'), 'max')
        if (
            parsed.amount_min is not None
            and parsed.amount_max is not None
            and parsed.amount_min > parsed.amount_max
        ):
            raise InvalidFilterError("amount_range.min must not exceed amount_range.max")

    relationship_ids = filters.get('relationship_ids') or []
    if isinstance(relationship_ids, (str, bytes)):
        raise InvalidFilterError("relationship_ids must be a list")
    try:
        parsed.relationship_ids = [
            value if isinstance(value, UUID) else UUID(str(value))
            for value in relationship_ids
        ]
    except (TypeError, ValueError):
        raise InvalidFilterError("relationship_ids must contain UUIDs")

    parsed.current_statuses = _choice_list(
        filters.get('current_statuses'), 'current_statuses', ReturnStatus.values
    )
    parsed.attendance_types = _choice_list(
        filters.get('attendance_types'), 'attendance_types', AttendanceType.values
    )

    has_offering = filters.get('has_offering')
    if has_offering is not None and not isinstance(has_offering, bool):
        raise InvalidFilterError("has_offering must be a boolean")
    parsed.has_offering = has_offering

    return parsed


def parse_updates(updates: Optional[Mapping[str, Any]]) -> BulkUpdateData:
    """
    Validate a raw update payload into BulkUpdateData.

    Raises:
        InvalidFilterError: On unknown keys, a bad status or a bad date
    """
    if not updates:
        return BulkUpdateData()
    if not isinstance(updates, Mapping):
        raise InvalidFilterError("updates must be an object")

    unknown = set(updates) - UPDATE_KEYS
    if unknown:
        raise InvalidFilterError(f"Unknown update field(s): {', '.join(sorted(unknown))}")

    status = updates.get('status')
    if status is not None and status not in ReturnStatus.values:
        raise InvalidFilterError(f"Invalid return status: {status}")

    arrangement_date = updates.get('arrangement_date')
    if isinstance(arrangement_date, str):
        try:
            arrangement_date = parse_date(arrangement_date)
        except ValueError:
            arrangement_date = None
        if arrangement_date is None:
            raise InvalidFilterError("arrangement_date must be YYYY-MM-DD")
    elif arrangement_date is not None and not isinstance(arrangement_date, date):
        raise InvalidFilterError("arrangement_date must be a date")

    for key in ('return_method', 'remarks'):
        value = updates.get(key)
        if value is not None and not isinstance(value, str):
            raise InvalidFilterError(f"{key} must be a string")

    return BulkUpdateData(
        status=status,
        return_method=updates.get('return_method'),
        arrangement_date=arrangement_date,
        remarks=updates.get('remarks'),
        return_items=updates.get('return_items'),
    )


def filter_return_records(
    queryset: QuerySet[ReturnEntryRecord],
    filters: BulkUpdateFilters
) -> QuerySet[ReturnEntryRecord]:
    """Apply every supplied predicate to a return record queryset."""
    if filters.amount_min is not None:
        queryset = queryset.filter(kouden_entry__amount__gte=filters.amount_min)
    if filters.amount_max is not None:
        queryset = queryset.filter(kouden_entry__amount__lte=filters.amount_max)
    if filters.relationship_ids:
        queryset = queryset.filter(kouden_entry__relationship_id__in=filters.relationship_ids)
    if filters.current_statuses:
        queryset = queryset.filter(return_status__in=filters.current_statuses)
    if filters.attendance_types:
        queryset = queryset.filter(kouden_entry__attendance_type__in=filters.attendance_types)
    if filters.has_offering is not None:
        queryset = queryset.filter(kouden_entry__has_offering=filters.has_offering)
    return queryset


def bulk_update_return_records(
    *,
    user,
    kouden_id: UUID,
    filters: Optional[Mapping[str, Any]] = None,
    updates: Optional[Mapping[str, Any]] = None,
    invalidator: Optional[CacheInvalidator] = None
) -> int:
    """
    Apply one update payload to every return record matching the filters.

    This operation:
    1. Validates filters and updates before any read
    2. Resolves the matching record IDs in one joined query
    3. Returns 0 without writing when nothing matches
    4. Writes all matches in a single UPDATE with a uniform updated_at
    5. Schedules one cache invalidation for the ledger

    Args:
        user: Caller performing the update
        kouden_id: UUID of the ledger
        filters: amount_range, relationship_ids, current_statuses,
            attendance_types, has_offering (all optional)
        updates: status, return_method, arrangement_date, remarks,
            return_items (all optional)
        invalidator: Cache invalidator override

    Returns:
        Number of records matched and updated

    Raises:
        UnauthenticatedError: If user is not authenticated
        InvalidFilterError: If filters or updates are malformed
        ReturnPersistenceError: If the write fails (nothing is applied)
    """
    require_user(user)
    parsed_filters = parse_filters(filters)
    parsed_updates = parse_updates(updates)

    if parsed_updates.return_items is not None:
        # Item-level bulk edits are not applied
        logger.warning(
            "Bulk update for kouden %s ignored return_items payload", kouden_id
        )

    queryset = filter_return_records(
        ReturnEntryRecord.objects.filter(kouden_entry__kouden_id=kouden_id),
        parsed_filters,
    )
    with persistence_errors('bulk_update_match', kouden_id=kouden_id):
        record_ids = list(queryset.values_list('id', flat=True))

    if not record_ids:
        logger.info("Bulk update for kouden %s matched no records", kouden_id)
        return 0

    update_kwargs = parsed_updates.as_update_kwargs()
    update_kwargs['updated_at'] = timezone.now()

    with persistence_errors('bulk_update_write', kouden_id=kouden_id, count=len(record_ids)):
        with transaction.atomic():
            ReturnEntryRecord.objects.filter(id__in=record_ids).update(**update_kwargs)
            schedule_invalidation(kouden_id, invalidator)

    logger.info(
        "Bulk updated %d return record(s) in kouden %s (%s)",
        len(record_ids), kouden_id, ', '.join(sorted(update_kwargs))
    )
    return len(record_ids)
