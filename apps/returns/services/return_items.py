"""
Return item line operations.

A record's ``return_items`` is an ordered list of line items. Whenever the
list changes, ``return_items_cost`` is recomputed and written in the same
UPDATE, so the stored cost always equals the sum of the lines.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from apps.returns.cache import CacheInvalidator, schedule_invalidation
from apps.returns.models import ReturnEntryRecord

from .exceptions import InvalidReturnItemError, ReturnRecordNotFoundError
from .persistence import require_user, persistence_errors

logger = logging.getLogger(__name__)


@dataclass
class ReturnItem:
    """One line of a return: what was given, at what price, how many."""
    name: str
    unit_price: int
    quantity: int = 1
    notes: str = ''
    source_master_id: Optional[str] = None

    def cost(self) -> int:
        return self.unit_price * self.quantity


def _as_int(value: Any, field: str, minimum: int) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise InvalidReturnItemError(f"{field} must be an integer")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise InvalidReturnItemError(f"{field} must be an integer")
    if isinstance(value, float) and value != number:
        raise InvalidReturnItemError(f"{field} must be an integer")
    if number < minimum:
        raise InvalidReturnItemError(f"{field} must be at least {minimum}")
    return number


def parse_return_item(raw: Any) -> ReturnItem:
    """
    Validate one raw line (dict or ReturnItem) into a ReturnItem.

    Raises:
        InvalidReturnItemError: If the line is malformed
    """
    if isinstance(raw, ReturnItem):
        raw = asdict(raw)
    if not isinstance(raw, dict):
        raise InvalidReturnItemError("Return item must be an object")

    name = raw.get('name')
    if not isinstance(name, str) or not name.strip():
        raise InvalidReturnItemError("Return item name is required")

    notes = raw.get('notes') or ''
    if not isinstance(notes, str):
        raise InvalidReturnItemError("notes must be a string")

    source_master_id = raw.get('source_master_id')
    if source_master_id not in (None, ''):
        try:
            source_master_id = str(UUID(str(source_master_id)))
        except ValueError:
            raise InvalidReturnItemError("source_master_id must be a UUID")
    else:
        source_master_id = None

    return ReturnItem(
        name=name.strip(),
        unit_price=_as_int(raw.get('unit_price'), 'unit_price', 0),
        quantity=_as_int(raw.get('quantity', 1), 'quantity', 1),
        notes=notes,
        source_master_id=source_master_id,
    )


def normalize_return_items(items: Optional[Iterable[Any]]) -> List[Dict]:
    """Validate a list of lines and return them as plain dicts, order kept."""
    if items is None:
        return []
    if isinstance(items, (str, bytes, dict)):
        raise InvalidReturnItemError("return_items must be a list")
    return [asdict(parse_return_item(item)) for item in items]


def calculate_items_cost(items: Optional[Iterable[Any]]) -> int:
    """Sum of unit_price * quantity over all lines."""
    return sum(parse_return_item(item).cost() for item in (items or []))


def _get_record_for_update(record_id: UUID) -> ReturnEntryRecord:
    with persistence_errors('lock_return_record', record_id=record_id):
        record = (
            ReturnEntryRecord.objects
            .select_for_update(of=('self',))
            .select_related('kouden_entry')
            .filter(id=record_id)
            .first()
        )
    if record is None:
        raise ReturnRecordNotFoundError(f"Return record with ID {record_id} not found")
    return record


def _write_items(
    record: ReturnEntryRecord,
    items: List[Dict],
    invalidator: Optional[CacheInvalidator],
) -> ReturnEntryRecord:
    cost = calculate_items_cost(items)
    with persistence_errors('write_return_items', record_id=record.id):
        ReturnEntryRecord.objects.filter(id=record.id).update(
            return_items=items,
            return_items_cost=cost,
            updated_at=timezone.now(),
        )
    schedule_invalidation(record.kouden_entry.kouden_id, invalidator)
    logger.info(
        "Return items of record %s set to %d line(s), cost %d",
        record.id, len(items), cost
    )
    record.refresh_from_db()
    return record


@transaction.atomic
def set_return_items(
    *,
    user,
    record_id: UUID,
    items: Iterable[Any],
    invalidator: Optional[CacheInvalidator] = None
) -> ReturnEntryRecord:
    """
    Replace all return item lines of a record.

    Args:
        user: Caller performing the change
        record_id: UUID of the return record
        items: New lines, in display order
        invalidator: Cache invalidator override

    Returns:
        Refreshed ReturnEntryRecord

    Raises:
        UnauthenticatedError: If user is not authenticated
        InvalidReturnItemError: If a line is malformed
        ReturnRecordNotFoundError: If the record doesn't exist
    """
    require_user(user)
    normalized = normalize_return_items(items)
    record = _get_record_for_update(record_id)
    return _write_items(record, normalized, invalidator)


@transaction.atomic
def add_return_item(
    *,
    user,
    record_id: UUID,
    item: Any,
    invalidator: Optional[CacheInvalidator] = None
) -> ReturnEntryRecord:
    """Append one line to a record's return items."""
    require_user(user)
    line = asdict(parse_return_item(item))
    record = _get_record_for_update(record_id)
    items = normalize_return_items(record.return_items) + [line]
    return _write_items(record, items, invalidator)


@transaction.atomic
def remove_return_item(
    *,
    user,
    record_id: UUID,
    index: int,
    invalidator: Optional[CacheInvalidator] = None
) -> ReturnEntryRecord:
    """
    Remove the line at ``index`` from a record's return items.

    Raises:
        InvalidReturnItemError: If index is out of range
    """
    require_user(user)
    record = _get_record_for_update(record_id)
    items = normalize_return_items(record.return_items)
    if not isinstance(index, int) or index < 0 or index >= len(items):
        raise InvalidReturnItemError(f"No return item at index {index}")
    del items[index]
    return _write_items(record, items, invalidator)
