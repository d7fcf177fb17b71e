"""
Summary aggregator.

Joins gift entries, their return records and relationship labels into
ReturnManagementSummary projections and computes the derived figures:

    total_return_value = return_items_cost + funeral_gift_amount + offering_total
    return_rate        = total_return_value / amount   (0.0 when amount is 0)
    outstanding_amount = max(0, ceil(amount * 0.30) - total_return_value)

Summaries are computed on demand and never stored.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import UUID

from django.conf import settings
from django.core.cache import cache

from apps.koudens.models import KoudenEntry
from apps.koudens.services import list_entries, allocated_offering_values
from apps.returns.cache import summaries_cache_key
from apps.returns.models import ReturnEntryRecord, ReturnStatus

from .persistence import require_user, persistence_errors
from .record_repository import list_return_records

logger = logging.getLogger(__name__)


# Return-rate bands (fractions of the gift amount)
LOWER_TARGET_RATE = 0.30
UPPER_TARGET_RATE = 0.50

UNDER_RETURNED = 'under_returned'
ON_TARGET = 'on_target'
OVER_RETURNED = 'over_returned'


@dataclass
class ReturnManagementSummary:
    """Derived view of one gift entry and its return obligation."""

    # Gift entry
    kouden_id: UUID
    kouden_entry_id: UUID
    entry_name: str
    organization: str
    position: str
    relationship_id: Optional[UUID]
    relationship_name: Optional[str]
    amount: int
    attendance_type: str
    has_offering: bool

    # Return record (placeholder values when there is none)
    has_return_record: bool
    return_record_id: Optional[UUID]
    return_status: str
    status_display: str
    return_items: List[Dict] = field(default_factory=list)
    funeral_gift_amount: int = 0
    return_items_cost: int = 0
    additional_return_amount: int = 0
    needs_additional_return: bool = False
    return_method: str = ''
    arrangement_date: Optional[date] = None
    remarks: str = ''
    shipping_postal_code: str = ''
    shipping_address: str = ''
    shipping_phone_number: str = ''
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Derived figures
    offering_total: int = 0
    total_amount: int = 0
    total_return_value: int = 0
    return_rate: float = 0.0
    rate_band: str = UNDER_RETURNED
    outstanding_amount: int = 0


def classify_return_rate(rate: float) -> str:
    """Band a return rate: under 30%, 30-50% inclusive, over 50%."""
    if rate < LOWER_TARGET_RATE:
        return UNDER_RETURNED
    if rate <= UPPER_TARGET_RATE:
        return ON_TARGET
    return OVER_RETURNED


def calculate_return_rate(total_return_value: int, amount: int) -> float:
    if not amount or amount <= 0:
        return 0.0
    return total_return_value / amount


def calculate_outstanding_amount(total_return_value: int, amount: int) -> int:
    """Shortfall to the 30% lower bound, rounded up to whole currency units."""
    if not amount or amount <= 0:
        return 0
    target = -(-amount * 3 // 10)
    return max(0, target - total_return_value)


def summarize_entry(
    *,
    entry: KoudenEntry,
    record: Optional[ReturnEntryRecord],
    offering_total: int = 0
) -> ReturnManagementSummary:
    """
    Build the summary of one gift entry.

    Pure calculation: entry.relationship should already be loaded.
    """
    relationship = entry.relationship
    amount = entry.amount or 0

    if record is not None:
        items_cost = record.return_items_cost or 0
        funeral_gift = record.funeral_gift_amount or 0
        additional = record.additional_return_amount or 0
        status = record.return_status
    else:
        items_cost = funeral_gift = additional = 0
        status = ReturnStatus.PENDING

    total_return_value = items_cost + funeral_gift + offering_total
    rate = calculate_return_rate(total_return_value, amount)

    summary = ReturnManagementSummary(
        kouden_id=entry.kouden_id,
        kouden_entry_id=entry.id,
        entry_name=entry.name,
        organization=entry.organization,
        position=entry.position,
        relationship_id=relationship.id if relationship else None,
        relationship_name=relationship.name if relationship else None,
        amount=amount,
        attendance_type=entry.attendance_type,
        has_offering=entry.has_offering,
        has_return_record=record is not None,
        return_record_id=record.id if record is not None else None,
        return_status=str(status),
        status_display=ReturnStatus(status).label,
        funeral_gift_amount=funeral_gift,
        return_items_cost=items_cost,
        additional_return_amount=additional,
        needs_additional_return=additional > 0,
        offering_total=offering_total,
        total_amount=amount + offering_total,
        total_return_value=total_return_value,
        return_rate=rate,
        rate_band=classify_return_rate(rate),
        outstanding_amount=calculate_outstanding_amount(total_return_value, amount),
    )

    if record is not None:
        summary.return_items = list(record.return_items or [])
        summary.return_method = record.return_method
        summary.arrangement_date = record.arrangement_date
        summary.remarks = record.remarks
        summary.shipping_postal_code = record.shipping_postal_code
        summary.shipping_address = record.shipping_address
        summary.shipping_phone_number = record.shipping_phone_number
        summary.created_at = record.created_at
        summary.updated_at = record.updated_at

    return summary


def build_summaries(*, kouden_id: UUID) -> List[ReturnManagementSummary]:
    """
    One summary per gift entry of a ledger, newest entry first.

    Entries without a return record get a placeholder with zero amounts.
    """
    with persistence_errors('build_summaries', kouden_id=kouden_id):
        entries = list(list_entries(kouden_id=kouden_id).select_related('return_record'))
        offering_totals = allocated_offering_values(entry_ids=[e.id for e in entries])

    return [
        summarize_entry(
            entry=entry,
            record=getattr(entry, 'return_record', None),
            offering_total=offering_totals.get(entry.id, 0),
        )
        for entry in entries
    ]


def get_cached_summaries(*, kouden_id: UUID) -> List[ReturnManagementSummary]:
    """build_summaries behind the ledger-scoped cache key."""
    key = summaries_cache_key(kouden_id)
    summaries = cache.get(key)
    if summaries is None:
        summaries = build_summaries(kouden_id=kouden_id)
        cache.set(key, summaries, settings.RETURNS_SUMMARY_CACHE_TIMEOUT)
        logger.debug("Cached %d return summaries for kouden %s", len(summaries), kouden_id)
    return summaries


def get_all_for_bulk_edit(*, user, kouden_id: UUID) -> List[ReturnManagementSummary]:
    """
    Every return record of a ledger as summaries, newest record first.

    No row cap is applied; bulk editing needs the complete working set.

    Raises:
        UnauthenticatedError: If user is not authenticated
    """
    require_user(user)

    with persistence_errors('get_all_for_bulk_edit', kouden_id=kouden_id):
        records = list(list_return_records(kouden_id=kouden_id))
        offering_totals = allocated_offering_values(
            entry_ids=[record.kouden_entry_id for record in records]
        )

    return [
        summarize_entry(
            entry=record.kouden_entry,
            record=record,
            offering_total=offering_totals.get(record.kouden_entry_id, 0),
        )
        for record in records
    ]


def get_ledger_return_statistics(*, kouden_id: UUID) -> Dict:
    """
    Aggregate return progress of a ledger.

    Returns:
        Dict with entry/record counts, counts per status and rate band,
        and totals of gifts, returned value and outstanding amount
    """
    summaries = build_summaries(kouden_id=kouden_id)

    status_counts = {status: 0 for status in ReturnStatus.values}
    band_counts = {UNDER_RETURNED: 0, ON_TARGET: 0, OVER_RETURNED: 0}
    total_gift_amount = 0
    total_return_value = 0
    total_outstanding = 0
    records = 0

    for summary in summaries:
        total_gift_amount += summary.amount
        total_return_value += summary.total_return_value
        total_outstanding += summary.outstanding_amount
        band_counts[summary.rate_band] += 1
        if summary.has_return_record:
            records += 1
            status_counts[summary.return_status] += 1

    return {
        'total_entries': len(summaries),
        'entries_with_record': records,
        'entries_without_record': len(summaries) - records,
        'status_counts': status_counts,
        'rate_band_counts': band_counts,
        'total_gift_amount': total_gift_amount,
        'total_return_value': total_return_value,
        'total_outstanding_amount': total_outstanding,
        'overall_return_rate': calculate_return_rate(total_return_value, total_gift_amount),
    }
