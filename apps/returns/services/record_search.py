"""
Filtered reads of a ledger's return records for the paged list.

Paging itself is done by ReturnRecordCursorPagination over the queryset
built here.
"""

from typing import Optional
from uuid import UUID

from django.db.models import Q, QuerySet

from apps.returns.models import ReturnEntryRecord, ReturnStatus

from .exceptions import InvalidFilterError
from .record_repository import list_return_records


ALL_STATUSES = 'all'


def search_return_records(
    *,
    kouden_id: UUID,
    search: Optional[str] = None,
    status: Optional[str] = None
) -> QuerySet[ReturnEntryRecord]:
    """
    Return records of a ledger narrowed by status and free text.

    Args:
        kouden_id: UUID of the ledger
        search: Case-insensitive substring of entry name or organization;
            blank is ignored
        status: ReturnStatus value, or 'all' for no status filter

    Raises:
        InvalidFilterError: If status is not a known return status
    """
    if status and status != ALL_STATUSES and status not in ReturnStatus.values:
        raise InvalidFilterError(f"Invalid return status: {status}")

    queryset = list_return_records(kouden_id=kouden_id)

    if status and status != ALL_STATUSES:
        queryset = queryset.filter(return_status=status)

    search = (search or '').strip()
    if search:
        queryset = queryset.filter(
            Q(kouden_entry__name__icontains=search)
            | Q(kouden_entry__organization__icontains=search)
        )

    return queryset
