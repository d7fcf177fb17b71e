"""
Offering allocation service.

An offering (flowers, food) can be shared by several givers; each giver's
share is stored as an OfferingAllocation. The summed share counts towards
what a giver has received in return.
"""

from typing import Dict, Iterable
from uuid import UUID

from django.db.models import Sum

from apps.koudens.models import OfferingAllocation


def allocated_offering_value(*, entry_id: UUID) -> int:
    """Total offering value allocated to one gift entry (0 when none)."""
    total = (
        OfferingAllocation.objects
        .filter(kouden_entry_id=entry_id)
        .aggregate(total=Sum('allocated_amount'))['total']
    )
    return total or 0


def allocated_offering_values(*, entry_ids: Iterable[UUID]) -> Dict[UUID, int]:
    """
    Total allocated offering value for many gift entries in one query.

    Entries without any allocation map to 0.
    """
    entry_ids = list(entry_ids)
    values = {entry_id: 0 for entry_id in entry_ids}
    if not entry_ids:
        return values

    rows = (
        OfferingAllocation.objects
        .filter(kouden_entry_id__in=entry_ids)
        .values('kouden_entry_id')
        .annotate(total=Sum('allocated_amount'))
    )
    for row in rows:
        values[row['kouden_entry_id']] = row['total'] or 0
    return values
