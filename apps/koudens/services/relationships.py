"""
Relationship lookup.
"""

from typing import Dict, List
from uuid import UUID

from apps.koudens.models import Relationship


def list_relationships(*, kouden_id: UUID) -> List[Dict]:
    """
    List the relationships defined for a ledger.

    Returns:
        List of {'id', 'name'} dicts ordered by name
    """
    return list(
        Relationship.objects
        .filter(kouden_id=kouden_id)
        .order_by('name')
        .values('id', 'name')
    )
