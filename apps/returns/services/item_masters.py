"""
Return item master service.

Per-ledger catalogue of return gifts. Item lines copied from a master keep
a reference to it in ``source_master_id``.
"""

import logging
from dataclasses import asdict
from typing import Dict, Optional
from uuid import UUID

from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.koudens.services import get_kouden
from apps.returns.models import ReturnItemMaster

from .exceptions import DuplicateItemMasterError, InvalidReturnItemError, ItemMasterNotFoundError
from .persistence import require_user, persistence_errors
from .return_items import parse_return_item

logger = logging.getLogger(__name__)


EDITABLE_MASTER_FIELDS = frozenset({
    'name',
    'price',
    'description',
    'category',
    'image_url',
    'is_active',
    'sort_order',
    'recommended_amount_min',
    'recommended_amount_max',
})


def _validate_master(name, price, recommended_amount_min, recommended_amount_max) -> None:
    if not name:
        raise InvalidReturnItemError("Item master name is required")
    if isinstance(price, bool) or not isinstance(price, int) or price < 0:
        raise InvalidReturnItemError("price must be a non-negative integer")
    if (
        recommended_amount_min is not None
        and recommended_amount_max is not None
        and recommended_amount_min > recommended_amount_max
    ):
        raise InvalidReturnItemError("recommended_amount_min must not exceed recommended_amount_max")


@transaction.atomic
def create_item_master(
    *,
    user,
    kouden_id: UUID,
    name: str,
    price: int,
    description: str = '',
    category: str = '',
    image_url: str = '',
    is_active: bool = True,
    sort_order: int = 0,
    recommended_amount_min: Optional[int] = None,
    recommended_amount_max: Optional[int] = None
) -> ReturnItemMaster:
    """
    Add a return gift to a ledger's catalogue.

    Raises:
        UnauthenticatedError: If user is not authenticated
        KoudenNotFoundError: If the ledger doesn't exist
        InvalidReturnItemError: If name is blank, price is negative or
            the recommended band is inverted
        DuplicateItemMasterError: If the ledger already has this name
    """
    require_user(user)

    name = (name or '').strip()
    _validate_master(name, price, recommended_amount_min, recommended_amount_max)

    kouden = get_kouden(kouden_id=kouden_id)

    with persistence_errors('create_item_master', kouden_id=kouden_id):
        try:
            with transaction.atomic():
                master = ReturnItemMaster.objects.create(
                    kouden=kouden,
                    name=name,
                    price=price,
                    description=description or '',
                    category=category or '',
                    image_url=image_url or '',
                    is_active=is_active,
                    sort_order=sort_order,
                    recommended_amount_min=recommended_amount_min,
                    recommended_amount_max=recommended_amount_max,
                    created_by=user,
                )
        except IntegrityError:
            if ReturnItemMaster.objects.filter(kouden=kouden, name=name).exists():
                raise DuplicateItemMasterError(f"Item master '{name}' already exists in this kouden")
            raise

    logger.info("Created return item master %s in kouden %s", master.id, kouden_id)
    return master


def list_item_masters(*, kouden_id: UUID, include_inactive: bool = False) -> QuerySet[ReturnItemMaster]:
    """Catalogue of a ledger, by sort_order then name."""
    queryset = ReturnItemMaster.objects.filter(kouden_id=kouden_id)
    if not include_inactive:
        queryset = queryset.filter(is_active=True)
    return queryset.order_by('sort_order', 'name')

def get_item_master(*, master_id: UUID) -> ReturnItemMaster:
    """
    Raises:
        ItemMasterNotFoundError: If the master doesn't exist
    """
    with persistence_errors('get_item_master', master_id=master_id):
        master = ReturnItemMaster.objects.filter(id=master_id).first()
    if master is None:
        raise ItemMasterNotFoundError(f"Return item master {master_id} not found")
    return master


@transaction.atomic
def update_item_master(*, user, master_id: UUID, **changes) -> ReturnItemMaster:
    """
    Change catalogue fields of an item master.

    Only the given fields change; the merged result is validated with the
    same rules as create_item_master. Item lines already copied from the
    master keep their own name and price.

    Args:
        user: Caller making the change
        master_id: UUID of the item master
        **changes: Fields from EDITABLE_MASTER_FIELDS

    Returns:
        Updated ReturnItemMaster

    Raises:
        UnauthenticatedError: If user is not authenticated
        ItemMasterNotFoundError: If the master doesn't exist
        InvalidReturnItemError: If a field is unknown or a value is invalid
        DuplicateItemMasterError: If the new name is taken in the ledger
    """
    require_user(user)

    unknown = set(changes) - EDITABLE_MASTER_FIELDS
    if unknown:
        raise InvalidReturnItemError(f"Unknown item master fields: {', '.join(sorted(unknown))}")

    master = get_item_master(master_id=master_id)

    if 'name' in changes:
        changes['name'] = (changes['name'] or '').strip()
    for text_field in ('description', 'category', 'image_url'):
        if text_field in changes and changes[text_field] is None:
            changes[text_field] = ''
    for field_name, value in changes.items():
        setattr(master, field_name, value)

    _validate_master(
        master.name, master.price, master.recommended_amount_min, master.recommended_amount_max
    )

    with persistence_errors('update_item_master', master_id=master_id):
        try:
            with transaction.atomic():
                master.save()
        except IntegrityError:
            taken = (
                ReturnItemMaster.objects
                .filter(kouden_id=master.kouden_id, name=master.name)
                .exclude(id=master.id)
                .exists()
            )
            if taken:
                raise DuplicateItemMasterError(
                    f"Item master '{master.name}' already exists in this kouden"
                )
            raise

    logger.info("Updated return item master %s (%s)", master.id, ', '.join(sorted(changes)))
    return master


@transaction.atomic
def delete_item_master(*, user, master_id: UUID) -> bool:
    """
    Remove an item master from its ledger's catalogue.

    Item lines copied from it are snapshots and stay as they are. Deleting
    a master that does not exist is not an error.

    Returns:
        True if a row was removed
    """
    require_user(user)

    with persistence_errors('delete_item_master', master_id=master_id):
        deleted, _ = ReturnItemMaster.objects.filter(id=master_id).delete()

    if deleted:
        logger.info("Deleted return item master %s", master_id)
    return deleted > 0



def build_item_from_master(*, master_id: UUID, quantity: int = 1, notes: str = '') -> Dict:
    """
    Build a return item line priced from a catalogue entry.

    Raises:
        InvalidReturnItemError: If the master doesn't exist or quantity < 1
    """
    try:
        master = get_item_master(master_id=master_id)
    except ItemMasterNotFoundError as e:
        raise InvalidReturnItemError(str(e))

    item = parse_return_item({
        'name': master.name,
        'unit_price': master.price,
        'quantity': quantity,
        'notes': notes,
        'source_master_id': str(master.id),
    })
    return asdict(item)
