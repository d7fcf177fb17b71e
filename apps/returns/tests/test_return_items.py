"""
Return item line and item master tests.

Tests cover:
- Line validation and cost calculation
- Replace / append / remove keep the stored cost in sync
- Per-ledger item catalogue
"""

import pytest
from unittest.mock import patch
from uuid import uuid4
from django.db import DatabaseError

from apps.returns.models import ReturnItemMaster
from apps.returns.services import (
    ReturnItem,
    set_return_items,
    add_return_item,
    remove_return_item,
    calculate_items_cost,
    normalize_return_items,
    create_item_master,
    list_item_masters,
    update_item_master,
    delete_item_master,
    build_item_from_master,
)
from apps.returns.services.exceptions import (
    InvalidReturnItemError,
    DuplicateItemMasterError,
    ItemMasterNotFoundError,
    ReturnRecordNotFoundError,
    ReturnPersistenceError,
    KoudenNotFoundError,
    UnauthenticatedError,
)


# =============================================================================
# Pure line helpers
# =============================================================================

class TestLineHelpers:
    """Validation and cost of item lines."""

    def test_cost_is_sum_of_price_times_quantity(self):
        items = [
            {'name': 'Tea', 'unit_price': 3000, 'quantity': 2},
            ReturnItem(name='Towel', unit_price=1000),
        ]
        assert calculate_items_cost(items) == 7000

    def test_empty_cost(self):
        assert calculate_items_cost([]) == 0
        assert calculate_items_cost(None) == 0

    def test_normalize_fills_defaults(self):
        normalized = normalize_return_items([{'name': '  Tea  ', 'unit_price': '500'}])
        assert normalized == [{
            'name': 'Tea',
            'unit_price': 500,
            'quantity': 1,
            'notes': '',
            'source_master_id': None,
        }]

    @pytest.mark.parametrize('raw', [
        {'unit_price': 100},
        {'name': '', 'unit_price': 100},
        {'name': 'Tea', 'unit_price': -1},
        {'name': 'Tea', 'unit_price': 100, 'quantity': 0},
        {'name': 'Tea', 'unit_price': 1.5},
        {'name': 'Tea', 'unit_price': True},
        {'name': 'Tea', 'unit_price': 100, 'source_master_id': 'nope'},
        'Tea',
    ])
    def test_invalid_lines(self, raw):
        with pytest.raises(InvalidReturnItemError):
            normalize_return_items([raw])

    def test_items_must_be_a_list(self):
        with pytest.raises(InvalidReturnItemError):
            normalize_return_items({'name': 'Tea', 'unit_price': 100})


# =============================================================================
# Record item operations
# =============================================================================

@pytest.mark.django_db
class TestRecordItemOperations:
    """set_return_items, add_return_item and remove_return_item."""

    def test_set_replaces_lines_and_cost(self, record_with_items, owner, invalidator):
        updated = set_return_items(
            user=owner,
            record_id=record_with_items.id,
            items=[{'name': 'Catalogue gift', 'unit_price': 5000, 'quantity': 1}],
            invalidator=invalidator,
        )

        assert [item['name'] for item in updated.return_items] == ['Catalogue gift']
        assert updated.return_items_cost == 5000
        assert updated.additional_return_amount == 5000

    def test_set_empty_clears_cost(self, record_with_items, owner, invalidator):
        updated = set_return_items(
            user=owner, record_id=record_with_items.id, items=[], invalidator=invalidator
        )
        assert updated.return_items == []
        assert updated.return_items_cost == 0

    def test_add_appends(self, record_with_items, owner, invalidator):
        updated = add_return_item(
            user=owner,
            record_id=record_with_items.id,
            item={'name': 'Sweets', 'unit_price': 1500, 'quantity': 2},
            invalidator=invalidator,
        )

        assert [item['name'] for item in updated.return_items] == ['Tea set', 'Towel', 'Sweets']
        assert updated.return_items_cost == 10000

    def test_remove_by_index(self, record_with_items, owner, invalidator):
        updated = remove_return_item(
            user=owner, record_id=record_with_items.id, index=0, invalidator=invalidator
        )

        assert [item['name'] for item in updated.return_items] == ['Towel']
        assert updated.return_items_cost == 1000

    @pytest.mark.parametrize('index', [-1, 2, 99])
    def test_remove_out_of_range(self, record_with_items, owner, invalidator, index):
        with pytest.raises(InvalidReturnItemError):
            remove_return_item(
                user=owner, record_id=record_with_items.id, index=index, invalidator=invalidator
            )
        record_with_items.refresh_from_db()
        assert len(record_with_items.return_items) == 2

    def test_invalid_line_leaves_record_untouched(self, record_with_items, owner, invalidator):
        with pytest.raises(InvalidReturnItemError):
            set_return_items(
                user=owner,
                record_id=record_with_items.id,
                items=[{'name': 'Tea', 'unit_price': -5}],
                invalidator=invalidator,
            )
        record_with_items.refresh_from_db()
        assert record_with_items.return_items_cost == 7000

    def test_missing_record(self, owner, invalidator):
        with pytest.raises(ReturnRecordNotFoundError):
            add_return_item(
                user=owner,
                record_id=uuid4(),
                item={'name': 'Tea', 'unit_price': 100},
                invalidator=invalidator,
            )

    def test_read_failure_is_typed(self, record, owner, invalidator):
        with patch('django.db.models.query.QuerySet.first', side_effect=DatabaseError('connection lost')):
            with pytest.raises(ReturnPersistenceError):
                set_return_items(user=owner, record_id=record.id, items=[], invalidator=invalidator)

    def test_requires_user(self, record, invalidator):
        with pytest.raises(UnauthenticatedError):
            set_return_items(user=None, record_id=record.id, items=[], invalidator=invalidator)

    def test_invalidates_ledger_after_commit(
        self, record_with_items, kouden, owner, invalidator, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            remove_return_item(
                user=owner, record_id=record_with_items.id, index=1, invalidator=invalidator
            )
        assert invalidator.calls == [kouden.id]


# =============================================================================
# Item masters
# =============================================================================

@pytest.mark.django_db
class TestItemMasters:
    """Per-ledger return gift catalogue."""

    def test_create_and_list_in_sort_order(self, kouden, owner):
        create_item_master(user=owner, kouden_id=kouden.id, name='Towel', price=1000, sort_order=2)
        create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000, sort_order=1)
        create_item_master(user=owner, kouden_id=kouden.id, name='Retired', price=500, is_active=False)

        active = [m.name for m in list_item_masters(kouden_id=kouden.id)]
        everything = list_item_masters(kouden_id=kouden.id, include_inactive=True)

        assert active == ['Tea set', 'Towel']
        assert everything.count() == 3

    def test_duplicate_name_in_same_ledger(self, kouden, owner):
        create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)
        with pytest.raises(DuplicateItemMasterError):
            create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=2500)
        assert ReturnItemMaster.objects.filter(kouden=kouden).count() == 1

    def test_same_name_in_other_ledger(self, kouden, other_kouden, owner):
        create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)
        create_item_master(user=owner, kouden_id=other_kouden.id, name='Tea set', price=3000)
        assert ReturnItemMaster.objects.filter(name='Tea set').count() == 2

    @pytest.mark.parametrize('kwargs', [
        {'name': '', 'price': 100},
        {'name': 'Tea', 'price': -1},
        {'name': 'Tea', 'price': 100, 'recommended_amount_min': 5000, 'recommended_amount_max': 3000},
    ])
    def test_invalid_master(self, kouden, owner, kwargs):
        with pytest.raises(InvalidReturnItemError):
            create_item_master(user=owner, kouden_id=kouden.id, **kwargs)

    def test_missing_ledger(self, owner):
        with pytest.raises(KoudenNotFoundError):
            create_item_master(user=owner, kouden_id=uuid4(), name='Tea', price=100)

    def test_build_item_from_master(self, kouden, owner):
        master = create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)

        item = build_item_from_master(master_id=master.id, quantity=2, notes='Wrapped')

        assert item == {
            'name': 'Tea set',
            'unit_price': 3000,
            'quantity': 2,
            'notes': 'Wrapped',
            'source_master_id': str(master.id),
        }
        assert calculate_items_cost([item]) == 6000

    def test_build_item_from_missing_master(self):
        with pytest.raises(InvalidReturnItemError):
            build_item_from_master(master_id=uuid4())

    def test_update_changes_only_given_fields(self, kouden, owner):
        master = create_item_master(
            user=owner, kouden_id=kouden.id, name='Tea set', price=3000, category='Drinks'
        )

        updated = update_item_master(user=owner, master_id=master.id, price=3500, name=' Green tea set ')

        master.refresh_from_db()
        assert updated.price == master.price == 3500
        assert master.name == 'Green tea set'
        assert master.category == 'Drinks'

    def test_update_keeps_copied_lines(self, record, kouden, owner, invalidator):
        master = create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)
        add_return_item(
            user=owner, record_id=record.id, item=build_item_from_master(master_id=master.id),
            invalidator=invalidator,
        )

        update_item_master(user=owner, master_id=master.id, price=9999)

        record.refresh_from_db()
        assert record.return_items[0]['unit_price'] == 3000
        assert record.return_items_cost == 3000

    def test_update_to_taken_name(self, kouden, owner):
        create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)
        towel = create_item_master(user=owner, kouden_id=kouden.id, name='Towel', price=1000)

        with pytest.raises(DuplicateItemMasterError):
            update_item_master(user=owner, master_id=towel.id, name='Tea set')

        towel.refresh_from_db()
        assert towel.name == 'Towel'

    @pytest.mark.parametrize('changes', [
        {'name': '  '},
        {'price': -1},
        {'price': True},
        {'recommended_amount_min': 5000, 'recommended_amount_max': 3000},
        {'kouden_id': uuid4()},
    ])
    def test_update_rejects_invalid_changes(self, kouden, owner, changes):
        master = create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)

        with pytest.raises(InvalidReturnItemError):
            update_item_master(user=owner, master_id=master.id, **changes)

        master.refresh_from_db()
        assert master.name == 'Tea set'
        assert master.price == 3000

    def test_update_inverted_band_against_stored_value(self, kouden, owner):
        master = create_item_master(
            user=owner, kouden_id=kouden.id, name='Tea set', price=3000, recommended_amount_max=10000
        )
        with pytest.raises(InvalidReturnItemError):
            update_item_master(user=owner, master_id=master.id, recommended_amount_min=20000)

    def test_update_missing_master(self, owner):
        with pytest.raises(ItemMasterNotFoundError):
            update_item_master(user=owner, master_id=uuid4(), price=100)

    def test_update_requires_user(self, kouden, owner):
        master = create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)
        with pytest.raises(UnauthenticatedError):
            update_item_master(user=None, master_id=master.id, price=100)

    def test_delete(self, kouden, owner):
        master = create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)

        assert delete_item_master(user=owner, master_id=master.id) is True
        assert not ReturnItemMaster.objects.filter(id=master.id).exists()

    def test_delete_missing_is_idempotent(self, owner):
        assert delete_item_master(user=owner, master_id=uuid4()) is False

    def test_delete_keeps_copied_lines(self, record, kouden, owner, invalidator):
        master = create_item_master(user=owner, kouden_id=kouden.id, name='Tea set', price=3000)
        add_return_item(
            user=owner, record_id=record.id, item=build_item_from_master(master_id=master.id),
            invalidator=invalidator,
        )

        delete_item_master(user=owner, master_id=master.id)

        record.refresh_from_db()
        assert record.return_items[0]['source_master_id'] == str(master.id)
        assert record.return_items_cost == 3000
