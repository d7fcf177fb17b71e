"""
Tests for the recalculate_return_costs management command.
"""

import pytest
from io import StringIO
from django.core.management import call_command

from apps.returns.models import ReturnEntryRecord


def run(*args):
    out = StringIO()
    call_command('recalculate_return_costs', *args, stdout=out)
    return out.getvalue()


@pytest.mark.django_db
class TestRecalculateReturnCosts:

    def test_nothing_to_fix(self, record, record_with_items):
        output = run()
        assert 'All good' in output

    def test_fixes_drifted_cost(self, record_with_items):
        ReturnEntryRecord.objects.filter(id=record_with_items.id).update(return_items_cost=1)

        output = run()

        record_with_items.refresh_from_db()
        assert record_with_items.return_items_cost == 7000
        assert record_with_items.additional_return_amount == 7000
        assert 'Updated 1 record(s).' in output

    def test_dry_run_changes_nothing(self, record_with_items):
        ReturnEntryRecord.objects.filter(id=record_with_items.id).update(return_items_cost=1)

        output = run('--dry-run')

        record_with_items.refresh_from_db()
        assert record_with_items.return_items_cost == 1
        assert 'expected 7000' in output

    def test_record_without_items_keeps_manual_cost(self, record):
        ReturnEntryRecord.objects.filter(id=record.id).update(return_items_cost=4000)

        run()

        record.refresh_from_db()
        assert record.return_items_cost == 4000

    def test_kouden_filter(self, record_with_items, other_kouden):
        ReturnEntryRecord.objects.filter(id=record_with_items.id).update(return_items_cost=1)

        run('--kouden', str(other_kouden.id))

        record_with_items.refresh_from_db()
        assert record_with_items.return_items_cost == 1
