"""
Return record admin tests.

Tests cover:
- Items cost re-derived on admin save
- Item line validation in the admin form
- Ledger cache dropped after admin saves and deletes
"""

import pytest
from django.contrib import admin
from django.core.exceptions import ValidationError

from apps.returns.admin import ReturnEntryRecordAdmin, ReturnEntryRecordForm
from apps.returns.models import ReturnEntryRecord
from apps.returns.services import get_cached_summaries


@pytest.fixture
def record_admin():
    return ReturnEntryRecordAdmin(ReturnEntryRecord, admin.site)


@pytest.fixture
def admin_request(rf, owner):
    request = rf.post('/admin/returns/returnentryrecord/')
    request.user = owner
    return request


@pytest.mark.django_db
class TestReturnEntryRecordAdmin:

    def test_save_recomputes_items_cost(self, record_admin, admin_request, record_with_items):
        record_with_items.return_items = [{'name': 'Card', 'unit_price': 100, 'quantity': 1}]

        record_admin.save_model(admin_request, record_with_items, form=None, change=True)

        record_with_items.refresh_from_db()
        assert record_with_items.return_items_cost == 100
        assert record_with_items.return_items[0]['notes'] == ''

    def test_save_drops_ledger_cache(
        self, record_admin, admin_request, kouden, record, django_capture_on_commit_callbacks
    ):
        assert get_cached_summaries(kouden_id=kouden.id)[0].return_items_cost == 0

        with django_capture_on_commit_callbacks(execute=True):
            record.return_items = [{'name': 'Card', 'unit_price': 500, 'quantity': 2}]
            record_admin.save_model(admin_request, record, form=None, change=True)

        assert get_cached_summaries(kouden_id=kouden.id)[0].return_items_cost == 1000

    def test_delete_drops_ledger_cache(
        self, record_admin, admin_request, kouden, record, django_capture_on_commit_callbacks
    ):
        assert get_cached_summaries(kouden_id=kouden.id)[0].has_return_record is True

        with django_capture_on_commit_callbacks(execute=True):
            record_admin.delete_queryset(admin_request, ReturnEntryRecord.objects.filter(id=record.id))

        assert get_cached_summaries(kouden_id=kouden.id)[0].has_return_record is False


@pytest.mark.django_db
class TestReturnEntryRecordForm:

    def test_rejects_malformed_lines(self, record):
        form = ReturnEntryRecordForm(instance=record)
        form.cleaned_data = {'return_items': [{'name': 'Tea', 'unit_price': -5}]}

        with pytest.raises(ValidationError) as exc_info:
            form.clean_return_items()

        assert 'unit_price' in exc_info.value.messages[0]

    def test_normalizes_lines(self, record):
        form = ReturnEntryRecordForm(instance=record)
        form.cleaned_data = {'return_items': [{'name': ' Tea ', 'unit_price': 300}]}

        assert form.clean_return_items() == [
            {'name': 'Tea', 'unit_price': 300, 'quantity': 1, 'notes': '', 'source_master_id': None}
        ]
