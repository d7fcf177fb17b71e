"""
Return record cursor pagination tests.

Tests cover:
- Disjoint, complete pages newest first
- Stable paging when created_at collides
- Page size default and cap from settings
- Status and search filters
- Rejection of malformed cursors and statuses
"""

import pytest
from base64 import b64encode
from django.utils import timezone
from rest_framework.exceptions import ValidationError
from rest_framework.request import Request
from rest_framework.test import APIRequestFactory

from apps.koudens.models import KoudenEntry
from apps.returns.models import ReturnEntryRecord, ReturnStatus
from apps.returns.pagination import ReturnRecordCursorPagination
from apps.returns.services import search_return_records
from apps.returns.services.exceptions import InvalidFilterError


factory = APIRequestFactory()


@pytest.fixture
def five_records(kouden, owner):
    """Five records, the first two COMPLETED."""
    records = []
    for i in range(5):
        gift = KoudenEntry.objects.create(
            kouden=kouden,
            name=f'Giver {i}',
            organization='Tanaka Shoji' if i == 3 else '',
            amount=1000 * (i + 1),
        )
        records.append(ReturnEntryRecord.objects.create(
            kouden_entry=gift,
            return_status=ReturnStatus.COMPLETED if i < 2 else ReturnStatus.PENDING,
            created_by=owner,
        ))
    return records


def fetch_page(queryset, **params):
    """Paginate the queryset for a GET with the given query parameters."""
    paginator = ReturnRecordCursorPagination()
    request = Request(factory.get('/api/returns/records/', params))
    rows = paginator.paginate_queryset(queryset, request)
    return rows, paginator


def walk(queryset, **params):
    """Follow next_cursor until the last page; return the pages of rows."""
    pages = []
    cursor = None
    while True:
        query = dict(params)
        if cursor:
            query['cursor'] = cursor
        rows, paginator = fetch_page(queryset, **query)
        pages.append(rows)
        if not paginator.has_next:
            return pages
        cursor = paginator.get_next_link()


@pytest.mark.django_db
class TestReturnRecordCursorPagination:
    """Paging behaviour of ReturnRecordCursorPagination."""

    def test_pages_are_disjoint_and_complete(self, kouden, five_records):
        pages = walk(search_return_records(kouden_id=kouden.id), limit=2)

        assert [len(p) for p in pages] == [2, 2, 1]
        seen = [r.id for p in pages for r in p]
        assert len(seen) == len(set(seen)) == 5
        expected = list(
            ReturnEntryRecord.objects.filter(kouden_entry__kouden=kouden)
            .order_by('-created_at', '-id')
            .values_list('id', flat=True)
        )
        assert seen == expected

    def test_identical_timestamps_still_page_cleanly(self, kouden, five_records):
        ReturnEntryRecord.objects.filter(kouden_entry__kouden=kouden).update(created_at=timezone.now())

        pages = walk(search_return_records(kouden_id=kouden.id), limit=2)

        seen = [r.id for p in pages for r in p]
        assert len(seen) == len(set(seen)) == 5

    def test_exact_limit_has_no_more(self, kouden, five_records):
        rows, paginator = fetch_page(search_return_records(kouden_id=kouden.id), limit=5)

        assert len(rows) == 5
        assert paginator.has_next is False
        assert paginator.get_next_link() is None

    def test_default_limit_from_settings(self, kouden, five_records, settings):
        settings.RETURNS_DEFAULT_PAGE_SIZE = 3

        rows, paginator = fetch_page(search_return_records(kouden_id=kouden.id))

        assert len(rows) == 3
        assert paginator.has_next is True

    def test_limit_capped_at_max(self, kouden, five_records, settings):
        settings.RETURNS_MAX_PAGE_SIZE = 4

        rows, paginator = fetch_page(search_return_records(kouden_id=kouden.id), limit=1000)

        assert len(rows) == 4
        assert paginator.has_next is True

    def test_response_shape(self, kouden, five_records):
        rows, paginator = fetch_page(search_return_records(kouden_id=kouden.id), limit=2)

        response = paginator.get_paginated_response([str(r.id) for r in rows])

        assert set(response.data) == {'data', 'has_more', 'next_cursor'}
        assert response.data['has_more'] is True
        # Bare token, not a URL
        assert '?' not in response.data['next_cursor']
        assert '://' not in response.data['next_cursor']

    @pytest.mark.parametrize('cursor', [
        'not-a-cursor!',
        b64encode(b'o=x').decode(),
        b64encode(b'p=yesterday').decode(),
    ])
    def test_malformed_cursor(self, kouden, cursor):
        with pytest.raises(ValidationError) as exc_info:
            fetch_page(search_return_records(kouden_id=kouden.id), cursor=cursor)

        assert 'cursor' in exc_info.value.detail


@pytest.mark.django_db
class TestSearchReturnRecords:
    """Filters applied before paging."""

    def test_other_ledgers_excluded(self, kouden, other_kouden, five_records):
        gift = KoudenEntry.objects.create(kouden=other_kouden, name='Elsewhere', amount=3000)
        ReturnEntryRecord.objects.create(kouden_entry=gift)

        records = list(search_return_records(kouden_id=kouden.id))

        assert len(records) == 5
        assert all(r.kouden_entry.kouden_id == kouden.id for r in records)

    def test_status_filter(self, kouden, five_records):
        records = search_return_records(kouden_id=kouden.id, status=ReturnStatus.COMPLETED)
        assert {r.id for r in records} == {five_records[0].id, five_records[1].id}

    def test_status_all(self, kouden, five_records):
        assert search_return_records(kouden_id=kouden.id, status='all').count() == 5

    def test_search_matches_name_or_organization(self, kouden, five_records):
        by_name = search_return_records(kouden_id=kouden.id, search='giver 4')
        by_org = search_return_records(kouden_id=kouden.id, search='tanaka')

        assert [r.id for r in by_name] == [five_records[4].id]
        assert [r.id for r in by_org] == [five_records[3].id]

    def test_blank_search_ignored(self, kouden, five_records):
        assert search_return_records(kouden_id=kouden.id, search='   ').count() == 5

    def test_invalid_status(self, kouden):
        with pytest.raises(InvalidFilterError):
            search_return_records(kouden_id=kouden.id, status='DONE')

    def test_filtered_pages_stay_filtered(self, kouden, five_records):
        queryset = search_return_records(kouden_id=kouden.id, status=ReturnStatus.PENDING)

        pages = walk(queryset, limit=2)

        assert [len(p) for p in pages] == [2, 1]
        assert all(r.return_status == ReturnStatus.PENDING for p in pages for r in p)
