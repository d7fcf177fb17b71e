"""
Cursor pagination for the return record list.

Built on DRF's CursorPagination. Pages run newest first; the opaque cursor
carries the created_at of the boundary row plus an offset for rows that
share it, so pages neither overlap nor skip rows when timestamps collide.
The response shape is ``{data, has_more, next_cursor}`` where
``next_cursor`` is the bare cursor token, not a URL.
"""

from urllib import parse

from django.conf import settings
from django.utils.dateparse import parse_datetime
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.pagination import CursorPagination
from rest_framework.response import Response

from .services.persistence import persistence_errors


class ReturnRecordCursorPagination(CursorPagination):
    """Keyset pagination over return records, newest first."""

    ordering = ('-created_at', '-id')
    cursor_query_param = 'cursor'
    page_size_query_param = 'limit'
    invalid_cursor_message = 'Malformed pagination cursor'

    def __init__(self):
        # Read per instance so settings overrides apply
        self.page_size = settings.RETURNS_DEFAULT_PAGE_SIZE
        self.max_page_size = settings.RETURNS_MAX_PAGE_SIZE

    def paginate_queryset(self, queryset, request, view=None):
        with persistence_errors('page_return_records'):
            return super().paginate_queryset(queryset, request, view)

    def decode_cursor(self, request):
        """
        Raises:
            ValidationError: If the cursor is not one we issued
        """
        try:
            cursor = super().decode_cursor(request)
        except NotFound:
            raise ValidationError({'cursor': [self.invalid_cursor_message]})

        if cursor is not None and cursor.position is not None:
            try:
                position = parse_datetime(cursor.position)
            except ValueError:
                position = None
            if position is None:
                raise ValidationError({'cursor': [self.invalid_cursor_message]})
        return cursor

    def encode_cursor(self, cursor):
        url = super().encode_cursor(cursor)
        return parse.parse_qs(parse.urlsplit(url).query)[self.cursor_query_param][0]

    def get_paginated_response(self, data):
        return Response({
            'data': data,
            'has_more': self.has_next,
            'next_cursor': self.get_next_link(),
        })
