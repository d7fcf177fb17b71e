"""
Ledger-scoped cache invalidation.

Every mutation of return records ends by invalidating the cached views of
the affected ledger. Invalidation is scheduled with
``transaction.on_commit`` so readers never repopulate the cache from
uncommitted state; a rolled back write invalidates nothing.

The implementation is chosen with the ``RETURNS_CACHE_INVALIDATOR`` setting
and can be replaced per call with the ``invalidator`` argument of the
service functions.
"""

import logging
from uuid import UUID

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.utils.module_loading import import_string

logger = logging.getLogger(__name__)


def summaries_cache_key(kouden_id) -> str:
    return f'koudens:{kouden_id}:return-summaries'


class CacheInvalidator:
    """Port for dropping cached views of one ledger."""

    def invalidate(self, kouden_id: UUID) -> None:
        raise NotImplementedError


class DjangoCacheInvalidator(CacheInvalidator):
    """Deletes the ledger's keys from Django's default cache."""

    def invalidate(self, kouden_id: UUID) -> None:
        cache.delete(summaries_cache_key(kouden_id))
        logger.debug("Invalidated return caches for kouden %s", kouden_id)


def get_cache_invalidator() -> CacheInvalidator:
    """Instantiate the invalidator configured in settings."""
    invalidator_class = import_string(settings.RETURNS_CACHE_INVALIDATOR)
    return invalidator_class()


def schedule_invalidation(kouden_id: UUID, invalidator: CacheInvalidator = None) -> None:
    """Invalidate the ledger's caches once the current transaction commits."""
    invalidator = invalidator or get_cache_invalidator()
    transaction.on_commit(lambda: invalidator.invalidate(kouden_id))
