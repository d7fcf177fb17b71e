import pytest
from django.core.cache import cache

from apps.returns.cache import (
    DjangoCacheInvalidator,
    get_cache_invalidator,
    schedule_invalidation,
    summaries_cache_key,
)


class TestCacheInvalidator:

    def test_default_invalidator_from_settings(self):
        assert isinstance(get_cache_invalidator(), DjangoCacheInvalidator)

    def test_invalidator_is_configurable(self, settings):
        settings.RETURNS_CACHE_INVALIDATOR = 'apps.returns.tests.conftest.RecordingInvalidator'
        assert type(get_cache_invalidator()).__name__ == 'RecordingInvalidator'

    def test_django_invalidator_drops_only_that_ledger(self):
        cache.set(summaries_cache_key('a'), ['cached'])
        cache.set(summaries_cache_key('b'), ['cached'])

        DjangoCacheInvalidator().invalidate('a')

        assert cache.get(summaries_cache_key('a')) is None
        assert cache.get(summaries_cache_key('b')) == ['cached']


@pytest.mark.django_db
class TestScheduleInvalidation:

    def test_runs_after_commit(self, invalidator, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            schedule_invalidation('kouden-1', invalidator)
            assert invalidator.calls == []

        assert len(callbacks) == 1
        assert invalidator.calls == ['kouden-1']

    def test_nothing_runs_until_commit(self, invalidator, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            schedule_invalidation('kouden-1', invalidator)

        assert len(callbacks) == 1
        assert invalidator.calls == []
