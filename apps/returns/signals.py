"""
Cache invalidation for writes made outside the return services.

Summaries are derived from gift entries, their relationships and offering
allocations as well as from return records. Changes to any of these made
through the ORM (admin, shell, cascades) invalidate the ledger's cached
views the same way the return services do.
"""

import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.koudens.models import KoudenEntry, OfferingAllocation, Relationship

from .cache import schedule_invalidation
from .models import ReturnEntryRecord

logger = logging.getLogger(__name__)


def _kouden_of_entry(entry_id):
    return (
        KoudenEntry.objects
        .filter(id=entry_id)
        .values_list('kouden_id', flat=True)
        .first()
    )


@receiver(post_save, sender=KoudenEntry)
@receiver(post_delete, sender=KoudenEntry)
@receiver(post_save, sender=Relationship)
@receiver(post_delete, sender=Relationship)
def invalidate_ledger(sender, instance, **kwargs):
    schedule_invalidation(instance.kouden_id)


@receiver(post_save, sender=OfferingAllocation)
@receiver(post_delete, sender=OfferingAllocation)
@receiver(post_delete, sender=ReturnEntryRecord)
def invalidate_entry_ledger(sender, instance, **kwargs):
    # Entry already gone: its own post_delete invalidated the ledger
    kouden_id = _kouden_of_entry(instance.kouden_entry_id)
    if kouden_id is None:
        return
    logger.debug("%s change on entry %s", sender.__name__, instance.kouden_entry_id)
    schedule_invalidation(kouden_id)
