"""
Management command to re-derive return_items_cost from stored item lines.

Repairs records whose stored cost drifted from their lines, e.g. after
manual edits through the admin or direct SQL.

Usage:
    python manage.py recalculate_return_costs [--kouden <uuid>] [--dry-run]
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from apps.returns.cache import schedule_invalidation
from apps.returns.models import ReturnEntryRecord
from apps.returns.services.exceptions import InvalidReturnItemError
from apps.returns.services.return_items import calculate_items_cost


class Command(BaseCommand):
    help = 'Recompute return_items_cost from return_items for records that drifted'

    def add_arguments(self, parser):
        parser.add_argument(
            '--kouden',
            help='Only process records of this kouden ID',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be updated without making changes',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        records = ReturnEntryRecord.objects.select_related('kouden_entry')
        if options.get('kouden'):
            records = records.filter(kouden_entry__kouden_id=options['kouden'])

        drifted = []
        for record in records.iterator():
            if not record.return_items:
                continue
            try:
                expected = calculate_items_cost(record.return_items)
            except InvalidReturnItemError as e:
                self.stdout.write(self.style.WARNING(f'  ! {record.id}: invalid items ({e})'))
                continue
            if expected != record.return_items_cost:
                drifted.append((record, expected))

        if not drifted:
            self.stdout.write(self.style.SUCCESS('All return costs match their items. All good!'))
            return

        self.stdout.write(f'\nFound {len(drifted)} record(s) with drifted cost:\n')
        for record, expected in drifted:
            self.stdout.write(f'  - {record.id} | stored {record.return_items_cost} | expected {expected}')

        if dry_run:
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        with transaction.atomic():
            now = timezone.now()
            kouden_ids = set()
            for record, expected in drifted:
                ReturnEntryRecord.objects.filter(id=record.id).update(
                    return_items_cost=expected,
                    updated_at=now,
                )
                kouden_ids.add(record.kouden_entry.kouden_id)
            for kouden_id in kouden_ids:
                schedule_invalidation(kouden_id)

        self.stdout.write(self.style.SUCCESS(f'\nUpdated {len(drifted)} record(s).'))
