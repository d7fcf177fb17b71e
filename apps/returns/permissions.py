"""
Permission classes for return endpoints.

Extends the ledger permissions so routes addressed by ``record_id`` or
``master_id`` resolve the ledger through the return record's gift entry
or the item master's catalogue.
"""

from apps.koudens.permissions import IsKoudenMember, CanEditKouden
from .models import ReturnEntryRecord, ReturnItemMaster


class RecordLookupMixin:
    """Resolve the ledger from a return record or item master ID in the URL."""

    def get_kouden_id(self, request, view):
        record_id = view.kwargs.get('record_id')
        if record_id:
            return (
                ReturnEntryRecord.objects
                .filter(id=record_id)
                .values_list('kouden_entry__kouden_id', flat=True)
                .first()
            )
        master_id = view.kwargs.get('master_id')
        if master_id:
            return (
                ReturnItemMaster.objects
                .filter(id=master_id)
                .values_list('kouden_id', flat=True)
                .first()
            )
        return super().get_kouden_id(request, view)


class IsReturnKoudenMember(RecordLookupMixin, IsKoudenMember):
    """Permission: User must hold a role in the record's ledger."""
    pass


class CanEditReturns(RecordLookupMixin, CanEditKouden):
    """Permission: Owner/editor for writes, any member for reads."""
    pass
