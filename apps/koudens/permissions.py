"""
Custom permission classes for ledger access.

Permission Classes:
    IsKoudenMember - Requires any role in the ledger
    CanEditKouden - Requires owner/editor role for writes, any role for reads

The ledger is resolved from the URL: ``kouden_id`` directly, or the ledger
of the gift entry named by ``entry_id``. Apps that route by other ids
override ``get_kouden_id``.

Usage:
    @api_view(['POST'])
    @permission_classes([IsAuthenticated, CanEditKouden])
    def bulk_update(request, kouden_id):
        ...
"""

from rest_framework.permissions import BasePermission, SAFE_METHODS

from apps.koudens.models import Kouden, KoudenEntry


class IsKoudenMember(BasePermission):
    """
    Permission: User must hold a role in the ledger.

    Access is denied (403) when the ledger cannot be resolved.
    """

    message = 'You must be a member of this kouden.'

    def get_kouden_id(self, request, view):
        kouden_id = view.kwargs.get('kouden_id')
        if kouden_id:
            return kouden_id

        entry_id = view.kwargs.get('entry_id')
        if entry_id:
            return (
                KoudenEntry.objects
                .filter(id=entry_id)
                .values_list('kouden_id', flat=True)
                .first()
            )
        return None

    def get_kouden(self, request, view):
        kouden_id = self.get_kouden_id(request, view)
        if not kouden_id:
            return None
        try:
            return Kouden.objects.get(id=kouden_id)
        except Kouden.DoesNotExist:
            return None

    def has_permission(self, request, view):
        kouden = self.get_kouden(request, view)
        if kouden is None:
            return False
        return kouden.has_member(request.user)


class CanEditKouden(IsKoudenMember):
    """
    Permission: Reads need membership, writes need owner or editor role.
    """

    message = 'You do not have permission to edit this kouden.'

    def has_permission(self, request, view):
        kouden = self.get_kouden(request, view)
        if kouden is None:
            return False
        if request.method in SAFE_METHODS:
            return kouden.has_member(request.user)
        return kouden.can_edit(request.user)
