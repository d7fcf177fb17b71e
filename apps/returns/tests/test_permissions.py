import pytest
from types import SimpleNamespace
from uuid import uuid4
from rest_framework.test import APIRequestFactory
from apps.koudens.permissions import IsKoudenMember, CanEditKouden
from apps.returns.models import ReturnItemMaster
from apps.returns.permissions import CanEditReturns, IsReturnKoudenMember


def make_request(user, method='get'):
    factory = APIRequestFactory()
    request = getattr(factory, method)('/')
    request.user = user
    return request


def make_view(**kwargs):
    return SimpleNamespace(kwargs=kwargs)


# =============================================================================
# Ledger resolution
# =============================================================================

@pytest.mark.django_db
class TestLedgerResolution:
    """The ledger is found from kouden_id, entry_id, record_id or master_id."""

    def test_by_kouden_id(self, viewer, kouden):
        permission = IsKoudenMember()
        assert permission.has_permission(make_request(viewer), make_view(kouden_id=kouden.id)) is True

    def test_by_entry_id(self, viewer, entry):
        permission = IsKoudenMember()
        assert permission.has_permission(make_request(viewer), make_view(entry_id=entry.id)) is True

    def test_by_record_id(self, viewer, record):
        permission = IsReturnKoudenMember()
        assert permission.has_permission(make_request(viewer), make_view(record_id=record.id)) is True

    def test_by_master_id(self, viewer, kouden):
        master = ReturnItemMaster.objects.create(kouden=kouden, name='Tea set', price=3000)
        permission = IsReturnKoudenMember()
        assert permission.has_permission(make_request(viewer), make_view(master_id=master.id)) is True

    def test_unresolvable_denied(self, owner):
        permission = IsReturnKoudenMember()
        assert permission.has_permission(make_request(owner), make_view(record_id=uuid4())) is False
        assert permission.has_permission(make_request(owner), make_view(master_id=uuid4())) is False
        assert permission.has_permission(make_request(owner), make_view()) is False

    def test_outsider_denied(self, outsider, record):
        permission = IsReturnKoudenMember()
        assert permission.has_permission(make_request(outsider), make_view(record_id=record.id)) is False


# =============================================================================
# Edit rights
# =============================================================================

@pytest.mark.django_db
class TestEditRights:
    """Writes need owner or editor role."""

    @pytest.mark.parametrize('user_fixture,allowed', [
        ('owner', True),
        ('editor', True),
        ('viewer', False),
        ('outsider', False),
    ])
    def test_write(self, request, record, user_fixture, allowed):
        user = request.getfixturevalue(user_fixture)
        permission = CanEditReturns()
        view = make_view(record_id=record.id)
        assert permission.has_permission(make_request(user, 'patch'), view) is allowed

    def test_viewer_can_read(self, viewer, kouden):
        permission = CanEditKouden()
        assert permission.has_permission(make_request(viewer), make_view(kouden_id=kouden.id)) is True

    def test_owner_without_member_row(self, other_kouden, outsider):
        """The ledger owner counts as OWNER even without a membership row."""
        permission = CanEditKouden()
        view = make_view(kouden_id=other_kouden.id)
        assert permission.has_permission(make_request(outsider, 'post'), view) is True
