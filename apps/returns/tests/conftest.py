import pytest
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.koudens.models import (
    Kouden,
    KoudenMember,
    KoudenRole,
    Relationship,
    KoudenEntry,
    AttendanceType,
)
from apps.returns.cache import CacheInvalidator
from apps.returns.models import ReturnEntryRecord, ReturnStatus


class RecordingInvalidator(CacheInvalidator):
    """Invalidator that remembers which ledgers it was asked to drop."""

    def __init__(self):
        self.calls = []

    def invalidate(self, kouden_id):
        self.calls.append(kouden_id)


def make_client(user=None):
    """Return an API client, authenticated with a JWT when user is given."""
    client = APIClient()
    if user is not None:
        refresh = RefreshToken.for_user(user)
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture(autouse=True)
def clear_cache():
    """Start every test with an empty cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def invalidator():
    """Return a recording cache invalidator."""
    return RecordingInvalidator()


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return make_client()


@pytest.fixture
def owner(db):
    """Create and return the ledger owner."""
    return User.objects.create_user(
        email='owner@example.com',
        password='TestPass123!',
        display_name='Ledger Owner',
    )


@pytest.fixture
def editor(db):
    """Create and return a user with editor role."""
    return User.objects.create_user(
        email='editor@example.com',
        password='TestPass123!',
        display_name='Ledger Editor',
    )


@pytest.fixture
def viewer(db):
    """Create and return a user with viewer role."""
    return User.objects.create_user(
        email='viewer@example.com',
        password='TestPass123!',
        display_name='Ledger Viewer',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user with no role in the ledger."""
    return User.objects.create_user(
        email='outsider@example.com',
        password='TestPass123!',
    )


@pytest.fixture
def owner_client(owner):
    """Return API client authenticated as ledger owner."""
    return make_client(owner)


@pytest.fixture
def editor_client(editor):
    """Return API client authenticated as editor."""
    return make_client(editor)


@pytest.fixture
def viewer_client(viewer):
    """Return API client authenticated as viewer."""
    return make_client(viewer)


@pytest.fixture
def outsider_client(outsider):
    """Return API client authenticated as a non-member."""
    return make_client(outsider)


@pytest.fixture
def kouden(db, owner, editor, viewer):
    """Create a ledger with owner, editor and viewer members."""
    kouden = Kouden.objects.create(title='Test Funeral', owner=owner)
    KoudenMember.objects.create(kouden=kouden, user=owner, role=KoudenRole.OWNER)
    KoudenMember.objects.create(kouden=kouden, user=editor, role=KoudenRole.EDITOR)
    KoudenMember.objects.create(kouden=kouden, user=viewer, role=KoudenRole.VIEWER)
    return kouden


@pytest.fixture
def other_kouden(db, outsider):
    """Create a ledger the main fixtures have no role in."""
    return Kouden.objects.create(title='Other Funeral', owner=outsider)


@pytest.fixture
def relationship_a(kouden):
    """Create relationship A."""
    return Relationship.objects.create(kouden=kouden, name='Family')


@pytest.fixture
def relationship_b(kouden):
    """Create relationship B."""
    return Relationship.objects.create(kouden=kouden, name='Colleague')


@pytest.fixture
def entry(kouden, relationship_a, owner):
    """Create and return a gift entry of 10000."""
    return KoudenEntry.objects.create(
        kouden=kouden,
        name='Yamada Taro',
        organization='Acme Corp',
        amount=10000,
        attendance_type=AttendanceType.FUNERAL,
        relationship=relationship_a,
        created_by=owner,
    )


@pytest.fixture
def record(entry, owner):
    """Create and return a PENDING return record for entry."""
    return ReturnEntryRecord.objects.create(
        kouden_entry=entry,
        return_status=ReturnStatus.PENDING,
        created_by=owner,
    )


@pytest.fixture
def record_with_items(kouden, owner):
    """Return record holding two lines (cost 7000) on a 20000 gift."""
    gift = KoudenEntry.objects.create(kouden=kouden, name='Suzuki Hanako', amount=20000)
    return ReturnEntryRecord.objects.create(
        kouden_entry=gift,
        return_items=[
            {'name': 'Tea set', 'unit_price': 3000, 'quantity': 2, 'notes': '', 'source_master_id': None},
            {'name': 'Towel', 'unit_price': 1000, 'quantity': 1, 'notes': '', 'source_master_id': None},
        ],
        return_items_cost=7000,
        created_by=owner,
    )


@pytest.fixture
def bulk_ledger(kouden, relationship_a, relationship_b, owner):
    """
    Two records for bulk filtering:
    R1: amount 5000, relationship A, PENDING, funeral attendance, no offering
    R2: amount 50000, relationship B, COMPLETED, condolence visit, with offering
    """
    e1 = KoudenEntry.objects.create(
        kouden=kouden, name='R1', amount=5000, relationship=relationship_a,
        attendance_type=AttendanceType.FUNERAL, has_offering=False,
    )
    e2 = KoudenEntry.objects.create(
        kouden=kouden, name='R2', amount=50000, relationship=relationship_b,
        attendance_type=AttendanceType.CONDOLENCE_VISIT, has_offering=True,
    )
    r1 = ReturnEntryRecord.objects.create(kouden_entry=e1, return_status=ReturnStatus.PENDING, created_by=owner)
    r2 = ReturnEntryRecord.objects.create(kouden_entry=e2, return_status=ReturnStatus.COMPLETED, created_by=owner)
    return r1, r2
