import pytest
from rest_framework.test import APIClient
from apps.accounts.models import User
from apps.koudens.models import (
    Kouden,
    KoudenMember,
    KoudenRole,
    Relationship,
    KoudenEntry,
    AttendanceType,
    Offering,
    OfferingAllocation,
)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


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
def kouden(db, owner, editor, viewer):
    """Create a ledger with editor and viewer members."""
    kouden = Kouden.objects.create(title='Test Funeral', owner=owner)
    KoudenMember.objects.create(kouden=kouden, user=owner, role=KoudenRole.OWNER)
    KoudenMember.objects.create(kouden=kouden, user=editor, role=KoudenRole.EDITOR)
    KoudenMember.objects.create(kouden=kouden, user=viewer, role=KoudenRole.VIEWER)
    return kouden


@pytest.fixture
def relationship(kouden):
    """Create and return a relationship."""
    return Relationship.objects.create(kouden=kouden, name='Colleague')


@pytest.fixture
def entry(kouden, relationship, owner):
    """Create and return a gift entry of 10000."""
    return KoudenEntry.objects.create(
        kouden=kouden,
        name='Yamada Taro',
        organization='Acme Corp',
        amount=10000,
        attendance_type=AttendanceType.FUNERAL,
        relationship=relationship,
        created_by=owner,
    )


@pytest.fixture
def offering(kouden):
    """Create and return a flower offering."""
    return Offering.objects.create(
        kouden=kouden,
        offering_type=Offering.OfferingType.FLOWER,
        price=15000,
    )


@pytest.fixture
def allocation(offering, entry):
    """Allocate 5000 of the offering to the entry."""
    return OfferingAllocation.objects.create(
        offering=offering,
        kouden_entry=entry,
        allocated_amount=5000,
    )
