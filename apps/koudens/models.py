# ==========================================
# apps/koudens/models.py
# ==========================================

from django.core.validators import MinValueValidator
from django.db import models
import uuid


class KoudenRole(models.TextChoices):
    OWNER = 'owner', 'Owner'
    EDITOR = 'editor', 'Editor'
    VIEWER = 'viewer', 'Viewer'


class AttendanceType(models.TextChoices):
    FUNERAL = 'FUNERAL', '葬儀'
    CONDOLENCE_VISIT = 'CONDOLENCE_VISIT', '弔問'
    ABSENT = 'ABSENT', '欠席'


class Kouden(models.Model):
    """A condolence-gift ledger for one funeral."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True)
    owner = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='owned_koudens')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'koudens'
        indexes = [
            models.Index(fields=['owner', 'created_at'], name='koudens_owner_created_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return self.title

    def get_user_role(self, user):
        if not user or not user.is_authenticated:
            return None
        if self.owner_id == user.id:
            return KoudenRole.OWNER
        try:
            return self.members.get(user=user).role
        except KoudenMember.DoesNotExist:
            return None

    def has_member(self, user):
        return self.get_user_role(user) is not None

    def can_edit(self, user):
        return self.get_user_role(user) in [KoudenRole.OWNER, KoudenRole.EDITOR]


class KoudenMember(models.Model):
    """User membership in a ledger with role."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kouden = models.ForeignKey(Kouden, on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey('accounts.User', on_delete=models.CASCADE, related_name='kouden_memberships')
    role = models.CharField(max_length=20, choices=KoudenRole.choices, default=KoudenRole.VIEWER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'kouden_members'
        unique_together = [['kouden', 'user']]
        ordering = ['joined_at']

    def __str__(self):
        return f"{self.user.get_display_name()} in {self.kouden.title} ({self.role})"


class Relationship(models.Model):
    """How a giver relates to the deceased (e.g. family, colleague)."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kouden = models.ForeignKey(Kouden, on_delete=models.CASCADE, related_name='relationships')
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'relationships'
        unique_together = [['kouden', 'name']]
        ordering = ['name']

    def __str__(self):
        return self.name


class KoudenEntry(models.Model):
    """A monetary condolence gift recorded in a ledger."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kouden = models.ForeignKey(Kouden, on_delete=models.CASCADE, related_name='entries')

    # Giver
    name = models.CharField(max_length=200, blank=True)
    organization = models.CharField(max_length=200, blank=True)
    position = models.CharField(max_length=100, blank=True)
    relationship = models.ForeignKey(
        Relationship,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='entries'
    )

    # Gift
    amount = models.PositiveIntegerField(validators=[MinValueValidator(0)])
    attendance_type = models.CharField(
        max_length=20,
        choices=AttendanceType.choices,
        default=AttendanceType.FUNERAL
    )
    has_offering = models.BooleanField(default=False)

    # Contact
    postal_code = models.CharField(max_length=10, blank=True)
    address = models.CharField(max_length=300, blank=True)
    phone_number = models.CharField(max_length=30, blank=True)
    notes = models.TextField(blank=True)

    # Optimistic concurrency token; not consulted by return reconciliation
    version = models.PositiveIntegerField(default=1)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_kouden_entries'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'kouden_entries'
        indexes = [
            models.Index(fields=['kouden', 'created_at'], name='entries_kouden_created_idx'),
            models.Index(fields=['kouden', 'amount'], name='entries_kouden_amount_idx'),
        ]
        ordering = ['-created_at']
        verbose_name_plural = 'kouden entries'

    def __str__(self):
        return f"{self.name or '(no name)'} - {self.amount}"


class Offering(models.Model):
    """A physical offering (flowers, food, ...) that may be shared between givers."""

    class OfferingType(models.TextChoices):
        FLOWER = 'FLOWER', '供花'
        FOOD = 'FOOD', '供物'
        OTHER = 'OTHER', 'その他'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kouden = models.ForeignKey(Kouden, on_delete=models.CASCADE, related_name='offerings')
    offering_type = models.CharField(max_length=20, choices=OfferingType.choices, default=OfferingType.OTHER)
    description = models.TextField(blank=True)
    price = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'offerings'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.get_offering_type_display()} ({self.price})"


class OfferingAllocation(models.Model):
    """Share of an offering's value attributed to one gift entry."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    offering = models.ForeignKey(Offering, on_delete=models.CASCADE, related_name='allocations')
    kouden_entry = models.ForeignKey(KoudenEntry, on_delete=models.CASCADE, related_name='offering_allocations')
    allocated_amount = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'offering_allocations'
        unique_together = [['offering', 'kouden_entry']]

    def __str__(self):
        return f"{self.offering} -> {self.kouden_entry_id}: {self.allocated_amount}"
