# ==========================================
# apps/returns/models.py
# ==========================================

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F
import uuid


class ReturnStatus(models.TextChoices):
    PENDING = 'PENDING', '未返礼'
    PARTIAL_RETURNED = 'PARTIAL_RETURNED', '一部返礼'
    COMPLETED = 'COMPLETED', '返礼完了'
    NOT_REQUIRED = 'NOT_REQUIRED', '返礼不要'


class ReturnEntryRecord(models.Model):
    """
    Return-gift obligation for one gift entry.

    additional_return_amount is computed by the database and is never
    part of a write.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kouden_entry = models.OneToOneField(
        'koudens.KoudenEntry',
        on_delete=models.CASCADE,
        related_name='return_record'
    )
    return_status = models.CharField(
        max_length=20,
        choices=ReturnStatus.choices,
        default=ReturnStatus.PENDING
    )

    # Items: list of {name, unit_price, quantity, notes, source_master_id}
    return_items = models.JSONField(default=list, blank=True)
    funeral_gift_amount = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    return_items_cost = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    additional_return_amount = models.GeneratedField(
        expression=F('return_items_cost') + F('funeral_gift_amount'),
        output_field=models.IntegerField(),
        db_persist=True,
    )

    # Arrangement
    return_method = models.CharField(max_length=50, blank=True)
    arrangement_date = models.DateField(null=True, blank=True)
    remarks = models.TextField(blank=True)

    # Shipping
    shipping_postal_code = models.CharField(max_length=10, blank=True)
    shipping_address = models.CharField(max_length=300, blank=True)
    shipping_phone_number = models.CharField(max_length=30, blank=True)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_return_records'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'return_entry_records'
        indexes = [
            models.Index(fields=['-created_at', '-id'], name='returns_created_id_idx'),
            models.Index(fields=['return_status'], name='returns_status_idx'),
        ]
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Return for {self.kouden_entry_id} ({self.return_status})"

    @property
    def needs_additional_return(self):
        return (self.additional_return_amount or 0) > 0


class ReturnItemMaster(models.Model):
    """Catalogue of return gifts available within one ledger."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    kouden = models.ForeignKey('koudens.Kouden', on_delete=models.CASCADE, related_name='return_item_masters')
    name = models.CharField(max_length=200)
    price = models.PositiveIntegerField(default=0)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=50, blank=True)
    image_url = models.URLField(blank=True)
    is_active = models.BooleanField(default=True)
    sort_order = models.PositiveIntegerField(default=0)

    # Suggested gift amount band this item suits
    recommended_amount_min = models.PositiveIntegerField(null=True, blank=True)
    recommended_amount_max = models.PositiveIntegerField(null=True, blank=True)

    created_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_return_item_masters'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'return_item_masters'
        constraints = [
            models.UniqueConstraint(fields=['kouden', 'name'], name='unique_item_master_name_per_kouden'),
        ]
        ordering = ['sort_order', 'name']

    def __str__(self):
        return f"{self.name} ({self.price})"
