"""
Serializers for returns app.

This module contains:
1. Input serializers - request body and query parameter validation
2. Output serializers - response formatting and API documentation
"""

from rest_framework import serializers

from apps.koudens.models import AttendanceType, KoudenEntry
from .models import ReturnEntryRecord, ReturnItemMaster, ReturnStatus
from .services.record_search import ALL_STATUSES


# =============================================================================
# Input Serializers
# =============================================================================

class ReturnRecordPageQuerySerializer(serializers.Serializer):
    """
    Validate query parameters for the cursor-paginated record list.

    Query Parameters:
        limit (int): Page size
        cursor (str): next_cursor of the previous page
        search (str): Substring of entry name or organization
        status (str): Return status, or 'all'
    """

    limit = serializers.IntegerField(min_value=1, required=False)
    cursor = serializers.CharField(required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True, max_length=200)
    status = serializers.ChoiceField(
        choices=[(ALL_STATUSES, 'All')] + list(ReturnStatus.choices),
        required=False
    )


class ReturnItemSerializer(serializers.Serializer):
    """One return item line."""

    name = serializers.CharField(max_length=200)
    unit_price = serializers.IntegerField(min_value=0)
    quantity = serializers.IntegerField(min_value=1, default=1)
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    source_master_id = serializers.UUIDField(required=False, allow_null=True, default=None)


class ReturnRecordCreateSerializer(serializers.Serializer):
    """Validate input for creating a return record."""

    kouden_entry_id = serializers.UUIDField()
    return_status = serializers.ChoiceField(choices=ReturnStatus.choices, default=ReturnStatus.PENDING)
    return_items = ReturnItemSerializer(many=True, required=False)
    funeral_gift_amount = serializers.IntegerField(min_value=0, default=0)
    return_method = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    arrangement_date = serializers.DateField(required=False, allow_null=True, default=None)
    remarks = serializers.CharField(required=False, allow_blank=True, default='')
    shipping_postal_code = serializers.CharField(max_length=10, required=False, allow_blank=True, default='')
    shipping_address = serializers.CharField(max_length=300, required=False, allow_blank=True, default='')
    shipping_phone_number = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')


class FieldUpdateSerializer(serializers.Serializer):
    """
    Validate a single-field edit.

    The value is checked against the model field by the service; only
    presence is required here.
    """

    field_name = serializers.CharField(max_length=100)
    value = serializers.JSONField(allow_null=True)


class FieldsUpdateSerializer(serializers.Serializer):
    """
    Validate a multi-field edit: a mapping of field name to new value.

    Field names and values are checked by the service.
    """

    values = serializers.DictField(child=serializers.JSONField(allow_null=True), allow_empty=False)


class AmountRangeSerializer(serializers.Serializer):
    min = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    max = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    def validate(self, attrs):
        """Validate min <= max."""
        low, high = attrs.get('min'), attrs.get('max')
        if low is not None and high is not None and low > high:
            raise serializers.ValidationError({'max': 'max must not be lower than min'})
        return attrs


class BulkUpdateFiltersSerializer(serializers.Serializer):
    """Filters of a bulk update; every filter is optional."""

    amount_range = AmountRangeSerializer(required=False)
    relationship_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    current_statuses = serializers.ListField(
        child=serializers.ChoiceField(choices=ReturnStatus.choices),
        required=False
    )
    attendance_types = serializers.ListField(
        child=serializers.ChoiceField(choices=AttendanceType.choices),
        required=False
    )
    has_offering = serializers.BooleanField(allow_null=True, default=None)


class BulkUpdateDataSerializer(serializers.Serializer):
    """Update payload of a bulk update; only supplied fields are written."""

    status = serializers.ChoiceField(choices=ReturnStatus.choices, required=False)
    return_method = serializers.CharField(max_length=50, required=False, allow_blank=True)
    arrangement_date = serializers.DateField(required=False)
    remarks = serializers.CharField(required=False, allow_blank=True)
    return_items = serializers.ListField(child=serializers.DictField(), required=False)


class BulkUpdateInputSerializer(serializers.Serializer):
    """Validate input for bulk update."""

    filters = BulkUpdateFiltersSerializer(required=False)
    updates = BulkUpdateDataSerializer(required=False)


class BulkDeleteInputSerializer(serializers.Serializer):
    """Validate input for bulk delete."""

    record_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=True)


class ReturnItemsReplaceSerializer(serializers.Serializer):
    """Validate input for replacing a record's item lines."""

    items = ReturnItemSerializer(many=True)


class ItemMasterFilterSerializer(serializers.Serializer):
    include_inactive = serializers.BooleanField(required=False, default=False)


class ItemMasterCreateSerializer(serializers.Serializer):
    """Validate input for creating a return item master."""

    name = serializers.CharField(max_length=200)
    price = serializers.IntegerField(min_value=0)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    category = serializers.CharField(max_length=50, required=False, allow_blank=True, default='')
    image_url = serializers.URLField(required=False, allow_blank=True, default='')
    is_active = serializers.BooleanField(default=True)
    sort_order = serializers.IntegerField(min_value=0, default=0)
    recommended_amount_min = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)
    recommended_amount_max = serializers.IntegerField(min_value=0, required=False, allow_null=True, default=None)


class ItemMasterUpdateSerializer(serializers.Serializer):
    """Validate a partial change of a return item master; every field is optional."""

    name = serializers.CharField(max_length=200, required=False)
    price = serializers.IntegerField(min_value=0, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    category = serializers.CharField(max_length=50, required=False, allow_blank=True)
    image_url = serializers.URLField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
    sort_order = serializers.IntegerField(min_value=0, required=False)
    recommended_amount_min = serializers.IntegerField(min_value=0, required=False, allow_null=True)
    recommended_amount_max = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('At least one field is required')
        return attrs


# =============================================================================
# Output Serializers
# =============================================================================

class KoudenEntryMinimalSerializer(serializers.ModelSerializer):
    """Minimal gift entry info for nested serialization."""

    relationship_name = serializers.CharField(source='relationship.name', read_only=True, default=None)

    class Meta:
        model = KoudenEntry
        fields = [
            'id',
            'name',
            'organization',
            'position',
            'amount',
            'attendance_type',
            'has_offering',
            'relationship_id',
            'relationship_name',
        ]
        read_only_fields = fields


class ReturnEntryRecordSerializer(serializers.ModelSerializer):
    """Serializer for return records."""

    kouden_entry = KoudenEntryMinimalSerializer(read_only=True)
    status_display = serializers.CharField(source='get_return_status_display', read_only=True)
    additional_return_amount = serializers.IntegerField(read_only=True)
    needs_additional_return = serializers.BooleanField(read_only=True)

    class Meta:
        model = ReturnEntryRecord
        fields = [
            'id',
            'kouden_entry',
            'return_status',
            'status_display',
            'return_items',
            'funeral_gift_amount',
            'return_items_cost',
            'additional_return_amount',
            'needs_additional_return',
            'return_method',
            'arrangement_date',
            'remarks',
            'shipping_postal_code',
            'shipping_address',
            'shipping_phone_number',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ReturnRecordPageSerializer(serializers.Serializer):
    """Cursor page of return records."""

    data = ReturnEntryRecordSerializer(many=True)
    has_more = serializers.BooleanField()
    next_cursor = serializers.CharField(allow_null=True)


class ReturnManagementSummarySerializer(serializers.Serializer):
    """Derived summary of one gift entry and its return."""

    kouden_id = serializers.UUIDField()
    kouden_entry_id = serializers.UUIDField()
    entry_name = serializers.CharField()
    organization = serializers.CharField()
    position = serializers.CharField()
    relationship_id = serializers.UUIDField(allow_null=True)
    relationship_name = serializers.CharField(allow_null=True)
    amount = serializers.IntegerField()
    attendance_type = serializers.CharField()
    has_offering = serializers.BooleanField()

    has_return_record = serializers.BooleanField()
    return_record_id = serializers.UUIDField(allow_null=True)
    return_status = serializers.CharField()
    status_display = serializers.CharField()
    return_items = serializers.ListField(child=serializers.DictField())
    funeral_gift_amount = serializers.IntegerField()
    return_items_cost = serializers.IntegerField()
    additional_return_amount = serializers.IntegerField()
    needs_additional_return = serializers.BooleanField()
    return_method = serializers.CharField()
    arrangement_date = serializers.DateField(allow_null=True)
    remarks = serializers.CharField()
    shipping_postal_code = serializers.CharField()
    shipping_address = serializers.CharField()
    shipping_phone_number = serializers.CharField()
    created_at = serializers.DateTimeField(allow_null=True)
    updated_at = serializers.DateTimeField(allow_null=True)

    offering_total = serializers.IntegerField()
    total_amount = serializers.IntegerField()
    total_return_value = serializers.IntegerField()
    return_rate = serializers.FloatField()
    rate_band = serializers.CharField()
    outstanding_amount = serializers.IntegerField()


class LedgerStatisticsSerializer(serializers.Serializer):
    """Return progress of a ledger."""

    total_entries = serializers.IntegerField()
    entries_with_record = serializers.IntegerField()
    entries_without_record = serializers.IntegerField()
    status_counts = serializers.DictField(child=serializers.IntegerField())
    rate_band_counts = serializers.DictField(child=serializers.IntegerField())
    total_gift_amount = serializers.IntegerField()
    total_return_value = serializers.IntegerField()
    total_outstanding_amount = serializers.IntegerField()
    overall_return_rate = serializers.FloatField()


class ReturnItemMasterSerializer(serializers.ModelSerializer):
    """Serializer for return item masters."""

    class Meta:
        model = ReturnItemMaster
        fields = [
            'id',
            'kouden',
            'name',
            'price',
            'description',
            'category',
            'image_url',
            'is_active',
            'sort_order',
            'recommended_amount_min',
            'recommended_amount_max',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class BulkUpdateResultSerializer(serializers.Serializer):
    updated_count = serializers.IntegerField()


class BulkDeleteResultSerializer(serializers.Serializer):
    deleted_count = serializers.IntegerField()


class ErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
