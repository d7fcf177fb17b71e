# ==========================================
# apps/returns/admin.py
# ==========================================

from django import forms
from django.contrib import admin
from django.utils import timezone
from django.utils.html import format_html
from .models import ReturnEntryRecord, ReturnItemMaster, ReturnStatus
from .cache import schedule_invalidation
from .services import calculate_items_cost, normalize_return_items
from .services.exceptions import InvalidReturnItemError


STATUS_COLORS = {
    ReturnStatus.PENDING: '#B85C5C',
    ReturnStatus.PARTIAL_RETURNED: '#E5C49A',
    ReturnStatus.COMPLETED: '#6B8E5E',
    ReturnStatus.NOT_REQUIRED: '#999',
}


class ReturnEntryRecordForm(forms.ModelForm):
    """Validates item lines the same way the item services do."""

    class Meta:
        model = ReturnEntryRecord
        fields = '__all__'

    def clean_return_items(self):
        try:
            return normalize_return_items(self.cleaned_data.get('return_items'))
        except InvalidReturnItemError as e:
            raise forms.ValidationError(str(e))


@admin.register(ReturnEntryRecord)
class ReturnEntryRecordAdmin(admin.ModelAdmin):
    """Return records with status badges and bulk status actions."""

    form = ReturnEntryRecordForm
    list_display = [
        'kouden_entry',
        'status_badge',
        'return_items_cost',
        'funeral_gift_amount',
        'additional_return_amount',
        'arrangement_date',
        'created_at',
    ]
    list_filter = ['return_status', 'arrangement_date', 'created_at']
    search_fields = ['kouden_entry__name', 'kouden_entry__organization', 'remarks']
    raw_id_fields = ['kouden_entry', 'created_by']
    readonly_fields = ['return_items_cost', 'additional_return_amount', 'created_at', 'updated_at']

    def status_badge(self, obj):
        """Display return status as colored badge."""
        return format_html(
            '<span style="background: {}; color: white; padding: 3px 8px; '
            'border-radius: 10px; font-size: 11px;">{}</span>',
            STATUS_COLORS.get(obj.return_status, '#ccc'),
            obj.get_return_status_display(),
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'return_status'

    def save_model(self, request, obj, form, change):
        """Derive the items cost from the lines, then drop the ledger cache."""
        obj.return_items = normalize_return_items(obj.return_items)
        obj.return_items_cost = calculate_items_cost(obj.return_items)
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)
        schedule_invalidation(obj.kouden_entry.kouden_id)

    actions = ['mark_completed', 'mark_not_required']

    def _set_status(self, request, queryset, new_status):
        kouden_ids = set(queryset.values_list('kouden_entry__kouden_id', flat=True))
        count = queryset.update(return_status=new_status, updated_at=timezone.now())
        for kouden_id in kouden_ids:
            schedule_invalidation(kouden_id)
        self.message_user(request, f'Updated {count} return record(s).')

    @admin.action(description='Mark selected as completed')
    def mark_completed(self, request, queryset):
        self._set_status(request, queryset, ReturnStatus.COMPLETED)

    @admin.action(description='Mark selected as not required')
    def mark_not_required(self, request, queryset):
        self._set_status(request, queryset, ReturnStatus.NOT_REQUIRED)


@admin.register(ReturnItemMaster)
class ReturnItemMasterAdmin(admin.ModelAdmin):
    list_display = ['name', 'price', 'category', 'is_active', 'sort_order', 'kouden']
    list_filter = ['is_active', 'category']
    search_fields = ['name', 'kouden__title']
    raw_id_fields = ['kouden', 'created_by']
