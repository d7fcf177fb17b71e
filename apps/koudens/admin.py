# ==========================================
# apps/koudens/admin.py
# ==========================================

from django.contrib import admin
from .models import Kouden, KoudenMember, Relationship, KoudenEntry, Offering, OfferingAllocation


class KoudenMemberInline(admin.TabularInline):
    model = KoudenMember
    extra = 0
    raw_id_fields = ['user']


@admin.register(Kouden)
class KoudenAdmin(admin.ModelAdmin):
    list_display = ['title', 'owner', 'entry_count', 'created_at']
    search_fields = ['title', 'owner__email']
    raw_id_fields = ['owner']
    inlines = [KoudenMemberInline]

    def entry_count(self, obj):
        return obj.entries.count()
    entry_count.short_description = 'Entries'


@admin.register(Relationship)
class RelationshipAdmin(admin.ModelAdmin):
    list_display = ['name', 'kouden', 'is_default']
    list_filter = ['is_default']
    search_fields = ['name', 'kouden__title']


@admin.register(KoudenEntry)
class KoudenEntryAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'amount', 'attendance_type', 'has_offering', 'kouden', 'created_at']
    list_filter = ['attendance_type', 'has_offering', 'created_at']
    search_fields = ['name', 'organization', 'kouden__title']
    raw_id_fields = ['kouden', 'relationship', 'created_by']
    readonly_fields = ['created_at', 'updated_at']


class OfferingAllocationInline(admin.TabularInline):
    model = OfferingAllocation
    extra = 0
    raw_id_fields = ['kouden_entry']


@admin.register(Offering)
class OfferingAdmin(admin.ModelAdmin):
    list_display = ['offering_type', 'price', 'kouden', 'created_at']
    list_filter = ['offering_type']
    raw_id_fields = ['kouden']
    inlines = [OfferingAllocationInline]
