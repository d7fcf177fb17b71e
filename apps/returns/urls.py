from django.urls import path
from . import views

app_name = 'returns'

urlpatterns = [
    # Kouden-scoped
    # GET    /api/returns/koudens/{id}/records/       - Cursor page of records
    # POST   /api/returns/koudens/{id}/records/       - Create record
    # GET    /api/returns/koudens/{id}/summaries/     - Summaries (cached)
    # GET    /api/returns/koudens/{id}/bulk-edit/     - All records for bulk edit
    # POST   /api/returns/koudens/{id}/bulk-update/   - Bulk update by filters
    # POST   /api/returns/koudens/{id}/bulk-delete/   - Bulk delete by IDs
    # GET    /api/returns/koudens/{id}/statistics/    - Return statistics
    # GET    /api/returns/koudens/{id}/item-masters/  - Item catalogue
    # POST   /api/returns/koudens/{id}/item-masters/  - Add catalogue item
    # PATCH  /api/returns/item-masters/{id}/         - Change catalogue item
    # DELETE /api/returns/item-masters/{id}/         - Remove catalogue item
    path('koudens/<uuid:kouden_id>/records/', views.kouden_records, name='kouden-records'),
    path('koudens/<uuid:kouden_id>/summaries/', views.kouden_summaries, name='kouden-summaries'),
    path('koudens/<uuid:kouden_id>/bulk-edit/', views.kouden_bulk_edit, name='kouden-bulk-edit'),
    path('koudens/<uuid:kouden_id>/bulk-update/', views.kouden_bulk_update, name='kouden-bulk-update'),
    path('koudens/<uuid:kouden_id>/bulk-delete/', views.kouden_bulk_delete, name='kouden-bulk-delete'),
    path('koudens/<uuid:kouden_id>/statistics/', views.kouden_statistics, name='kouden-statistics'),
    path('koudens/<uuid:kouden_id>/item-masters/', views.kouden_item_masters, name='kouden-item-masters'),

    path('item-masters/<uuid:master_id>/', views.item_master_detail, name='item-master-detail'),

    # Entry- and record-scoped
    path('entries/<uuid:entry_id>/', views.entry_record, name='entry-record'),
    path('entries/<uuid:entry_id>/field/', views.entry_field_update, name='entry-field-update'),
    path('entries/<uuid:entry_id>/fields/', views.entry_fields_update, name='entry-fields-update'),
    path('records/<uuid:record_id>/field/', views.record_field_update, name='record-field-update'),
    path('records/<uuid:record_id>/items/', views.record_items, name='record-items'),
]
