from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from apps.koudens.permissions import CanEditKouden
from apps.koudens.services import get_entry
from .pagination import ReturnRecordCursorPagination
from .permissions import CanEditReturns
from .serializers import (
    # Input serializers
    ReturnRecordPageQuerySerializer,
    ReturnRecordCreateSerializer,
    FieldUpdateSerializer,
    FieldsUpdateSerializer,
    BulkUpdateInputSerializer,
    BulkDeleteInputSerializer,
    ReturnItemsReplaceSerializer,
    ItemMasterFilterSerializer,
    ItemMasterCreateSerializer,
    ItemMasterUpdateSerializer,
    # Response serializers
    ReturnEntryRecordSerializer,
    ReturnRecordPageSerializer,
    ReturnManagementSummarySerializer,
    LedgerStatisticsSerializer,
    ReturnItemMasterSerializer,
    BulkUpdateResultSerializer,
    BulkDeleteResultSerializer,
    ErrorSerializer,
)
from .services import (
    create_return_record,
    get_return_record,
    delete_return_record,
    delete_return_records,
    update_field,
    update_field_by_entry_id,
    set_return_items,
    bulk_update_return_records,
    get_cached_summaries,
    get_all_for_bulk_edit,
    get_ledger_return_statistics,
    search_return_records,
    update_fields,
    create_item_master,
    list_item_masters,
    update_item_master,
    delete_item_master,
    # Exceptions
    UnauthenticatedError,
    DuplicateReturnRecordError,
    ForbiddenFieldError,
    InvalidFieldValueError,
    ReturnRecordNotFoundError,
    KoudenNotFoundError,
    KoudenEntryNotFoundError,
    InvalidFilterError,
    InvalidReturnItemError,
    DuplicateItemMasterError,
    ItemMasterNotFoundError,
)
from .services.exceptions import ConflictError


def _bad_request(exc):
    return Response({'error': str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _not_found(exc):
    return Response({'error': str(exc)}, status=status.HTTP_404_NOT_FOUND)


def _unauthorized(exc):
    return Response({'error': str(exc)}, status=status.HTTP_401_UNAUTHORIZED)


# =============================================================================
# Ledger-scoped endpoints
# =============================================================================

@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter('limit', OpenApiTypes.INT, description='Page size'),
        OpenApiParameter('cursor', OpenApiTypes.STR, description='next_cursor of the previous page'),
        OpenApiParameter('search', OpenApiTypes.STR, description='Substring of entry name or organization'),
        OpenApiParameter('status', OpenApiTypes.STR, description="Return status or 'all'"),
    ],
    responses={200: ReturnRecordPageSerializer, 400: ErrorSerializer},
    description="Cursor-paginated return records of a kouden, newest first.",
    tags=['returns'],
)
@extend_schema(
    methods=['POST'],
    request=ReturnRecordCreateSerializer,
    responses={201: ReturnEntryRecordSerializer, 400: ErrorSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
    description="Create the return record of a gift entry.",
    tags=['returns'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditKouden])
def kouden_records(request, kouden_id):
    """List (GET) or create (POST) return records - thin HTTP handler."""
    if request.method == 'POST':
        return _create_record(request, kouden_id)

    query_serializer = ReturnRecordPageQuerySerializer(data=request.query_params)
    query_serializer.is_valid(raise_exception=True)
    params = query_serializer.validated_data

    try:
        queryset = search_return_records(
            kouden_id=kouden_id,
            search=params.get('search'),
            status=params.get('status'),
        )
    except InvalidFilterError as e:
        return _bad_request(e)

    paginator = ReturnRecordCursorPagination()
    page = paginator.paginate_queryset(queryset, request)
    serializer = ReturnEntryRecordSerializer(page, many=True)
    return paginator.get_paginated_response(serializer.data)


def _create_record(request, kouden_id):
    serializer = ReturnRecordCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    data = serializer.validated_data

    try:
        entry = get_entry(entry_id=data['kouden_entry_id'])
    except KoudenEntryNotFoundError as e:
        return _not_found(e)
    if entry.kouden_id != kouden_id:
        return Response(
            {'error': 'Kouden entry does not belong to this kouden'},
            status=status.HTTP_404_NOT_FOUND
        )

    try:
        record = create_return_record(user=request.user, **data)
    except DuplicateReturnRecordError as e:
        raise ConflictError(detail=str(e))
    except (InvalidReturnItemError, InvalidFieldValueError) as e:
        return _bad_request(e)
    except KoudenEntryNotFoundError as e:
        return _not_found(e)
    except UnauthenticatedError as e:
        return _unauthorized(e)

    return Response(ReturnEntryRecordSerializer(record).data, status=status.HTTP_201_CREATED)


@extend_schema(
    responses={200: ReturnManagementSummarySerializer(many=True)},
    description="One summary per gift entry with return rate and outstanding amount.",
    tags=['returns'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanEditKouden])
def kouden_summaries(request, kouden_id):
    """Get cached return summaries of a kouden - thin HTTP handler."""
    summaries = get_cached_summaries(kouden_id=kouden_id)
    return Response(ReturnManagementSummarySerializer(summaries, many=True).data)


@extend_schema(
    responses={200: ReturnManagementSummarySerializer(many=True)},
    description="Every return record of a kouden for bulk editing (no page limit).",
    tags=['returns'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanEditKouden])
def kouden_bulk_edit(request, kouden_id):
    """Get all records for bulk editing - thin HTTP handler."""
    try:
        summaries = get_all_for_bulk_edit(user=request.user, kouden_id=kouden_id)
    except UnauthenticatedError as e:
        return _unauthorized(e)
    return Response(ReturnManagementSummarySerializer(summaries, many=True).data)


@extend_schema(
    request=BulkUpdateInputSerializer,
    responses={200: BulkUpdateResultSerializer, 400: ErrorSerializer},
    description="Apply one update to every return record matching the filters.",
    tags=['returns'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditKouden])
def kouden_bulk_update(request, kouden_id):
    """Bulk update return records - thin HTTP handler."""
    serializer = BulkUpdateInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        count = bulk_update_return_records(
            user=request.user,
            kouden_id=kouden_id,
            filters=serializer.validated_data.get('filters'),
            updates=serializer.validated_data.get('updates'),
        )
    except InvalidFilterError as e:
        return _bad_request(e)
    except UnauthenticatedError as e:
        return _unauthorized(e)

    return Response({'updated_count': count})


@extend_schema(
    request=BulkDeleteInputSerializer,
    responses={200: BulkDeleteResultSerializer},
    description="Delete return records of this kouden by ID. Unknown IDs are ignored.",
    tags=['returns'],
)
@api_view(['POST'])
@permission_classes([IsAuthenticated, CanEditKouden])
def kouden_bulk_delete(request, kouden_id):
    """Bulk delete return records - thin HTTP handler."""
    serializer = BulkDeleteInputSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        count = delete_return_records(
            user=request.user,
            record_ids=serializer.validated_data['record_ids'],
            kouden_id=kouden_id,
        )
    except UnauthenticatedError as e:
        return _unauthorized(e)

    return Response({'deleted_count': count})


@extend_schema(
    responses={200: LedgerStatisticsSerializer},
    description="Return progress of a kouden: counts per status and rate band, totals.",
    tags=['returns'],
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, CanEditKouden])
def kouden_statistics(request, kouden_id):
    """Get return statistics of a kouden - thin HTTP handler."""
    data = get_ledger_return_statistics(kouden_id=kouden_id)
    return Response(LedgerStatisticsSerializer(data).data)


@extend_schema(
    methods=['GET'],
    parameters=[
        OpenApiParameter('include_inactive', OpenApiTypes.BOOL, description='Include inactive items'),
    ],
    responses={200: ReturnItemMasterSerializer(many=True)},
    description="Return item catalogue of a kouden.",
    tags=['returns'],
)
@extend_schema(
    methods=['POST'],
    request=ItemMasterCreateSerializer,
    responses={201: ReturnItemMasterSerializer, 400: ErrorSerializer, 409: ErrorSerializer},
    description="Add a return item to the kouden catalogue.",
    tags=['returns'],
)
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditKouden])
def kouden_item_masters(request, kouden_id):
    """List or create return item masters - thin HTTP handler."""
    if request.method == 'GET':
        query_serializer = ItemMasterFilterSerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        masters = list_item_masters(
            kouden_id=kouden_id,
            include_inactive=query_serializer.validated_data.get('include_inactive', False),
        )
        return Response(ReturnItemMasterSerializer(masters, many=True).data)

    serializer = ItemMasterCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        master = create_item_master(user=request.user, kouden_id=kouden_id, **serializer.validated_data)
    except DuplicateItemMasterError as e:
        raise ConflictError(detail=str(e))
    except InvalidReturnItemError as e:
        return _bad_request(e)
    except KoudenNotFoundError as e:
        return _not_found(e)

    return Response(ReturnItemMasterSerializer(master).data, status=status.HTTP_201_CREATED)


@extend_schema(
    methods=['PATCH'],
    request=ItemMasterUpdateSerializer,
    responses={200: ReturnItemMasterSerializer, 400: ErrorSerializer, 404: ErrorSerializer, 409: ErrorSerializer},
    description="Change fields of a return item master.",
    tags=['returns'],
)
@extend_schema(
    methods=['DELETE'],
    responses={204: None},
    description="Remove a return item master. Item lines copied from it are kept.",
    tags=['returns'],
)
@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditReturns])
def item_master_detail(request, master_id):
    """Update or delete a return item master - thin HTTP handler."""
    if request.method == 'DELETE':
        try:
            delete_item_master(user=request.user, master_id=master_id)
        except UnauthenticatedError as e:
            return _unauthorized(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = ItemMasterUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        master = update_item_master(user=request.user, master_id=master_id, **serializer.validated_data)
    except DuplicateItemMasterError as e:
        raise ConflictError(detail=str(e))
    except InvalidReturnItemError as e:
        return _bad_request(e)
    except ItemMasterNotFoundError as e:
        return _not_found(e)
    except UnauthenticatedError as e:
        return _unauthorized(e)

    return Response(ReturnItemMasterSerializer(master).data)


# =============================================================================
# Entry- and record-scoped endpoints
# =============================================================================

@extend_schema(
    responses={200: ReturnEntryRecordSerializer, 204: None, 404: ErrorSerializer},
    description="Get (GET) or delete (DELETE) the return record of a gift entry.",
    tags=['returns'],
)
@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditReturns])
def entry_record(request, entry_id):
    """Get or delete the return record of a gift entry - thin HTTP handler."""
    if request.method == 'DELETE':
        try:
            delete_return_record(user=request.user, kouden_entry_id=entry_id)
        except UnauthenticatedError as e:
            return _unauthorized(e)
        return Response(status=status.HTTP_204_NO_CONTENT)

    record = get_return_record(kouden_entry_id=entry_id)
    if record is None:
        return Response(
            {'error': 'This entry has no return record'},
            status=status.HTTP_404_NOT_FOUND
        )
    return Response(ReturnEntryRecordSerializer(record).data)


def _field_update(request, update, **lookup):
    serializer = FieldUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        record = update(
            user=request.user,
            field_name=serializer.validated_data['field_name'],
            value=serializer.validated_data['value'],
            **lookup
        )
    except (ForbiddenFieldError, InvalidFieldValueError) as e:
        return _bad_request(e)
    except ReturnRecordNotFoundError as e:
        return _not_found(e)
    except UnauthenticatedError as e:
        return _unauthorized(e)

    return Response(ReturnEntryRecordSerializer(record).data)


@extend_schema(
    request=FieldUpdateSerializer,
    responses={200: ReturnEntryRecordSerializer, 400: ErrorSerializer, 404: ErrorSerializer},
    description="Update one field of the return record of a gift entry.",
    tags=['returns'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated, CanEditReturns])
def entry_field_update(request, entry_id):
    """Update one field, addressed by gift entry - thin HTTP handler."""
    return _field_update(request, update_field_by_entry_id, kouden_entry_id=entry_id)


@extend_schema(
    request=FieldsUpdateSerializer,
    responses={200: ReturnEntryRecordSerializer, 400: ErrorSerializer, 404: ErrorSerializer},
    description="Update several fields of the return record of a gift entry in one write.",
    tags=['returns'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated, CanEditReturns])
def entry_fields_update(request, entry_id):
    """Update several fields, addressed by gift entry - thin HTTP handler."""
    serializer = FieldsUpdateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        record = update_fields(
            user=request.user,
            kouden_entry_id=entry_id,
            values=serializer.validated_data['values'],
        )
    except (ForbiddenFieldError, InvalidFieldValueError) as e:
        return _bad_request(e)
    except ReturnRecordNotFoundError as e:
        return _not_found(e)
    except UnauthenticatedError as e:
        return _unauthorized(e)

    return Response(ReturnEntryRecordSerializer(record).data)


@extend_schema(
    request=FieldUpdateSerializer,
    responses={200: ReturnEntryRecordSerializer, 400: ErrorSerializer, 404: ErrorSerializer},
    description="Update one field of a return record.",
    tags=['returns'],
)
@api_view(['PATCH'])
@permission_classes([IsAuthenticated, CanEditReturns])
def record_field_update(request, record_id):
    """Update one field, addressed by record - thin HTTP handler."""
    return _field_update(request, update_field, record_id=record_id)


@extend_schema(
    request=ReturnItemsReplaceSerializer,
    responses={200: ReturnEntryRecordSerializer, 400: ErrorSerializer, 404: ErrorSerializer},
    description="Replace the return item lines of a record; the items cost is recomputed.",
    tags=['returns'],
)
@api_view(['PUT'])
@permission_classes([IsAuthenticated, CanEditReturns])
def record_items(request, record_id):
    """Replace return items - thin HTTP handler."""
    serializer = ReturnItemsReplaceSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    try:
        record = set_return_items(
            user=request.user,
            record_id=record_id,
            items=serializer.validated_data['items'],
        )
    except InvalidReturnItemError as e:
        return _bad_request(e)
    except ReturnRecordNotFoundError as e:
        return _not_found(e)
    except UnauthenticatedError as e:
        return _unauthorized(e)

    return Response(ReturnEntryRecordSerializer(record).data)
