"""
Returns app services layer.

The return-gift reconciliation engine: record repository, field update
gateway, bulk filter & update engine, summary aggregator and record
search for the paged list. Every mutating service takes the calling
``user`` and schedules ledger cache invalidation after commit.
"""

from .exceptions import (
    ReturnsServiceError,
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
    ReturnPersistenceError,
)

from .record_repository import (
    create_return_record,
    get_return_record,
    get_return_record_by_id,
    list_return_records,
    delete_return_record,
    delete_return_records,
)

from .return_items import (
    ReturnItem,
    set_return_items,
    add_return_item,
    remove_return_item,
    calculate_items_cost,
    normalize_return_items,
)

from .field_updates import (
    UPDATABLE_FIELDS,
    update_field,
    update_field_by_entry_id,
    update_fields,
)

from .bulk_update import (
    bulk_update_return_records,
)

from .summaries import (
    ReturnManagementSummary,
    build_summaries,
    get_cached_summaries,
    get_all_for_bulk_edit,
    summarize_entry,
    classify_return_rate,
    get_ledger_return_statistics,
)

from .record_search import (
    ALL_STATUSES,
    search_return_records,
)

from .item_masters import (
    create_item_master,
    list_item_masters,
    get_item_master,
    update_item_master,
    delete_item_master,
    build_item_from_master,
)


__all__ = [
    # Exceptions
    'ReturnsServiceError',
    'UnauthenticatedError',
    'DuplicateReturnRecordError',
    'ForbiddenFieldError',
    'InvalidFieldValueError',
    'ReturnRecordNotFoundError',
    'KoudenNotFoundError',
    'KoudenEntryNotFoundError',
    'InvalidFilterError',
    'InvalidReturnItemError',
    'DuplicateItemMasterError',
    'ItemMasterNotFoundError',
    'ReturnPersistenceError',

    # Record Repository
    'create_return_record',
    'get_return_record',
    'get_return_record_by_id',
    'list_return_records',
    'delete_return_record',
    'delete_return_records',

    # Return Items
    'ReturnItem',
    'set_return_items',
    'add_return_item',
    'remove_return_item',
    'calculate_items_cost',
    'normalize_return_items',

    # Field Update Gateway
    'UPDATABLE_FIELDS',
    'update_field',
    'update_field_by_entry_id',
    'update_fields',

    # Bulk Filter & Update
    'bulk_update_return_records',

    # Summaries
    'ReturnManagementSummary',
    'build_summaries',
    'get_cached_summaries',
    'get_all_for_bulk_edit',
    'summarize_entry',
    'classify_return_rate',
    'get_ledger_return_statistics',

    # Record search
    'ALL_STATUSES',
    'search_return_records',

    # Item Masters
    'create_item_master',
    'list_item_masters',
    'get_item_master',
    'update_item_master',
    'delete_item_master',
    'build_item_from_master',
]
