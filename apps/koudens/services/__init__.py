"""
Koudens app services layer.

Read-only collaborators of the return-gift engine: ledger entry reader,
relationship lookup and offering allocation.
"""

from .exceptions import (
    KoudensServiceError,
    KoudenNotFoundError,
    KoudenEntryNotFoundError,
)

from .entries import (
    get_kouden,
    get_entry,
    list_entries,
)

from .relationships import (
    list_relationships,
)

from .offering_allocation import (
    allocated_offering_value,
    allocated_offering_values,
)


__all__ = [
    # Exceptions
    'KoudensServiceError',
    'KoudenNotFoundError',
    'KoudenEntryNotFoundError',

    # Ledger entry reader
    'get_kouden',
    'get_entry',
    'list_entries',

    # Relationship lookup
    'list_relationships',

    # Offering allocation
    'allocated_offering_value',
    'allocated_offering_values',
]
