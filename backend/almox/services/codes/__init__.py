"""Document code sequencing.

- formatter: code templates, exact parsing
- scope_resolver: scope reference -> scope code
- scanner: highest sequence already stored for a scope
- counter: row-locked per-scope counter
- allocator: single and insert-with-retry allocation
- bulk: consecutive ranges from one scan
- repair: offline renumbering
- service: transaction-owning facade for API and CLI
"""

from almox.services.codes.allocator import AllocationResult, CodeAllocator
from almox.services.codes.bulk import BulkAllocationResult, BulkAllocator
from almox.services.codes.exceptions import (
    AllocationTimeout,
    CodeAllocationError,
    DuplicateOnInsert,
    FormatError,
    QueryFailure,
    ScopeNotFound,
)
from almox.services.codes.formatter import CodeFormatter, ParsedCode, ScopeKey, format_code, parse_code
from almox.services.codes.repair import CodeRepairService, RepairPartialFailure, RepairReport
from almox.services.codes.service import CodeService

__all__ = [
    "AllocationResult",
    "AllocationTimeout",
    "BulkAllocationResult",
    "BulkAllocator",
    "CodeAllocationError",
    "CodeAllocator",
    "CodeFormatter",
    "CodeRepairService",
    "CodeService",
    "DuplicateOnInsert",
    "FormatError",
    "ParsedCode",
    "QueryFailure",
    "RepairPartialFailure",
    "RepairReport",
    "ScopeKey",
    "ScopeNotFound",
    "format_code",
    "parse_code",
]
