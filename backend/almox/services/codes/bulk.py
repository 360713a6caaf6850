"""Bulk allocation of consecutive codes for batch inserts (e.g. NF-e item import)."""

from dataclasses import dataclass

import structlog

from almox.models.enums import AllocationOutcome, DocumentType
from almox.services.codes.allocator import CodeAllocator
from almox.services.exceptions import ValidationError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BulkAllocationResult:
    codes: list[str]
    document_type: DocumentType
    scope_code: str
    base: int
    outcome: AllocationOutcome = AllocationOutcome.SUCCEEDED
    degraded_scope: bool = False
    reason: str | None = None

    @property
    def sequences(self) -> range:
        return range(self.base + 1, self.base + len(self.codes) + 1)

    @property
    def fallback_applied(self) -> bool:
        return self.outcome is AllocationOutcome.FALLBACK_APPLIED


class BulkAllocator:
    """Hands out base+1 .. base+count from a single locked scan.

    The counter advances by count under the same row lock, so two
    overlapping bulk (or single) allocations for a scope never share a range.
    """

    def __init__(self, allocator: CodeAllocator):
        self.allocator = allocator

    async def allocate_bulk(
        self,
        document_type: DocumentType,
        scope_ref: str | None,
        count: int,
        *,
        allow_placeholder_scope: bool = False,
    ) -> BulkAllocationResult:
        if count < 1:
            raise ValidationError(f"Bulk allocation needs a positive count, got {count}")

        reservation = await self.allocator.reserve(
            document_type, scope_ref, count, allow_placeholder_scope=allow_placeholder_scope
        )
        template = reservation.template
        codes = [template.render(reservation.key.scope_code, seq) for seq in reservation.sequences()]

        logger.info(
            "Codes allocated in bulk",
            document_type=document_type.value,
            scope_code=reservation.key.scope_code,
            first=codes[0],
            last=codes[-1],
            count=count,
            outcome=reservation.outcome.value,
        )
        return BulkAllocationResult(
            codes=codes,
            document_type=document_type,
            scope_code=reservation.key.scope_code,
            base=reservation.base,
            outcome=reservation.outcome,
            degraded_scope=reservation.degraded_scope,
            reason=reservation.reason,
        )
