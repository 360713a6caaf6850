"""Code sequencing service used by the API and the CLI.

Unlike CodeAllocator, these operations own their transaction: each call
commits on success and rolls back on failure. Code paths that insert the
owning record in the same transaction should use CodeAllocator directly.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from almox.models.enums import DocumentType, ManifestKind
from almox.services.codes.allocator import AllocationResult, CodeAllocator
from almox.services.codes.bulk import BulkAllocationResult, BulkAllocator
from almox.services.codes.formatter import ParsedCode, parse_code
from almox.services.codes.manifests import manifest_target
from almox.services.codes.repair import CodeRepairService, RepairReport

logger = structlog.get_logger(__name__)


class CodeService:
    """Service for allocating, parsing and repairing document codes."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.allocator = CodeAllocator(session)
        self.bulk = BulkAllocator(self.allocator)

    async def allocate_code(
        self,
        document_type: DocumentType,
        scope_ref: str | None,
        *,
        allow_placeholder_scope: bool = False,
    ) -> AllocationResult:
        try:
            result = await self.allocator.allocate(
                document_type, scope_ref, allow_placeholder_scope=allow_placeholder_scope
            )
        except BaseException:
            await self.session.rollback()
            raise
        await self.session.commit()
        return result

    async def allocate_bulk_codes(
        self,
        document_type: DocumentType,
        scope_ref: str | None,
        count: int,
        *,
        allow_placeholder_scope: bool = False,
    ) -> BulkAllocationResult:
        try:
            result = await self.bulk.allocate_bulk(
                document_type, scope_ref, count, allow_placeholder_scope=allow_placeholder_scope
            )
        except BaseException:
            await self.session.rollback()
            raise
        await self.session.commit()
        return result

    async def allocate_manifest_code(
        self,
        kind: ManifestKind,
        centro_custo_origem_id: str | None,
        centro_custo_destino_id: str | None,
    ) -> AllocationResult:
        document_type, scope_ref = manifest_target(kind, centro_custo_origem_id, centro_custo_destino_id)
        return await self.allocate_code(document_type, scope_ref)

    async def is_code_available(self, document_type: DocumentType, code: str) -> bool:
        return await self.allocator.is_code_available(document_type, code)

    async def repair_sequential_codes(self, document_type: DocumentType, scope_ref: str | None = None) -> RepairReport:
        """Run a repair pass and commit the rewrites that succeeded."""
        repair = CodeRepairService(self.session, formatter=self.allocator.formatter)
        try:
            report = await repair.repair(document_type, scope_ref)
        except BaseException:
            await self.session.rollback()
            raise
        await self.session.commit()
        return report

    @staticmethod
    def parse_code(code: str) -> ParsedCode | None:
        return parse_code(code)
