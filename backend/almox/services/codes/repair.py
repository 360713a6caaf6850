"""Renumbering of existing codes into a canonical gap-free sequence.

Maintenance only. Must not run while live allocations target the same
table: the pass rewrites codes that concurrent allocations may be reading.
The CLI and the admin endpoint are expected to be used during a quiet window.
"""

from dataclasses import dataclass, field
from typing import Any

import anyio
import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from almox.config import settings
from almox.models.enums import DocumentType
from almox.services.codes.counter import ScopeCounter
from almox.services.codes.exceptions import FormatError
from almox.services.codes.formatter import CodeFormatter, ScopeKey, default_formatter
from almox.services.codes.scope_resolver import ScopeResolver
from almox.services.codes.store import CodeTable, RecordStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RepairPartialFailure:
    """One record the repair could not rewrite; the rest of the pass continues."""

    record_id: str
    current_code: str
    target_code: str | None
    message: str

    def __str__(self) -> str:
        return f"{self.record_id}: {self.current_code} -> {self.target_code}: {self.message}"


@dataclass
class RepairReport:
    document_type: DocumentType
    scope_code: str
    total: int = 0
    fixed_count: int = 0
    failures: list[RepairPartialFailure] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        return [str(failure) for failure in self.failures]

    @property
    def success(self) -> bool:
        return not self.failures


@dataclass
class _Entry:
    record: Any
    record_id: str
    code: str
    original: str
    target: str | None = None


class _ScopeRolledBack(Exception):
    """A record could be left on neither its target nor its original code."""


class CodeRepairService:
    """Rewrites every code of a scope to base + ordinal, oldest record first."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        formatter: CodeFormatter = default_formatter,
        timeout: float | None = None,
    ):
        self.session = session
        self.store = RecordStore(session)
        self.formatter = formatter
        self.resolver = ScopeResolver(self.store)
        self.counter = ScopeCounter(session)
        self.timeout = settings.repair_timeout if timeout is None else timeout

    async def repair(self, document_type: DocumentType, scope_ref: str | None = None) -> RepairReport:
        """Renumber one scope (the whole table for inventory items).

        Does not commit; the caller commits once the report is acceptable.

        Raises:
            ScopeNotFound, FormatError: the scope itself is unusable.
            TimeoutError: settings.repair_timeout elapsed.
        """
        with anyio.fail_after(self.timeout):
            return await self._repair(document_type, scope_ref)

    async def _repair(self, document_type: DocumentType, scope_ref: str | None) -> RepairReport:
        template = self.formatter.template(document_type)
        scope_code = await self.resolver.resolve(document_type, scope_ref)
        template.check_scope(scope_code)
        key = ScopeKey(document_type, scope_code)
        table = self.store.table_for(document_type)
        prefix = template.prefix(scope_code)

        report = RepairReport(document_type=document_type, scope_code=scope_code)
        entries = await self._load_entries(table, key, prefix)
        report.total = len(entries)
        logger.info("Repair started", scope=str(key), records=report.total)

        for ordinal, entry in enumerate(entries):
            try:
                entry.target = template.render(scope_code, template.repair_base + ordinal)
            except FormatError as e:
                report.failures.append(RepairPartialFailure(entry.record_id, entry.code, None, str(e)))

        plan = [entry for entry in entries if entry.target is not None and entry.code != entry.target]
        try:
            async with self.session.begin_nested():
                await self._apply(table, prefix, plan, report)
        except _ScopeRolledBack:
            for entry in plan:
                entry.code = entry.original
            report.fixed_count = 0
            logger.error("Repair rolled back for scope", scope=str(key), errors=len(report.failures))

        await self.counter.reset(key, self._highest_sequence(key, entries))

        logger.info(
            "Repair finished",
            scope=str(key),
            records=report.total,
            fixed=report.fixed_count,
            errors=len(report.failures),
        )
        return report

    async def _load_entries(self, table: CodeTable, key: ScopeKey, prefix: str) -> list[_Entry]:
        template = self.formatter.template(key.document_type)
        entries = []
        for record in await self.store.records_by_prefix(key.document_type, prefix):
            code = getattr(record, table.code_field)
            parsed = template.parse(code)
            # Same prefix, longer scope ("ALM001-X" under "ALM001"): another lane
            if parsed is not None and parsed.scope_code != key.scope_code:
                continue
            entries.append(_Entry(record=record, record_id=str(record.id), code=code, original=code))
        return entries

    async def _apply(self, table: CodeTable, prefix: str, plan: list[_Entry], report: RepairReport) -> None:
        """Park records whose code is another record's target, then assign every target.

        A record that cannot take its target goes back to its original code,
        so no parked code survives the pass. When even that fails the whole
        scope is rolled back.
        """
        targets = {entry.target for entry in plan}
        moving = []
        for entry in plan:
            if entry.code in targets:
                if not await self._rewrite(table, entry, f"{prefix}~{entry.record_id}", report):
                    continue
            moving.append(entry)

        for entry in moving:
            assert entry.target is not None
            if await self._rewrite(table, entry, entry.target, report):
                report.fixed_count += 1
            elif entry.code != entry.original and not await self._restore(table, entry, report):
                raise _ScopeRolledBack(entry.record_id)

    async def _restore(self, table: CodeTable, entry: _Entry, report: RepairReport) -> bool:
        try:
            async with self.session.begin_nested():
                setattr(entry.record, table.code_field, entry.original)
                await self.session.flush()
        except DBAPIError as e:
            logger.error("Original code could not be restored", record_id=entry.record_id, code=entry.original)
            report.failures.append(
                RepairPartialFailure(
                    entry.record_id,
                    entry.code,
                    entry.original,
                    f"original code could not be restored: {e.orig or e}",
                )
            )
            return False

        logger.warning("Original code restored", record_id=entry.record_id, code=entry.original)
        entry.code = entry.original
        return True

    async def _rewrite(self, table: CodeTable, entry: _Entry, new_code: str, report: RepairReport) -> bool:
        try:
            async with self.session.begin_nested():
                setattr(entry.record, table.code_field, new_code)
                await self.session.flush()
        except DBAPIError as e:
            logger.warning("Repair update failed", record_id=entry.record_id, code=entry.code, target=new_code)
            report.failures.append(RepairPartialFailure(entry.record_id, entry.code, new_code, str(e.orig or e)))
            return False

        logger.info("Code rewritten", record_id=entry.record_id, old=entry.code, new=new_code)
        entry.code = new_code
        return True

    def _highest_sequence(self, key: ScopeKey, entries: list[_Entry]) -> int:
        template = self.formatter.template(key.document_type)
        highest = template.sequence_floor
        for entry in entries:
            parsed = template.parse(entry.code)
            if parsed is not None and parsed.scope_code == key.scope_code:
                highest = max(highest, parsed.sequence)
        return highest
