"""Code allocation: the single entry point for "the next code".

Flow for one allocation:

    Idle -> ResolvingScope -> Scanning -> Formatting -> Succeeded
                                                    -> FallbackApplied
                                                    -> Failed (exception)

FallbackApplied covers two degraded paths, both reported on the result:
a timestamp-seeded sequence when the store could not be read, and a
placeholder scope code when the caller opted in and the scope was missing.
"""

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TypeVar

import anyio
import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from almox.config import settings
from almox.models.enums import AllocationOutcome, DocumentType
from almox.services.codes.counter import ScopeCounter
from almox.services.codes.exceptions import (
    AllocationTimeout,
    DuplicateOnInsert,
    FormatError,
    QueryFailure,
    ScopeNotFound,
)
from almox.services.codes.formatter import CodeFormatter, CodeTemplate, ScopeKey, default_formatter
from almox.services.codes.scanner import SequenceScanner
from almox.services.codes.scope_resolver import ScopeResolver
from almox.services.codes.store import RecordStore
from almox.utils.retry import get_insert_retrying, get_query_retrying

logger = structlog.get_logger(__name__)

TRecord = TypeVar("TRecord", bound=SQLModel)


@dataclass(frozen=True)
class AllocationResult:
    code: str
    document_type: DocumentType
    scope_code: str
    sequence: int
    outcome: AllocationOutcome = AllocationOutcome.SUCCEEDED
    degraded_scope: bool = False
    reason: str | None = None

    @property
    def fallback_applied(self) -> bool:
        return self.outcome is AllocationOutcome.FALLBACK_APPLIED


@dataclass(frozen=True)
class Reservation:
    """Sequence range base + 1 .. base + count for one scope."""

    key: ScopeKey
    template: CodeTemplate
    base: int
    count: int
    outcome: AllocationOutcome
    degraded_scope: bool = False
    reason: str | None = None

    def sequences(self) -> range:
        return range(self.base + 1, self.base + self.count + 1)


def fallback_base(template: CodeTemplate, count: int, now_ns: int | None = None) -> int:
    """Timestamp-seeded base that keeps base + 1 .. base + count inside the digit budget.

    The base can land anywhere in the lane, near the top included. Once such
    a code is stored the scan picks it up, and later allocations in that lane
    raise FormatError on overflow until repair_sequential_codes renumbers it.
    """
    span = template.max_sequence - template.sequence_floor - count
    if span < 0:
        raise FormatError(f"Cannot fit {count} fallback codes into {template.document_type.value}")
    micros = (now_ns if now_ns is not None else time.time_ns()) // 1_000
    return template.sequence_floor + micros % (span + 1)


class CodeAllocator:
    """Resolves, scans, increments and formats codes.

    Never commits: the counter update rides on the caller's transaction,
    together with the record that will carry the code.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        formatter: CodeFormatter = default_formatter,
        resolver: ScopeResolver | None = None,
        scanner: SequenceScanner | None = None,
        fallback_on_query_failure: bool | None = None,
        timeout: float | None = None,
    ):
        self.session = session
        self.store = RecordStore(session)
        self.formatter = formatter
        self.resolver = resolver or ScopeResolver(self.store)
        self.scanner = scanner or SequenceScanner(self.store, formatter)
        self.counter = ScopeCounter(session)
        self.fallback_on_query_failure = (
            settings.code_fallback_on_query_failure if fallback_on_query_failure is None else fallback_on_query_failure
        )
        self.timeout = settings.code_allocation_timeout if timeout is None else timeout

    async def allocate(
        self,
        document_type: DocumentType,
        scope_ref: str | None,
        *,
        allow_placeholder_scope: bool = False,
    ) -> AllocationResult:
        """Next code for (document_type, scope).

        Args:
            allow_placeholder_scope: issue the template's placeholder scope
                (e.g. "0000" for requisitions) when the scope cannot be
                resolved, instead of failing. Callers that pass True must
                accept codes that are later reconciled by hand.

        Raises:
            ScopeNotFound, FormatError, QueryFailure, AllocationTimeout
        """
        reservation = await self.reserve(
            document_type, scope_ref, 1, allow_placeholder_scope=allow_placeholder_scope
        )
        sequence = reservation.base + 1
        code = reservation.template.render(reservation.key.scope_code, sequence)
        result = AllocationResult(
            code=code,
            document_type=document_type,
            scope_code=reservation.key.scope_code,
            sequence=sequence,
            outcome=reservation.outcome,
            degraded_scope=reservation.degraded_scope,
            reason=reservation.reason,
        )
        logger.info(
            "Code allocated",
            code=code,
            document_type=document_type.value,
            scope_code=result.scope_code,
            outcome=result.outcome.value,
        )
        return result

    async def reserve(
        self,
        document_type: DocumentType,
        scope_ref: str | None,
        count: int,
        *,
        allow_placeholder_scope: bool = False,
    ) -> Reservation:
        """Reserve count consecutive sequences for the scope under the allocation deadline."""
        with self._deadline(document_type):
            return await self._reserve(document_type, scope_ref, count, allow_placeholder_scope)

    @contextmanager
    def _deadline(self, document_type: DocumentType) -> Iterator[None]:
        try:
            with anyio.fail_after(self.timeout):
                yield
        except TimeoutError as e:
            logger.error("Code allocation timed out", document_type=document_type.value, timeout=self.timeout)
            raise AllocationTimeout(
                f"Allocation for {document_type.value} did not finish within {self.timeout}s"
            ) from e

    async def _reserve(
        self,
        document_type: DocumentType,
        scope_ref: str | None,
        count: int,
        allow_placeholder_scope: bool,
    ) -> Reservation:
        template = self.formatter.template(document_type)
        degraded_scope = False
        reason: str | None = None

        try:
            scope_code = await self.resolver.resolve(document_type, scope_ref)
        except ScopeNotFound:
            if not (allow_placeholder_scope and template.placeholder_scope is not None):
                raise
            scope_code = template.placeholder_scope
            degraded_scope = True
            reason = f"scope {scope_ref!r} not found, placeholder {scope_code!r} used"
            logger.warning("Placeholder scope applied", document_type=document_type.value, scope_ref=scope_ref)

        template.check_scope(scope_code)
        key = ScopeKey(document_type, scope_code)

        try:
            async for attempt in get_query_retrying():
                with attempt:
                    base = await self.counter.reserve(
                        key,
                        count,
                        floor=template.sequence_floor,
                        ceiling=template.max_sequence,
                        scan=lambda: self.scanner.current_max(key),
                    )
        except QueryFailure as e:
            if not self.fallback_on_query_failure:
                raise
            base = fallback_base(template, count)
            reason = f"store unavailable, timestamp-seeded sequence used: {e}"
            logger.warning("Fallback code sequence applied", scope=str(key), base=base, count=count, error=str(e))
            return Reservation(key, template, base, count, AllocationOutcome.FALLBACK_APPLIED, degraded_scope, reason)
        except OverflowError as e:
            raise FormatError(str(e)) from e

        outcome = AllocationOutcome.FALLBACK_APPLIED if degraded_scope else AllocationOutcome.SUCCEEDED
        return Reservation(key, template, base, count, outcome, degraded_scope, reason)

    async def create_with_code(
        self,
        document_type: DocumentType,
        scope_ref: str | None,
        build: Callable[[AllocationResult], TRecord],
        *,
        allow_placeholder_scope: bool = False,
    ) -> tuple[TRecord, AllocationResult]:
        """Allocate a code, build the owning record and insert it.

        The insert runs in a savepoint; a unique violation on the code column
        rolls the savepoint back and allocates again, with jittered backoff,
        until settings.code_insert_max_retries is exhausted. The allocation
        deadline covers all attempts together, backoff included.

        Usage:
            romaneio, result = await allocator.create_with_code(
                DocumentType.OUTBOUND_MANIFEST,
                destino_id,
                lambda r: Romaneio(numero=r.code, tipo="retirada", centro_custo_destino_id=destino_id),
            )
            await session.commit()

        Raises:
            DuplicateOnInsert: every attempt collided.
            AllocationTimeout: the attempts did not finish within the deadline.
        """
        table = self.store.table_for(document_type)
        attempts = 0
        with self._deadline(document_type):
            async for attempt in get_insert_retrying():
                with attempt:
                    attempts += 1
                    result = await self.allocate(
                        document_type, scope_ref, allow_placeholder_scope=allow_placeholder_scope
                    )
                    record = build(result)
                    try:
                        async with self.session.begin_nested():
                            self.session.add(record)
                            await self.session.flush()
                    except IntegrityError as e:
                        if not table.is_code_conflict(e):
                            raise
                        logger.warning(
                            "Code conflict on insert, retrying",
                            code=result.code,
                            attempt=attempts,
                            table=table.table_name,
                        )
                        raise DuplicateOnInsert(result.code, attempts) from e
                    return record, result

        # AsyncRetrying either returns from inside the loop or re-raises
        raise AssertionError("unreachable")

    async def is_code_available(self, document_type: DocumentType, code: str) -> bool:
        """True if no record of the owning table carries code."""
        return not await self.store.code_exists(document_type, code)
