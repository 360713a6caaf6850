"""Row-locked per-scope counter for code allocation."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

import structlog
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from almox.models.code_sequence import CODE_SEQUENCE_SCOPE_CONSTRAINT, CodeSequence
from almox.services.codes.exceptions import QueryFailure
from almox.services.codes.formatter import ScopeKey

logger = structlog.get_logger(__name__)

ScanFn = Callable[[], Awaitable[int]]


class ScopeCounter:
    """Reserves sequence ranges for a ScopeKey under SELECT ... FOR UPDATE.

    The counter row lock is taken inside a savepoint of the caller's
    transaction and held until that transaction ends, so a caller that
    inserts its record before committing is serialized against every other
    allocation for the same scope. Other scopes lock other rows.

    The scan runs while the lock is held; the reserved base is the larger of
    the counter and the scanned maximum, so records written around the
    counter (imports, manual fixes) are never reissued.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _select_for_update(self, key: ScopeKey) -> CodeSequence | None:
        stmt = (
            select(CodeSequence)
            .where(
                CodeSequence.document_type == key.document_type.value,
                CodeSequence.scope_code == key.scope_code,
            )
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def _lock_or_create(self, key: ScopeKey) -> CodeSequence:
        row = await self._select_for_update(key)
        if row is not None:
            return row

        try:
            async with self.session.begin_nested():
                self.session.add(CodeSequence(document_type=key.document_type.value, scope_code=key.scope_code))
                await self.session.flush()
        except IntegrityError as e:
            if str(CODE_SEQUENCE_SCOPE_CONSTRAINT.name) not in str(e) and "code_sequences." not in str(e):
                raise
            # Another transaction created the row first; wait for its lock
            logger.debug("Counter row created concurrently", scope=str(key))

        row = await self._select_for_update(key)
        if row is None:
            raise QueryFailure(f"Counter row for {key} vanished after creation")
        return row

    async def reserve(self, key: ScopeKey, count: int, *, floor: int, ceiling: int, scan: ScanFn) -> int:
        """Advance the counter by count and return the base (first value is base + 1).

        ceiling is the largest sequence the template can render; a range past
        it is rejected by raising OverflowError before the counter moves.

        Raises:
            QueryFailure: the counter row or the scan could not be read.
            OverflowError: base + count exceeds ceiling.
        """
        try:
            async with self.session.begin_nested():
                row = await self._lock_or_create(key)
                scanned = await scan()
                base = max(row.last_value, scanned, floor)
                if base + count > ceiling:
                    raise OverflowError(f"{key}: {base} + {count} exceeds {ceiling}")
                row.last_value = base + count
                row.updated_at = datetime.now(UTC)
                await self.session.flush()
        except DBAPIError as e:
            raise QueryFailure(f"Counter access failed for {key}: {e}") from e

        logger.debug("Reserved sequence range", scope=str(key), base=base, count=count, scanned=scanned)
        return base

    async def reset(self, key: ScopeKey, last_value: int) -> None:
        """Set the counter to last_value (used after a repair renumbers the scope)."""
        async with self.session.begin_nested():
            row = await self._lock_or_create(key)
            row.last_value = last_value
            row.updated_at = datetime.now(UTC)
            await self.session.flush()
        logger.info("Counter reset", scope=str(key), last_value=last_value)
