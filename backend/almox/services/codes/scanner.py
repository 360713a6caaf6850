"""Sequence scanning over codes already stored."""

import structlog

from almox.config import settings
from almox.services.codes.formatter import CodeFormatter, ScopeKey, default_formatter
from almox.services.codes.store import RecordStore

logger = structlog.get_logger(__name__)


class SequenceScanner:
    """Finds the highest sequence already used by a scope.

    Only codes that parse exactly as the scope's own template count; legacy
    or foreign shapes sharing the prefix are ignored. A store error raises
    QueryFailure rather than reading as "no prior record".
    """

    def __init__(
        self,
        store: RecordStore,
        formatter: CodeFormatter = default_formatter,
        scan_window: int | None = None,
    ):
        self.store = store
        self.formatter = formatter
        self.scan_window = scan_window if scan_window is not None else settings.code_scan_window

    async def current_max(self, key: ScopeKey) -> int:
        template = self.formatter.template(key.document_type)
        # Inventory codes carry no prefix, so recency says nothing about magnitude
        limit = self.scan_window if template.scoped else None
        rows = await self.store.query_by_code_prefix(
            key.document_type,
            template.prefix(key.scope_code),
            newest_first=True,
            limit=limit,
        )

        highest = 0
        for row in rows:
            parsed = template.parse(row.code)
            if parsed is None or parsed.scope_code != key.scope_code:
                continue
            highest = max(highest, parsed.sequence)

        logger.debug("Scanned sequence", scope=str(key), matches=len(rows), current_max=highest)
        return highest
