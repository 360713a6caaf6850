"""Record store access for code sequencing.

The store is the only source of truth for codes already in use; this module
is the single place that knows which table and column hold each document
type's codes.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import structlog
from sqlalchemy import UniqueConstraint, func
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

from almox.models.enums import DocumentType
from almox.models.records import (
    MATERIAL_CODIGO_CONSTRAINT,
    ROMANEIO_NUMERO_CONSTRAINT,
    SOLICITACAO_NUMERO_CONSTRAINT,
    CentroCusto,
    MaterialEquipamento,
    Romaneio,
    Solicitacao,
)
from almox.models.types import parse_entity_id
from almox.services.codes.exceptions import QueryFailure

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CodeTable:
    """Table and column holding one document type's codes."""

    model: type[SQLModel]
    code_field: str
    constraint: UniqueConstraint

    @property
    def column(self) -> Any:  # InstrumentedAttribute at runtime
        return getattr(self.model, self.code_field)

    @property
    def table_name(self) -> str:
        return str(self.model.__tablename__)

    def is_code_conflict(self, exc: IntegrityError) -> bool:
        """True if exc is a unique violation on this table's code column.

        PostgreSQL reports the constraint name, SQLite reports "table.column".
        """
        error_str = str(exc.orig if exc.orig is not None else exc).lower()
        if self.constraint.name and str(self.constraint.name).lower() in error_str:
            return True
        return f"{self.table_name}.{self.code_field}".lower() in error_str


_SOLICITACOES = CodeTable(Solicitacao, "numero", SOLICITACAO_NUMERO_CONSTRAINT)
_ROMANEIOS = CodeTable(Romaneio, "numero", ROMANEIO_NUMERO_CONSTRAINT)
_MATERIAIS = CodeTable(MaterialEquipamento, "codigo", MATERIAL_CODIGO_CONSTRAINT)

CODE_TABLES: dict[DocumentType, CodeTable] = {
    DocumentType.PURCHASE_ORDER: _SOLICITACOES,
    DocumentType.SERVICE_ORDER: _SOLICITACOES,
    DocumentType.DOCUMENT_TRANSMITTAL: _SOLICITACOES,
    DocumentType.PURCHASE_REQUISITION: _SOLICITACOES,
    DocumentType.OUTBOUND_MANIFEST: _ROMANEIOS,
    DocumentType.RETURN_MANIFEST: _ROMANEIOS,
    DocumentType.INVENTORY_ITEM: _MATERIAIS,
}


@dataclass(frozen=True)
class CodeRow:
    code: str
    created_at: datetime


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so a scope code matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class RecordStore:
    """Read access to code-carrying records over an AsyncSession.

    Driver errors are re-raised as QueryFailure so callers can tell
    "could not check" apart from "nothing found".
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def table_for(document_type: DocumentType) -> CodeTable:
        return CODE_TABLES[document_type]

    async def query_by_code_prefix(
        self,
        document_type: DocumentType,
        prefix: str,
        *,
        newest_first: bool = True,
        limit: int | None = None,
    ) -> list[CodeRow]:
        """Codes starting with prefix, ordered by creation time."""
        table = self.table_for(document_type)
        created_at = table.model.created_at  # type: ignore[attr-defined]
        stmt = select(table.column, created_at)
        if prefix:
            stmt = stmt.where(table.column.like(f"{escape_like(prefix)}%", escape="\\"))
        stmt = stmt.order_by(created_at.desc() if newest_first else created_at.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            result = await self.session.execute(stmt)
        except DBAPIError as e:
            raise QueryFailure(f"Code scan failed for {table.table_name} prefix {prefix!r}: {e}") from e
        return [CodeRow(code=row[0], created_at=row[1]) for row in result.all()]

    async def lookup_scope_code(self, entity_ref: str) -> str | None:
        """Cost center `codigo` for an entity id, or None if no such cost center."""
        entity_id = parse_entity_id(entity_ref)
        if entity_id is None:
            return None
        stmt = select(CentroCusto.codigo).where(CentroCusto.id == str(entity_id))
        try:
            result = await self.session.execute(stmt)
        except DBAPIError as e:
            raise QueryFailure(f"Cost center lookup failed for {entity_ref!r}: {e}") from e
        return result.scalars().first()

    async def code_exists(self, document_type: DocumentType, code: str) -> bool:
        table = self.table_for(document_type)
        stmt = select(func.count()).select_from(table.model).where(table.column == code)
        try:
            result = await self.session.execute(stmt)
        except DBAPIError as e:
            raise QueryFailure(f"Code lookup failed for {code!r}: {e}") from e
        return bool(result.scalar_one())

    async def records_by_prefix(self, document_type: DocumentType, prefix: str) -> list[Any]:
        """Full records whose code starts with prefix, oldest first (ties by id)."""
        table = self.table_for(document_type)
        model: Any = table.model
        stmt = select(model)
        if prefix:
            stmt = stmt.where(table.column.like(f"{escape_like(prefix)}%", escape="\\"))
        stmt = stmt.order_by(model.created_at.asc(), model.id.asc())
        try:
            result = await self.session.execute(stmt)
        except DBAPIError as e:
            raise QueryFailure(f"Record load failed for {table.table_name}: {e}") from e
        return list(result.scalars().all())
