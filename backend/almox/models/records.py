"""Cost center and code-carrying record models."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlmodel import Field, SQLModel
from ulid import ULID

from almox.models.types import ULIDType


def _utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def _ulid() -> str:
    """Generate a new ULID string."""
    return str(ULID())


class CentroCusto(SQLModel, table=True):
    """Cost center; its `codigo` is the scope segment of manifest and requisition codes."""

    __tablename__ = "centros_custo"

    id: str = Field(
        default_factory=_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )
    codigo: str = Field(sa_column=Column(String(32), nullable=False, index=True))
    descricao: str | None = None
    ativo: bool = True
    created_at: datetime = Field(default_factory=_utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))


SOLICITACAO_NUMERO_CONSTRAINT = UniqueConstraint("numero", name="uq_solicitacoes_numero")


class Solicitacao(SQLModel, table=True):
    """Purchase requisition or generic document (ODC/OSA/GRD/SCO)."""

    __tablename__ = "solicitacoes"
    __table_args__ = (SOLICITACAO_NUMERO_CONSTRAINT,)

    id: str = Field(
        default_factory=_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )
    numero: str = Field(sa_column=Column(String(64), nullable=False))
    tipo: str = Field(sa_column=Column(String(3), nullable=False))  # DocumentType value
    centro_custo_id: str | None = Field(
        default=None,
        sa_column=Column(ULIDType, ForeignKey("centros_custo.id"), nullable=True, index=True),
    )
    descricao: str | None = None
    created_at: datetime = Field(
        default_factory=_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )


ROMANEIO_NUMERO_CONSTRAINT = UniqueConstraint("numero", name="uq_romaneios_numero")


class Romaneio(SQLModel, table=True):
    """Outbound (ROM) or return (RDV) shipment manifest."""

    __tablename__ = "romaneios"
    __table_args__ = (ROMANEIO_NUMERO_CONSTRAINT,)

    id: str = Field(
        default_factory=_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )
    numero: str = Field(sa_column=Column(String(64), nullable=False))
    tipo: str = Field(sa_column=Column(String(16), nullable=False))  # ManifestKind value
    centro_custo_origem_id: str | None = Field(
        default=None,
        sa_column=Column(ULIDType, ForeignKey("centros_custo.id"), nullable=True),
    )
    centro_custo_destino_id: str | None = Field(
        default=None,
        sa_column=Column(ULIDType, ForeignKey("centros_custo.id"), nullable=True),
    )
    created_at: datetime = Field(
        default_factory=_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )


MATERIAL_CODIGO_CONSTRAINT = UniqueConstraint("codigo", name="uq_materiais_equipamentos_codigo")


class MaterialEquipamento(SQLModel, table=True):
    """Inventory item; `codigo` is a bare 5-digit number."""

    __tablename__ = "materiais_equipamentos"
    __table_args__ = (MATERIAL_CODIGO_CONSTRAINT,)

    id: str = Field(
        default_factory=_ulid,
        max_length=26,
        sa_column=Column(ULIDType, primary_key=True),
    )
    codigo: str = Field(sa_column=Column(String(64), nullable=False))
    nome: str
    created_at: datetime = Field(
        default_factory=_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
