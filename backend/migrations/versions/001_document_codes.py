"""document_codes

Revision ID: 001_document_codes
Revises:
Create Date: 2026-10-19 09:12:31.402117

"""

from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_document_codes"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create centros_custo table (ULID as UUID)
    op.create_table(
        "centros_custo",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("codigo", sa.String(length=32), nullable=False),
        sa.Column("descricao", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("ativo", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_centros_custo_codigo"), "centros_custo", ["codigo"], unique=False)

    # Create solicitacoes table (ODC/OSA/GRD/SCO)
    op.create_table(
        "solicitacoes",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("numero", sa.String(length=64), nullable=False),
        sa.Column("tipo", sa.String(length=3), nullable=False),
        sa.Column("centro_custo_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("descricao", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["centro_custo_id"], ["centros_custo.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero", name="uq_solicitacoes_numero"),
    )
    op.create_index(op.f("ix_solicitacoes_centro_custo_id"), "solicitacoes", ["centro_custo_id"], unique=False)
    op.create_index(op.f("ix_solicitacoes_created_at"), "solicitacoes", ["created_at"], unique=False)
    # Prefix scans (numero LIKE 'SCO-AL-1000-%') need pattern ops under non-C collations
    op.create_index(
        "ix_solicitacoes_numero_pattern",
        "solicitacoes",
        ["numero"],
        unique=False,
        postgresql_ops={"numero": "varchar_pattern_ops"},
    )

    # Create romaneios table (ROM/RDV)
    op.create_table(
        "romaneios",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("numero", sa.String(length=64), nullable=False),
        sa.Column("tipo", sa.String(length=16), nullable=False),
        sa.Column("centro_custo_origem_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("centro_custo_destino_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["centro_custo_origem_id"], ["centros_custo.id"]),
        sa.ForeignKeyConstraint(["centro_custo_destino_id"], ["centros_custo.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("numero", name="uq_romaneios_numero"),
    )
    op.create_index(op.f("ix_romaneios_created_at"), "romaneios", ["created_at"], unique=False)
    op.create_index(
        "ix_romaneios_numero_pattern",
        "romaneios",
        ["numero"],
        unique=False,
        postgresql_ops={"numero": "varchar_pattern_ops"},
    )

    # Create materiais_equipamentos table (5-digit inventory codes)
    op.create_table(
        "materiais_equipamentos",
        sa.Column("id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("codigo", sa.String(length=64), nullable=False),
        sa.Column("nome", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("codigo", name="uq_materiais_equipamentos_codigo"),
    )
    op.create_index(
        op.f("ix_materiais_equipamentos_created_at"), "materiais_equipamentos", ["created_at"], unique=False
    )

    # Create code_sequences table (one locked counter row per numbering lane)
    op.create_table(
        "code_sequences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(length=3), nullable=False),
        sa.Column("scope_code", sa.String(length=32), nullable=False, server_default=""),
        sa.Column("last_value", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("document_type", "scope_code", name="uq_code_sequence_scope"),
    )


def downgrade() -> None:
    op.drop_table("code_sequences")

    op.drop_index(op.f("ix_materiais_equipamentos_created_at"), table_name="materiais_equipamentos")
    op.drop_table("materiais_equipamentos")

    op.drop_index("ix_romaneios_numero_pattern", table_name="romaneios")
    op.drop_index(op.f("ix_romaneios_created_at"), table_name="romaneios")
    op.drop_table("romaneios")

    op.drop_index("ix_solicitacoes_numero_pattern", table_name="solicitacoes")
    op.drop_index(op.f("ix_solicitacoes_created_at"), table_name="solicitacoes")
    op.drop_index(op.f("ix_solicitacoes_centro_custo_id"), table_name="solicitacoes")
    op.drop_table("solicitacoes")

    op.drop_index(op.f("ix_centros_custo_codigo"), table_name="centros_custo")
    op.drop_table("centros_custo")
