"""Per-scope counter backing code allocation."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String, UniqueConstraint
from sqlmodel import Field, SQLModel

CODE_SEQUENCE_SCOPE_CONSTRAINT = UniqueConstraint("document_type", "scope_code", name="uq_code_sequence_scope")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class CodeSequence(SQLModel, table=True):
    """Last sequence handed out for one (document type, scope code) lane.

    Rows are created lazily on first allocation and locked with
    SELECT ... FOR UPDATE, so concurrent allocations for the same lane
    serialize while other lanes proceed in parallel.
    """

    __tablename__ = "code_sequences"
    __table_args__ = (CODE_SEQUENCE_SCOPE_CONSTRAINT,)

    id: int | None = Field(default=None, primary_key=True)
    document_type: str = Field(sa_column=Column(String(3), nullable=False))
    scope_code: str = Field(default="", sa_column=Column(String(32), nullable=False, default=""))
    last_value: int = Field(default=0)
    updated_at: datetime = Field(default_factory=_utc_now, sa_column=Column(DateTime(timezone=True), nullable=False))
