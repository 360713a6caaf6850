"""Renumber the codes of one scope into a gap-free sequence.

Run during a maintenance window (no live allocation against the same table):

    uv run almox-repair-codes ROM --scope ALM001
    uv run almox-repair-codes MAT
"""

import asyncio
import sys

import click
import structlog

from almox.config import settings
from almox.db.session import build_engine, build_session_maker
from almox.logging import setup_logging
from almox.models.enums import DocumentType
from almox.services.codes.repair import RepairReport
from almox.services.codes.service import CodeService
from almox.services.exceptions import ServiceError

logger = structlog.get_logger(__name__)


async def run_repair(database_url: str, document_type: DocumentType, scope_ref: str | None) -> RepairReport:
    engine = build_engine(database_url)
    session_maker = build_session_maker(engine)
    try:
        async with session_maker() as session:
            return await CodeService(session).repair_sequential_codes(document_type, scope_ref)
    finally:
        await engine.dispose()


@click.command()
@click.argument("document_type", type=click.Choice([t.value for t in DocumentType], case_sensitive=False))
@click.option("--scope", "scope_ref", default=None, help="Cost center id or scope code (omit for MAT).")
@click.option("--database-url", default=None, help="Override DATABASE_URL.")
def main(document_type: str, scope_ref: str | None, database_url: str | None) -> None:
    """Repair sequential codes for DOCUMENT_TYPE within one scope."""
    setup_logging()
    doc_type = DocumentType(document_type.upper())

    try:
        report = asyncio.run(run_repair(database_url or settings.database_url, doc_type, scope_ref))
    except ServiceError as e:
        raise click.ClickException(str(e)) from e
    except TimeoutError as e:
        raise click.ClickException(f"Repair did not finish within {settings.repair_timeout}s") from e

    click.echo(
        f"{report.document_type.value} scope {report.scope_code or '-'}: "
        f"{report.fixed_count} of {report.total} codes rewritten"
    )
    for error in report.errors:
        click.echo(f"  error: {error}", err=True)

    if not report.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
