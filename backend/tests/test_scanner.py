import pytest
from sqlalchemy import text

from almox.models.enums import DocumentType
from almox.services.codes import QueryFailure, ScopeKey
from almox.services.codes.scanner import SequenceScanner
from almox.services.codes.store import RecordStore
from tests.factories import add_materiais, add_romaneios

pytestmark = pytest.mark.anyio

ALM001 = ScopeKey(DocumentType.OUTBOUND_MANIFEST, "ALM001")


async def test_empty_scope_scans_as_zero(session):
    assert await SequenceScanner(RecordStore(session)).current_max(ALM001) == 0


async def test_highest_of_exact_matches(session):
    await add_romaneios(
        session,
        [
            "ROM-AL-ALM001-0012",
            "ROM-AL-ALM001-0003",
            "ROM-AL-ALM001-X-0099",
            "ROM-AL-ALM001-12345",
            "ROM-AL-ALM002-0050",
            "RDV-AL-ALM001-0070",
        ],
    )

    assert await SequenceScanner(RecordStore(session)).current_max(ALM001) == 12


async def test_only_the_most_recent_matches_are_inspected(session):
    # The oldest record carries the highest sequence and falls outside the window
    await add_romaneios(session, ["ROM-AL-ALM001-0500", *(f"ROM-AL-ALM001-{n:04d}" for n in range(1, 11))])
    store = RecordStore(session)

    assert await SequenceScanner(store, scan_window=10).current_max(ALM001) == 10
    assert await SequenceScanner(store, scan_window=50).current_max(ALM001) == 500


async def test_inventory_scans_the_whole_table(session):
    await add_materiais(session, ["10077", *(str(n) for n in range(10000, 10015))])
    scanner = SequenceScanner(RecordStore(session), scan_window=3)

    assert await scanner.current_max(ScopeKey(DocumentType.INVENTORY_ITEM, "")) == 10077


async def test_store_error_is_not_an_empty_result(session):
    await session.execute(text("DROP TABLE romaneios"))

    with pytest.raises(QueryFailure):
        await SequenceScanner(RecordStore(session)).current_max(ALM001)
