import pytest
from ulid import ULID

from almox.models.enums import DocumentType
from almox.services.codes import ScopeNotFound
from almox.services.codes.scope_resolver import ScopeResolver
from almox.services.codes.store import RecordStore
from tests.factories import add_cost_center

pytestmark = pytest.mark.anyio


@pytest.fixture
def resolver(session):
    return ScopeResolver(RecordStore(session))


async def test_cost_center_id_resolves_to_its_code(session, resolver):
    centro = await add_cost_center(session, "1000")

    assert await resolver.resolve(DocumentType.PURCHASE_REQUISITION, centro.id) == "1000"


async def test_cost_center_uuid_form_resolves_too(session, resolver):
    centro = await add_cost_center(session, "ALM001")
    as_uuid = str(ULID.from_str(centro.id).to_uuid())

    assert await resolver.resolve(DocumentType.OUTBOUND_MANIFEST, as_uuid) == "ALM001"


async def test_unknown_cost_center_id_raises(resolver):
    with pytest.raises(ScopeNotFound) as exc_info:
        await resolver.resolve(DocumentType.PURCHASE_REQUISITION, str(ULID()))
    assert "not found" in str(exc_info.value)


@pytest.mark.parametrize("scope_ref", [None, "", "   "])
async def test_missing_scope_raises(resolver, scope_ref):
    with pytest.raises(ScopeNotFound):
        await resolver.resolve(DocumentType.OUTBOUND_MANIFEST, scope_ref)


async def test_inventory_items_have_no_scope(resolver):
    assert await resolver.resolve(DocumentType.INVENTORY_ITEM, None) == ""
    assert await resolver.resolve(DocumentType.INVENTORY_ITEM, "ignored") == ""


async def test_issuing_unit_names_map_for_generic_documents(resolver):
    assert await resolver.resolve(DocumentType.PURCHASE_ORDER, "Matriz") == "00"
    assert await resolver.resolve(DocumentType.SERVICE_ORDER, "parauapebas") == "01"


async def test_issuing_unit_names_are_literal_for_manifests(resolver):
    assert await resolver.resolve(DocumentType.OUTBOUND_MANIFEST, "matriz") == "matriz"


async def test_canonical_scope_code_is_used_as_is(resolver):
    assert await resolver.resolve(DocumentType.RETURN_MANIFEST, " PROD100 ") == "PROD100"
