import pytest

from almox.models.enums import DocumentType, ManifestKind
from almox.services.codes import CodeService
from almox.services.codes.manifests import manifest_target
from almox.services.exceptions import ValidationError
from tests.factories import add_cost_center

pytestmark = pytest.mark.anyio


def test_devolucao_uses_return_prefix_and_origin():
    assert manifest_target(ManifestKind.DEVOLUCAO, "origem", "destino") == (DocumentType.RETURN_MANIFEST, "origem")


@pytest.mark.parametrize("kind", [ManifestKind.RETIRADA, ManifestKind.ENTRADA])
def test_other_kinds_use_outbound_prefix_and_destination(kind):
    assert manifest_target(kind, "origem", "destino") == (DocumentType.OUTBOUND_MANIFEST, "destino")


def test_devolucao_without_origin():
    with pytest.raises(ValidationError):
        manifest_target(ManifestKind.DEVOLUCAO, None, "destino")


def test_retirada_without_destination():
    with pytest.raises(ValidationError):
        manifest_target(ManifestKind.RETIRADA, "origem", None)


async def test_manifest_codes_follow_cost_centers(session):
    almox = await add_cost_center(session, "ALM001")
    producao = await add_cost_center(session, "PROD100")
    service = CodeService(session)

    retirada = await service.allocate_manifest_code(ManifestKind.RETIRADA, almox.id, producao.id)
    devolucao = await service.allocate_manifest_code(ManifestKind.DEVOLUCAO, producao.id, almox.id)
    entrada = await service.allocate_manifest_code(ManifestKind.ENTRADA, None, producao.id)

    assert retirada.code == "ROM-AL-PROD100-0001"
    assert devolucao.code == "RDV-AL-PROD100-0001"
    assert entrada.code == "ROM-AL-PROD100-0002"
