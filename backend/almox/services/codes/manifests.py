"""Romaneio numbering rules: which prefix and which cost center scope a manifest."""

from almox.models.enums import DocumentType, ManifestKind
from almox.services.exceptions import ValidationError


def manifest_target(
    kind: ManifestKind,
    centro_custo_origem_id: str | None,
    centro_custo_destino_id: str | None,
) -> tuple[DocumentType, str]:
    """Document type and scope reference for a romaneio.

    Returns (RDV, origin) for devolucao and (ROM, destination) for retirada
    and entrada.
    """
    if kind is ManifestKind.DEVOLUCAO:
        if not centro_custo_origem_id:
            raise ValidationError("Origin cost center is required for a devolucao romaneio")
        return DocumentType.RETURN_MANIFEST, centro_custo_origem_id

    if not centro_custo_destino_id:
        raise ValidationError(f"Destination cost center is required for a {kind.value} romaneio")
    return DocumentType.OUTBOUND_MANIFEST, centro_custo_destino_id
