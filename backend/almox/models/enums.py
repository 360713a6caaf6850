"""Enum definitions for database models."""

from enum import StrEnum


class DocumentType(StrEnum):
    """Document type tag; the value is the code prefix (inventory has none)."""

    PURCHASE_ORDER = "ODC"
    SERVICE_ORDER = "OSA"
    DOCUMENT_TRANSMITTAL = "GRD"
    PURCHASE_REQUISITION = "SCO"
    OUTBOUND_MANIFEST = "ROM"
    RETURN_MANIFEST = "RDV"
    INVENTORY_ITEM = "MAT"


GENERIC_DOCUMENT_TYPES = frozenset(
    {
        DocumentType.PURCHASE_ORDER,
        DocumentType.SERVICE_ORDER,
        DocumentType.DOCUMENT_TRANSMITTAL,
    }
)

MANIFEST_DOCUMENT_TYPES = frozenset({DocumentType.OUTBOUND_MANIFEST, DocumentType.RETURN_MANIFEST})


class ManifestKind(StrEnum):
    """Kind of romaneio (shipment manifest)."""

    RETIRADA = "retirada"
    ENTRADA = "entrada"
    DEVOLUCAO = "devolucao"


class AllocationOutcome(StrEnum):
    """Terminal state of a code allocation."""

    SUCCEEDED = "succeeded"
    FALLBACK_APPLIED = "fallback_applied"
    FAILED = "failed"
