"""Scope resolution: scope reference -> canonical scope code."""

import structlog

from almox.models.enums import GENERIC_DOCUMENT_TYPES, DocumentType
from almox.models.types import parse_entity_id
from almox.services.codes.exceptions import ScopeNotFound
from almox.services.codes.store import RecordStore

logger = structlog.get_logger(__name__)

# Organization-wide issuing units for generic documents
ISSUING_UNIT_SCOPES: dict[str, str] = {
    "matriz": "00",
    "parauapebas": "01",
}


class ScopeResolver:
    """Maps a scope reference to the scope code used inside generated codes.

    A reference is either a cost center id (ULID or UUID string), looked up
    in the store, or an already-canonical scope code used as-is. The resolver
    never substitutes a placeholder; see CodeAllocator for that opt-in.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    async def resolve(self, document_type: DocumentType, scope_ref: str | None) -> str:
        if document_type is DocumentType.INVENTORY_ITEM:
            return ""

        ref = (scope_ref or "").strip()
        if not ref:
            raise ScopeNotFound(scope_ref, f"A scope is required for {document_type.value} codes")

        if document_type in GENERIC_DOCUMENT_TYPES and ref.lower() in ISSUING_UNIT_SCOPES:
            return ISSUING_UNIT_SCOPES[ref.lower()]

        if parse_entity_id(ref) is None:
            return ref

        scope_code = await self.store.lookup_scope_code(ref)
        if not scope_code:
            logger.warning("Cost center not found for scope", scope_ref=ref, document_type=document_type.value)
            raise ScopeNotFound(ref, f"Cost center not found or without code: {ref}")
        return scope_code
