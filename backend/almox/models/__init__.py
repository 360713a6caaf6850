"""Database models."""

from sqlmodel import SQLModel

from almox.models.code_sequence import CodeSequence
from almox.models.enums import AllocationOutcome, DocumentType, ManifestKind
from almox.models.records import CentroCusto, MaterialEquipamento, Romaneio, Solicitacao

__all__ = [
    "SQLModel",
    "AllocationOutcome",
    "CentroCusto",
    "CodeSequence",
    "DocumentType",
    "ManifestKind",
    "MaterialEquipamento",
    "Romaneio",
    "Solicitacao",
]
