"""API schemas for code endpoints."""

from pydantic import BaseModel, Field

from almox.models.enums import AllocationOutcome, DocumentType, ManifestKind
from almox.services.codes.allocator import AllocationResult
from almox.services.codes.bulk import BulkAllocationResult
from almox.services.codes.formatter import ParsedCode
from almox.services.codes.repair import RepairReport

# =============================================================================
# Request Schemas
# =============================================================================


class AllocateCodeRequest(BaseModel):
    document_type: DocumentType
    scope_ref: str | None = None
    # Opt-in: issue the template placeholder scope when the scope cannot be resolved
    allow_placeholder_scope: bool = False


class AllocateBulkRequest(AllocateCodeRequest):
    count: int = Field(ge=1, le=10_000)


class AllocateManifestRequest(BaseModel):
    kind: ManifestKind
    centro_custo_origem_id: str | None = None
    centro_custo_destino_id: str | None = None


class RepairRequest(BaseModel):
    document_type: DocumentType
    scope_ref: str | None = None


# =============================================================================
# Response Schemas
# =============================================================================


class AllocationResponse(BaseModel):
    code: str
    document_type: DocumentType
    scope_code: str
    sequence: int
    outcome: AllocationOutcome
    degraded_scope: bool
    reason: str | None

    @classmethod
    def from_result(cls, result: AllocationResult) -> "AllocationResponse":
        return cls(
            code=result.code,
            document_type=result.document_type,
            scope_code=result.scope_code,
            sequence=result.sequence,
            outcome=result.outcome,
            degraded_scope=result.degraded_scope,
            reason=result.reason,
        )


class BulkAllocationResponse(BaseModel):
    codes: list[str]
    document_type: DocumentType
    scope_code: str
    first_sequence: int
    last_sequence: int
    outcome: AllocationOutcome
    degraded_scope: bool
    reason: str | None

    @classmethod
    def from_result(cls, result: BulkAllocationResult) -> "BulkAllocationResponse":
        return cls(
            codes=result.codes,
            document_type=result.document_type,
            scope_code=result.scope_code,
            first_sequence=result.sequences.start,
            last_sequence=result.sequences.stop - 1,
            outcome=result.outcome,
            degraded_scope=result.degraded_scope,
            reason=result.reason,
        )


class ParsedCodeResponse(BaseModel):
    code: str
    document_type: DocumentType
    scope_code: str
    sequence: int

    @classmethod
    def from_parsed(cls, code: str, parsed: ParsedCode) -> "ParsedCodeResponse":
        return cls(
            code=code,
            document_type=parsed.document_type,
            scope_code=parsed.scope_code,
            sequence=parsed.sequence,
        )


class AvailabilityResponse(BaseModel):
    code: str
    available: bool


class RepairResponse(BaseModel):
    document_type: DocumentType
    scope_code: str
    total: int
    fixed_count: int
    errors: list[str]

    @classmethod
    def from_report(cls, report: RepairReport) -> "RepairResponse":
        return cls(
            document_type=report.document_type,
            scope_code=report.scope_code,
            total=report.total,
            fixed_count=report.fixed_count,
            errors=report.errors,
        )


class AllocationErrorResponse(BaseModel):
    outcome: AllocationOutcome = AllocationOutcome.FAILED
    error: str
    detail: str
