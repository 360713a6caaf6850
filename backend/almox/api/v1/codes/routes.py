"""Document code API endpoints."""

import structlog
from fastapi import APIRouter, HTTPException

from almox.api.v1.codes.dependencies import CodeServiceDep
from almox.api.v1.codes.schemas import (
    AllocateBulkRequest,
    AllocateCodeRequest,
    AllocateManifestRequest,
    AllocationErrorResponse,
    AllocationResponse,
    AvailabilityResponse,
    BulkAllocationResponse,
    ParsedCodeResponse,
    RepairRequest,
    RepairResponse,
)
from almox.models.enums import DocumentType
from almox.services.codes.exceptions import (
    AllocationTimeout,
    DuplicateOnInsert,
    QueryFailure,
    ScopeNotFound,
)
from almox.services.codes.formatter import parse_code
from almox.services.exceptions import ServiceError, ValidationError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/codes", tags=["codes"])


def _failed(exc: ServiceError) -> HTTPException:
    """Map an allocation failure to an HTTP error carrying outcome=failed."""
    if isinstance(exc, ScopeNotFound):
        status_code = 404
    elif isinstance(exc, ValidationError):
        status_code = 422
    elif isinstance(exc, DuplicateOnInsert):
        status_code = 409
    elif isinstance(exc, QueryFailure):
        status_code = 503
    elif isinstance(exc, AllocationTimeout):
        status_code = 504
    else:
        status_code = 500
    body = AllocationErrorResponse(error=type(exc).__name__, detail=str(exc))
    return HTTPException(status_code=status_code, detail=body.model_dump(mode="json"))


@router.post("/allocate", response_model=AllocationResponse, operation_id="allocateCode")
async def allocate_code(
    request: AllocateCodeRequest,
    service: CodeServiceDep,
) -> AllocationResponse:
    """Allocate the next code for a document type and scope."""
    try:
        result = await service.allocate_code(
            request.document_type,
            request.scope_ref,
            allow_placeholder_scope=request.allow_placeholder_scope,
        )
    except ServiceError as e:
        raise _failed(e)
    return AllocationResponse.from_result(result)


@router.post("/allocate-bulk", response_model=BulkAllocationResponse, operation_id="allocateBulkCodes")
async def allocate_bulk_codes(
    request: AllocateBulkRequest,
    service: CodeServiceDep,
) -> BulkAllocationResponse:
    """Allocate count consecutive codes (e.g. for NF-e item import)."""
    try:
        result = await service.allocate_bulk_codes(
            request.document_type,
            request.scope_ref,
            request.count,
            allow_placeholder_scope=request.allow_placeholder_scope,
        )
    except ServiceError as e:
        raise _failed(e)
    return BulkAllocationResponse.from_result(result)


@router.post("/manifests/allocate", response_model=AllocationResponse, operation_id="allocateManifestCode")
async def allocate_manifest_code(
    request: AllocateManifestRequest,
    service: CodeServiceDep,
) -> AllocationResponse:
    """Allocate a romaneio code, scoped by destination (ROM) or origin (RDV) cost center."""
    try:
        result = await service.allocate_manifest_code(
            request.kind,
            request.centro_custo_origem_id,
            request.centro_custo_destino_id,
        )
    except ServiceError as e:
        raise _failed(e)
    return AllocationResponse.from_result(result)


@router.get("/parse/{code}", response_model=ParsedCodeResponse, operation_id="parseCode")
async def parse(code: str) -> ParsedCodeResponse:
    """Split a code into document type, scope code and sequence."""
    parsed = parse_code(code)
    if parsed is None:
        raise HTTPException(status_code=404, detail=f"Not a valid code: {code}")
    return ParsedCodeResponse.from_parsed(code, parsed)


@router.get(
    "/{document_type}/{code}/available",
    response_model=AvailabilityResponse,
    operation_id="checkCodeAvailability",
)
async def check_code_availability(
    document_type: DocumentType,
    code: str,
    service: CodeServiceDep,
) -> AvailabilityResponse:
    """Check whether no record of the owning table carries the code yet."""
    try:
        available = await service.is_code_available(document_type, code)
    except QueryFailure as e:
        raise _failed(e)
    return AvailabilityResponse(code=code, available=available)


@router.post("/repair", response_model=RepairResponse, operation_id="repairSequentialCodes")
async def repair_sequential_codes(
    request: RepairRequest,
    service: CodeServiceDep,
) -> RepairResponse:
    """Renumber a scope's codes into base + ordinal order.

    Maintenance operation: run only while no allocation targets the same table.
    """
    try:
        report = await service.repair_sequential_codes(request.document_type, request.scope_ref)
    except ServiceError as e:
        raise _failed(e)
    except TimeoutError:
        raise HTTPException(status_code=504, detail="Repair did not finish within the configured timeout")

    if report.failures:
        logger.warning("Repair finished with errors", errors=len(report.failures))
    return RepairResponse.from_report(report)
