"""Code sequencing exceptions.

Every exception below ends an allocation in the Failed state; none of them
leaves a partial code behind. Per-record repair problems are not exceptions,
see RepairPartialFailure in repair.py.
"""

from almox.services.exceptions import NotFoundError, ServiceError, ValidationError


class CodeAllocationError(ServiceError):
    """Allocation could not produce a code."""

    pass


class ScopeNotFound(CodeAllocationError, NotFoundError):
    """Scope reference does not resolve to a usable scope code."""

    def __init__(self, scope_ref: str | None, detail: str | None = None):
        self.scope_ref = scope_ref
        super().__init__(detail or f"Scope not found: {scope_ref!r}")


class FormatError(CodeAllocationError, ValidationError):
    """A segment does not fit its template slot."""

    pass


class QueryFailure(CodeAllocationError):
    """The record store could not be read; distinct from "no prior record"."""

    pass


class DuplicateOnInsert(CodeAllocationError):
    """The allocated code collided with a stored one on every attempt."""

    def __init__(self, code: str, attempts: int):
        self.code = code
        self.attempts = attempts
        super().__init__(f"Code {code} already exists (after {attempts} attempts)")


class AllocationTimeout(CodeAllocationError):
    """The caller-imposed deadline expired before a code was produced."""

    pass
