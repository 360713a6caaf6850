"""Base service exceptions.

Raised by the service layer; the API layer maps them to HTTP responses
and the CLI to a non-zero exit.
"""


class ServiceError(Exception):
    """Base service exception."""

    pass


class NotFoundError(ServiceError):
    """A referenced entity (cost center, scope) does not exist."""

    pass


class ValidationError(ServiceError):
    """Input does not satisfy a business rule (count, missing cost center, segment shape)."""

    pass
