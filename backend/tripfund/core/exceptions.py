"""
Domain errors raised by the service layer.

Each error carries the HTTP status the API layer answers with, so services can
stay free of FastAPI imports.
"""
from fastapi import status


class DomainError(Exception):
    """Base class for expected, caller-facing failures."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(DomainError):
    """Malformed request, e.g. a REPLACE invitation without a target."""
    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(DomainError):
    """Actor is not allowed to perform the operation."""
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(DomainError):
    """Trip, member, invitation or settlement does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DomainError):
    """Operation clashes with current state (duplicates, last admin, races)."""
    status_code = status.HTTP_409_CONFLICT


class ExpiredError(DomainError):
    """Invitation was accepted after its expiry time."""
    status_code = status.HTTP_410_GONE
