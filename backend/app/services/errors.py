from __future__ import annotations
from fastapi import HTTPException


class ServiceError(Exception):
    """Base for domain errors; routes turn these into HTTP responses."""
    status_code = 400


class InvalidAmount(ServiceError):
    status_code = 400


class InsufficientBalance(ServiceError):
    status_code = 402


class NotFound(ServiceError):
    status_code = 404


class InvalidState(ServiceError):
    """Request conflicts with the current lifecycle state (e.g. locking a locked match)."""
    status_code = 409


def http_error(e: ServiceError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e) or e.__class__.__name__)
