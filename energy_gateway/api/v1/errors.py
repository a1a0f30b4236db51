"""Translation of domain exceptions into HTTP errors"""

import logging
from fastapi import HTTPException
from energy_gateway.config import settings
from energy_gateway.domain.exceptions import (
    DomainException,
    InfrastructureError,
    InsufficientFundsError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from energy_gateway.infrastructure.observability.logging import log_infrastructure_error


def to_http_exception(error: Exception, request_id: str, operation: str) -> HTTPException:
    """
    Map a failure to the HTTPException the endpoint should raise.

    - ValidationError → 422 with field-level errors
    - InvalidTransitionError → 422
    - NotFoundError → 404
    - InsufficientFundsError → 400 with balance details
    - InfrastructureError and anything unexpected → 500, message hidden unless debug
    """
    if isinstance(error, ValidationError):
        logging.warning(f"Validation failed {operation}: {error.errors}", extra={"request_id": request_id})
        return HTTPException(status_code=422, detail={"message": error.message, "errors": error.errors})

    if isinstance(error, InvalidTransitionError):
        logging.warning(f"Rejected transition {operation}: {error}", extra={"request_id": request_id})
        return HTTPException(status_code=422, detail={"message": str(error)})

    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail={"message": f"{error.entity} not found"})

    if isinstance(error, InsufficientFundsError):
        return HTTPException(
            status_code=400,
            detail={
                "message": error.message,
                "current_balance": error.current_balance,
                error.amount_field: error.amount,
            },
        )

    filters = error.filters if isinstance(error, InfrastructureError) else {}
    if isinstance(error, DomainException):
        log_infrastructure_error(request_id, operation, error, filters)
    else:
        logging.error(f"Unexpected error {operation}: {error}", extra={"request_id": request_id})

    return HTTPException(
        status_code=500,
        detail={
            "message": f"Error {operation}",
            "error": str(error) if settings.debug else None,
        },
    )
