"""Map marketplace errors onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from marketplace.errors import (
    Conflict,
    Forbidden,
    InternalError,
    MarketplaceError,
    NotFound,
    OrderValidationError,
)
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_CATEGORY = (
    (OrderValidationError, 400),
    (NotFound, 404),
    (Forbidden, 403),
    (Conflict, 409),
    (InternalError, 500),
)


def status_for(exc: MarketplaceError) -> int:
    for category, status in STATUS_BY_CATEGORY:
        if isinstance(exc, category):
            return status
    return 500


async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    status = status_for(exc)
    if status == 500:
        # Callers only see the public message; keep the full context in the logs.
        logger.error(
            "internal_error",
            path=request.url.path,
            error_type=type(exc).__name__,
            message=exc.message,
            **exc.detail,
        )
    return JSONResponse(status_code=status, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:  # noqa: ARG001
    return JSONResponse(
        status_code=400,
        content={"error_type": "ValidationError", "detail": exc.messages},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MarketplaceError, marketplace_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
