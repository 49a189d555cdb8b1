"""Exception handlers: every error leaves the API in the ErrorResponse envelope"""

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from schoolfees.core.exceptions import FeeError
from schoolfees.core.logging import get_logger
from schoolfees.schemas.responses import ErrorResponse

logger = get_logger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"
HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "NOT_AUTHENTICATED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "RESOURCE_NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}


def _correlation_id(request: Request):
    return getattr(request.state, "request_id", None)


def _envelope(status_code: int, body: ErrorResponse, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body), headers=headers)


async def fee_error_handler(request: Request, exc: FeeError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Fee request rejected",
        extra={
            "path": request.url.path,
            "code": exc.code,
            "error": exc.message,
            "correlation_id": _correlation_id(request),
        },
    )
    return _envelope(exc.status_code, ErrorResponse.build(exc.code, exc.message))


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
    return _envelope(
        exc.status_code,
        ErrorResponse.build(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "errors": errors,
            "correlation_id": _correlation_id(request),
        },
    )
    return _envelope(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ErrorResponse.build(VALIDATION_ERROR, "Request validation failed", details=errors),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception: {exc}",
        extra={
            "path": request.url.path,
            "correlation_id": _correlation_id(request),
        },
        exc_info=True,
    )
    return _envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse.build(INTERNAL_ERROR, "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FeeError, fee_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
