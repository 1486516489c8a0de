import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from fishstock.constants.error_codes import ErrorCode
from fishstock.core.exceptions import AppException, ConsistencyError

logger = logging.getLogger(__name__)
alert_logger = logging.getLogger("fishstock.alerts")

HTTP_STATUS_TO_ERROR_CODE = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.VALIDATION_ERROR,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
}


def _envelope(
    status_code: int,
    message: str,
    error_code: ErrorCode,
    details=None,
    headers: dict | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error_code": error_code,
            "details": details,
        },
        headers=headers,
    )


# -------------------------
# DOMAIN ERRORS
# -------------------------
async def app_exception_handler(request: Request, exc: AppException):
    if exc.status_code >= 409:
        logger.info(
            "Request refused: %s",
            exc.error_code,
            extra={"path": request.url.path, "details": exc.details},
        )
    return _envelope(exc.status_code, exc.detail, exc.error_code, exc.details)


async def consistency_error_handler(request: Request, exc: ConsistencyError):
    # the ledger itself is wrong; page whoever watches the alert stream
    alert_logger.critical(
        "Ledger consistency violation: %s",
        exc.detail,
        extra={
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
    )
    return _envelope(exc.status_code, exc.detail, exc.error_code, exc.details)


# -------------------------
# REQUEST SHAPE
# -------------------------
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    problems = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
            "type": err.get("type"),
        }
        for err in exc.errors()
    ]
    return _envelope(422, "Invalid request data", ErrorCode.VALIDATION_ERROR, problems)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error_code = HTTP_STATUS_TO_ERROR_CODE.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    return _envelope(
        exc.status_code,
        exc.detail,
        error_code,
        headers=getattr(exc, "headers", None),
    )


# -------------------------
# STORAGE
# -------------------------
async def integrity_error_handler(request: Request, exc: IntegrityError):
    # services translate the constraints they expect; anything here slipped past them
    logger.warning("Unmapped integrity error", extra={"path": request.url.path, "error": str(exc.orig)})
    return _envelope(409, "Database constraint violation", ErrorCode.CONFLICT)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(
        "Unhandled exception",
        extra={"path": request.url.path, "method": request.method},
    )
    return _envelope(500, "Something went wrong. Please try again.", ErrorCode.INTERNAL_ERROR)


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ConsistencyError, consistency_error_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
