import time
import uuid
import logging
from fastapi import Request

logger = logging.getLogger("access")

REQUEST_ID_HEADER = "X-Request-ID"


async def request_logging_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    started = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        status_code = 500
        raise
    else:
        status_code = response.status_code
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
    finally:
        user = getattr(request.state, "user", None)
        level = logging.WARNING if status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s",
            request.method,
            request.url.path,
            extra={
                "request_id": request_id,
                "client_addr": request.client.host if request.client else "unknown",
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "process_time_ms": round((time.perf_counter() - started) * 1000, 2),
                "user_id": user.id if user else "-",
            },
        )
