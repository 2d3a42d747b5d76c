import time
import uuid

import structlog
from fastapi import Request

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


async def request_context(request: Request, call_next):
    """Bind a request id to every log line of the request and echo it back"""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, method=request.method, path=request.url.path)

    started = time.perf_counter()
    logger.info("Request started", client_ip=request.client.host if request.client else None)

    response = await call_next(request)

    response.headers[REQUEST_ID_HEADER] = request_id
    logger.info(
        "Request completed",
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return response
