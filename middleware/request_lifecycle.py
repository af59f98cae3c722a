"""
Request lifecycle middleware for the TaskHub backend.
Assigns each request an id (or adopts the caller's ``X-Request-ID``), fills the
logging context variables and logs the request with its duration.
"""

import re
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from jose import jwt, JWTError
from logging_config import get_logger, request_id_var, user_id_var
from config import config

logger = get_logger("middleware")

REQUEST_ID_HEADER = "X-Request-ID"
# Inbound ids are echoed into logs and headers, so only short tokens are accepted
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def _request_id(request: Request) -> str:
    inbound = request.headers.get(REQUEST_ID_HEADER, "")
    if _VALID_REQUEST_ID.match(inbound):
        return inbound
    return uuid.uuid4().hex[:8]


def _user_from_token(request: Request) -> str:
    """Best-effort user id for log context. Authorization itself happens in routes.deps."""
    auth_header = request.headers.get("authorization", "")
    if not auth_header.startswith("Bearer "):
        return "-"
    try:
        payload = jwt.decode(auth_header[7:], config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return "-"
    return payload.get("sub") or "-"


class RequestLifecycleMiddleware(BaseHTTPMiddleware):
    """Adds request tracing and lifecycle logging."""

    async def dispatch(self, request: Request, call_next) -> Response:
        req_id = _request_id(request)
        request_id_var.set(req_id)
        user_id_var.set(_user_from_token(request))

        start_time = time.perf_counter()
        method, path = request.method, request.url.path

        logger.info(
            f"→ {method} {path}",
            extra={"data": {"query": str(request.query_params) if request.query_params else None}}
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 1)
            logger.error(
                f"✖ {method} {path} UNHANDLED ERROR ({duration_ms}ms): {exc}",
                exc_info=True,
                extra={"data": {"duration_ms": duration_ms, "error": str(exc)}}
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "request_id": req_id},
                headers={REQUEST_ID_HEADER: req_id}
            )

        duration_ms = round((time.perf_counter() - start_time) * 1000, 1)
        log_fn = logger.info if response.status_code < 400 else logger.warning
        log_fn(
            f"← {method} {path} {response.status_code} ({duration_ms}ms)",
            extra={"data": {"status": response.status_code, "duration_ms": duration_ms}}
        )
        response.headers[REQUEST_ID_HEADER] = req_id
        return response
