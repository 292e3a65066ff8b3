import time
import uuid
from typing import Callable
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from feed_doctor.core.logging import log_api_request


def _tenant_from_path(path: str):
    """Tenant id from /api/v1/tenants/{tenant_id}/... paths."""
    parts = path.strip("/").split("/")
    if "tenants" in parts:
        index = parts.index("tenants")
        if index + 1 < len(parts):
            return parts[index + 1]
    return None


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """Middleware for logging all HTTP requests"""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()
        tenant_id = _tenant_from_path(request.url.path)

        try:
            response = await call_next(request)
        except Exception as e:
            log_api_request(
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=500,
                processing_time=time.time() - start_time,
                tenant_id=tenant_id,
                error=str(e)
            )
            raise

        log_api_request(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            processing_time=time.time() - start_time,
            tenant_id=tenant_id
        )
        response.headers["X-Request-ID"] = request_id
        return response
