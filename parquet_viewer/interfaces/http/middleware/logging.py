import time
import uuid
from typing import Callable, List, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ....core.constants import LOG_EXCLUDE_PATHS
from ....core.logging import get_logger, log_fields, request_id_var

logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/response logging with a per-request id and timing headers.
    """

    def __init__(self, app, exclude_paths: Optional[List[str]] = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or LOG_EXCLUDE_PATHS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Skip logging for excluded paths
        if self._should_skip_logging(request.url.path):
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()
        logger.info(
            f"REQUEST {request.method} {request.url.path}",
            extra=log_fields(
                method=request.method,
                path=request.url.path,
                query_params=dict(request.query_params),
                client_ip=self._get_client_ip(request),
                user_agent=request.headers.get("User-Agent", "Unknown"),
            ),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"ERROR {request.method} {request.url.path}: {type(e).__name__}: {e}",
                extra=log_fields(
                    method=request.method,
                    path=request.url.path,
                    error_type=type(e).__name__,
                    process_time=round(process_time, 4),
                ),
            )
            raise
        finally:
            request_id_var.reset(token)

        process_time = time.time() - start_time
        self._log_response(request, response, request_id, process_time)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(round(process_time, 4))
        return response

    def _should_skip_logging(self, path: str) -> bool:
        return any(path.startswith(excluded) for excluded in self.exclude_paths)

    def _log_response(self, request: Request, response: Response, request_id: str, process_time: float):
        fields = log_fields(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time=round(process_time, 4),
        )
        message = f"RESPONSE {request.method} {request.url.path} {response.status_code} in {process_time:.4f}s"

        # Log level based on status code
        if response.status_code >= 500:
            logger.error(message, extra=fields)
        elif response.status_code >= 400:
            logger.warning(message, extra=fields)
        else:
            logger.info(message, extra=fields)

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address considering proxies"""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        return request.client.host if request.client else "unknown"
