"""
Request timing middleware and the in-memory metrics it collects.
Tags every response with a request id and its processing time, and logs
requests slower than the configured threshold.
"""

from typing import Callable, Dict, Any, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from collections import defaultdict, deque
from estatehub.database import utcnow
import logging
import time
import uuid
import psutil

logger = logging.getLogger(__name__)

# Single metrics key for requests no route matched
UNMATCHED_ROUTE = "<unmatched>"


class RequestMetrics:
    """
    Rolling per-endpoint request statistics.

    Endpoints are keyed by method and route template so path parameters do
    not create one entry per id.
    """

    def __init__(self, slow_request_limit: int = 50):
        self.started_at = utcnow()
        self.total_requests = 0
        self.total_errors = 0
        self.endpoint_stats: Dict[str, Dict[str, Any]] = defaultdict(lambda: {
            "total_requests": 0,
            "total_time": 0.0,
            "min_time": float("inf"),
            "max_time": 0.0,
            "error_count": 0,
        })
        self.slow_requests: deque = deque(maxlen=slow_request_limit)

    def record(self, endpoint: str, status_code: int, duration: float, slow: bool, request_id: str) -> None:
        stats = self.endpoint_stats[endpoint]
        stats["total_requests"] += 1
        stats["total_time"] += duration
        stats["min_time"] = min(stats["min_time"], duration)
        stats["max_time"] = max(stats["max_time"], duration)

        self.total_requests += 1
        if status_code >= 400:
            stats["error_count"] += 1
            self.total_errors += 1

        if slow:
            self.slow_requests.append({
                "endpoint": endpoint,
                "duration": round(duration, 4),
                "status_code": status_code,
                "request_id": request_id,
                "timestamp": utcnow().isoformat(),
            })

    def summary(self) -> Dict[str, Any]:
        endpoints = {}
        for endpoint, stats in self.endpoint_stats.items():
            count = stats["total_requests"]
            endpoints[endpoint] = {
                "total_requests": count,
                "average_time": round(stats["total_time"] / count, 4) if count else 0.0,
                "min_time": round(stats["min_time"], 4) if count else 0.0,
                "max_time": round(stats["max_time"], 4),
                "error_rate": round(stats["error_count"] / count, 4) if count else 0.0,
            }
        return {
            "uptime_seconds": round((utcnow() - self.started_at).total_seconds(), 1),
            "total_requests": self.total_requests,
            "total_errors": self.total_errors,
            "error_rate": round(self.total_errors / self.total_requests, 4) if self.total_requests else 0.0,
            "endpoints": endpoints,
        }

    def recent_slow_requests(self, limit: int = 10) -> list:
        return list(self.slow_requests)[-limit:]


def process_metrics() -> Dict[str, Any]:
    """CPU and memory of the API process and host."""
    process = psutil.Process()
    memory_info = process.memory_info()
    virtual_memory = psutil.virtual_memory()
    return {
        "process": {
            "cpu_percent": process.cpu_percent(interval=None),
            "memory_rss": memory_info.rss,
            "memory_vms": memory_info.vms,
            "num_threads": process.num_threads(),
        },
        "system": {
            "cpu_percent": psutil.cpu_percent(interval=None),
            "memory_percent": virtual_memory.percent,
            "memory_available": virtual_memory.available,
        },
    }


# Shared store read by the /metrics endpoint
request_metrics = RequestMetrics()


class PerformanceMonitoringMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request timing and metrics collection.
    """

    def __init__(
        self,
        app: ASGIApp,
        slow_request_threshold: float = 1.0,  # seconds
        metrics: Optional[RequestMetrics] = None,
        enable_detailed_logging: bool = True
    ):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold
        self.metrics = metrics or request_metrics
        self.enable_detailed_logging = enable_detailed_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Time the request and tag the response.

        Args:
            request: Incoming request
            call_next: Next middleware/handler in chain

        Returns:
            Response with X-Request-ID and X-Processing-Time headers
        """
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start_time
            self.metrics.record(self._endpoint(request), 500, duration, duration > self.slow_request_threshold, request_id)
            logger.error(f"[{request_id}] {request.method} {request.url.path} failed after {duration:.3f}s")
            raise

        duration = time.perf_counter() - start_time
        slow = duration > self.slow_request_threshold
        self.metrics.record(self._endpoint(request), response.status_code, duration, slow, request_id)

        if slow:
            logger.warning(
                f"[{request_id}] Slow request: {request.method} {request.url.path} "
                f"took {duration:.3f}s (status {response.status_code})"
            )
        elif self.enable_detailed_logging:
            logger.info(f"[{request_id}] {request.method} {request.url.path} {response.status_code} {duration:.3f}s")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{duration:.3f}"
        return response

    @staticmethod
    def _endpoint(request: Request) -> str:
        route = request.scope.get("route")
        path = getattr(route, "path", None)
        if path is None:
            return f"{request.method} {UNMATCHED_ROUTE}"
        return f"{request.method} {path}"
