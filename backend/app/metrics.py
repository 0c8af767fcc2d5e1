import logging
import time
from collections import deque
from typing import Deque, Optional, Tuple

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config import settings

logger = logging.getLogger("api_metrics")


class RequestCounter:
    """Sliding-window count of served requests, keyed by monotonic time."""

    def __init__(self, window_seconds: int = 3600):
        self.window_seconds = window_seconds
        self._requests: Deque[Tuple[float, str, str]] = deque()

    def add_request(self, method: str, path: str, at: Optional[float] = None):
        self._requests.append((time.perf_counter() if at is None else at, method, path))
        self._prune(at)

    def _prune(self, at: Optional[float] = None):
        cutoff_time = (time.perf_counter() if at is None else at) - self.window_seconds
        while self._requests and self._requests[0][0] < cutoff_time:
            self._requests.popleft()

    def count(self, at: Optional[float] = None) -> int:
        self._prune(at)
        return len(self._requests)


request_counter = RequestCounter(settings.REQUEST_WINDOW_SECONDS)


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        request_counter.add_request(request.method, request.url.path)

        response = await call_next(request)

        process_time = time.perf_counter() - start_time

        logger.info(
            f"{request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Duration: {process_time:.4f}s | "
            f"Requests in window: {request_counter.count()}"
        )

        return response
