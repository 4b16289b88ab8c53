"""Structured logging around service calls."""

import functools
import inspect
import time
from typing import Any

import structlog

from core.exceptions import AppException, ErrorCode

logger = structlog.get_logger()


class ServiceLoggingMiddleware:
    """Wrap a service so that every public coroutine method call is logged.

    Emits ``service_call_completed`` or ``service_call_failed`` with the method
    name and duration. Exceptions are re-raised unchanged.

    Usage:
        service = ServiceLoggingMiddleware(AuthService(...))
    """

    def __init__(self, service: Any, name: str | None = None) -> None:
        self._service = service
        self._name = name or type(service).__name__

    def __getattr__(self, attr: str) -> Any:
        target = getattr(self._service, attr)
        if attr.startswith("_") or not inspect.iscoroutinefunction(target):
            return target
        return self._wrap(attr, target)

    def _wrap(self, method: str, target: Any) -> Any:
        @functools.wraps(target)
        async def logged(*args: Any, **kwargs: Any) -> Any:
            start_time = time.perf_counter()
            try:
                result = await target(*args, **kwargs)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start_time) * 1000
                error_code = (
                    exc.error_code if isinstance(exc, AppException) else ErrorCode.INTERNAL_ERROR
                )
                log = logger.warning if isinstance(exc, AppException) else logger.error
                log(
                    "service_call_failed",
                    service=self._name,
                    method=method,
                    error_code=str(error_code),
                    error=str(exc),
                    duration_ms=round(duration_ms, 2),
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "service_call_completed",
                service=self._name,
                method=method,
                duration_ms=round(duration_ms, 2),
            )
            return result

        return logged
