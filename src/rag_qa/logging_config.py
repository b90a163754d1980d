"""Logging setup and latency tracking for pipeline operations."""

from __future__ import annotations

import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int | str = logging.INFO, log_file: str = "") -> None:
    """Configure the root logger with a console handler and an optional file handler."""
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


def log_latency(operation_name: str) -> Callable:
    """Log the duration and outcome of every call to the decorated function."""

    def decorator(func: Callable) -> Callable:
        logger = logging.getLogger(func.__module__)

        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                latency_ms = (time.perf_counter() - start) * 1000
                logger.error(
                    "%s | latency_ms=%.2f | status=error | error=%s",
                    operation_name, latency_ms, exc,
                )
                raise
            latency_ms = (time.perf_counter() - start) * 1000
            logger.info("%s | latency_ms=%.2f | status=success", operation_name, latency_ms)
            return result

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                latency_ms = (time.perf_counter() - start) * 1000
                logger.error(
                    "%s | latency_ms=%.2f | status=error | error=%s",
                    operation_name, latency_ms, exc,
                )
                raise
            latency_ms = (time.perf_counter() - start) * 1000
            logger.info("%s | latency_ms=%.2f | status=success", operation_name, latency_ms)
            return result

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
