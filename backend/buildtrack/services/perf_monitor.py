"""Timing utilities for the aggregation engine."""
import time
import logging
import functools
from typing import Callable

logger = logging.getLogger("buildtrack.perf")


def timed(func: Callable) -> Callable:
    """
    Decorator that measures and logs execution time for synchronous functions.

    The duration is attached to the log record as ``duration_ms`` so the JSON
    formatter emits it as a field.

    Usage::

        @timed
        def compute_bom(bom):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.debug(
                f"{func.__qualname__} took {duration_ms}ms",
                extra={
                    "operation": func.__qualname__,
                    "duration_ms": duration_ms,
                },
            )
    return wrapper
