import functools
import inspect
import logging
import time

from core.metrics import METHOD_DURATION

logger = logging.getLogger(__name__)


class Profiler:
    """
    Provides a decorator to profile synchronous and asynchronous methods,
    logging their execution times and recording them in a histogram.
    """

    @staticmethod
    def _record(name, start):
        elapsed = time.perf_counter() - start
        METHOD_DURATION.labels(method=name).observe(elapsed)
        logger.debug(f"[Profiler] {name} took {elapsed:.4f}s")

    @staticmethod
    def profile(func):
        name = func.__qualname__
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return await func(*args, **kwargs)
                finally:
                    Profiler._record(name, start)

            return async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(*args, **kwargs):
                start = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    Profiler._record(name, start)

            return sync_wrapper
