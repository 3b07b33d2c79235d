"""
Bound blocking I/O (document store, upstream HTTP) by a caller-supplied timeout.

Calls run on a shared pool; on timeout the caller gets TimeoutError and the worker is
left to finish in the background (its result is discarded).
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_IO_WORKERS = 16
_executor: ThreadPoolExecutor | None = None
_lock = threading.Lock()


def _get_executor() -> ThreadPoolExecutor:
    global _executor
    with _lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=_IO_WORKERS, thread_name_prefix="bounded_io")
        return _executor


def call_with_timeout(fn: Callable[..., T], timeout: float | None, *args, **kwargs) -> T:
    """Run fn(*args, **kwargs); raise TimeoutError if it takes longer than timeout seconds.
    timeout=None runs inline on the calling thread."""
    if timeout is None:
        return fn(*args, **kwargs)
    future = _get_executor().submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeout as e:
        future.cancel()
        logger.debug("%s exceeded %.1fs", getattr(fn, "__name__", fn), timeout)
        raise TimeoutError(f"call exceeded {timeout}s") from e
