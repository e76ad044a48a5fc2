import threading
from collections.abc import Callable, Iterable, Iterator
from multiprocessing.dummy import Pool as ThreadPool
from typing import Any, TypeVar

T = TypeVar("T")
R = TypeVar("R")

MAX_THREAD_POOL_SIZE = 10

_CANCELLED = object()


def run_ordered(
    func: Callable[[T], R],
    iterable: Iterable[T],
    thread_pool_size: int,
    cancel: threading.Event | None = None,
) -> Iterator[R]:
    """run_ordered lazily yields func(item) for each item of the iterable,
    in input order, with at most thread_pool_size calls in flight.

    Once cancel is set no new call is started. Calls already running
    finish and their results are still yielded.
    """
    if cancel is None:
        cancel = threading.Event()
    thread_pool_size = max(1, min(thread_pool_size, MAX_THREAD_POOL_SIZE))

    if thread_pool_size == 1:
        for item in iterable:
            if cancel.is_set():
                return
            yield func(item)
        return

    def guarded(item: T) -> Any:
        if cancel.is_set():
            return _CANCELLED
        return func(item)

    pool = ThreadPool(thread_pool_size)
    try:
        # imap hands out items in order and returns results in order
        for result in pool.imap(guarded, iterable):
            if result is not _CANCELLED:
                yield result
    finally:
        pool.close()
        pool.join()
