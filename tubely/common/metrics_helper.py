"""Utility helpers for timing pipeline stages."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Callable, Iterator


@contextmanager
def stage_timer() -> Iterator[Callable[[], int]]:
    """
    Context manager that yields a function returning elapsed duration in ms.

    Example:
        with stage_timer() as elapsed:
            do_work()
        duration = elapsed()
    """
    start = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - start) * 1000)

    yield elapsed_ms
