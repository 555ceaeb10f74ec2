from __future__ import annotations

"""Run one callable per simulated rank, in-process or in a local process pool."""

from concurrent.futures import ProcessPoolExecutor
from typing import Callable, TypeVar

T = TypeVar("T")


def run_ranks(fn: Callable[[int, int], T], size: int, *, processes: bool = False) -> list[T]:
    """Return ``[fn(rank, size) for rank in range(size)]``.

    With ``processes=True`` every rank runs in its own worker process; ``fn``
    and its result must then be picklable (module-level function or
    ``functools.partial`` thereof).
    """

    size = int(size)
    if size <= 0:
        raise ValueError("size must be > 0")
    if not processes or size == 1:
        return [fn(rank, size) for rank in range(size)]
    with ProcessPoolExecutor(max_workers=size) as pool:
        futures = [pool.submit(fn, rank, size) for rank in range(size)]
        return [f.result() for f in futures]


__all__ = ["run_ranks"]
