from __future__ import annotations

"""Communicators: rank/size queries and the global element-wise sum.

The implementation is picked once, from ``PBCERI_COMM=auto|serial|mpi``:
``auto`` uses MPI when mpi4py is importable and the world has more than one
rank, and the serial communicator otherwise.
"""

import contextlib
import os
from typing import Iterator, Protocol

import numpy as np

from pbceri.utils.logger import Logger


class Communicator(Protocol):
    rank: int
    size: int

    def allreduce_sum(self, buf: np.ndarray) -> np.ndarray:
        """Sum ``buf`` element-wise over all ranks, in place; every rank gets the total."""

    def abort(self, exc: BaseException) -> None:
        """Terminate every rank of the group."""


class SerialCommunicator:
    """Single-rank communicator; the global sum is the identity."""

    rank = 0
    size = 1

    def allreduce_sum(self, buf: np.ndarray) -> np.ndarray:
        return buf

    def abort(self, exc: BaseException) -> None:
        raise exc


class MPICommunicator:
    """mpi4py-backed communicator (``COMM_WORLD`` unless another comm is given)."""

    def __init__(self, comm=None):
        try:
            from mpi4py import MPI  # noqa: PLC0415
        except ImportError as e:  # pragma: no cover
            raise RuntimeError("mpi4py is required for MPICommunicator (install the 'mpi' extra)") from e
        self._MPI = MPI
        self.comm = MPI.COMM_WORLD if comm is None else comm
        self.rank = int(self.comm.Get_rank())
        self.size = int(self.comm.Get_size())

    def allreduce_sum(self, buf: np.ndarray) -> np.ndarray:
        arr = np.ascontiguousarray(buf)
        self.comm.Allreduce(self._MPI.IN_PLACE, arr, op=self._MPI.SUM)
        if arr is not buf:
            buf[...] = arr
        return buf

    def abort(self, exc: BaseException) -> None:  # pragma: no cover
        self.comm.Abort(1)


def get_communicator(kind: str | None = None) -> Communicator:
    """Return the communicator selected by ``kind`` or ``PBCERI_COMM``."""

    v = (kind if kind is not None else os.environ.get("PBCERI_COMM", "auto")).strip().lower()
    if v in ("", "auto"):
        try:
            comm = MPICommunicator()
        except RuntimeError:
            return SerialCommunicator()
        return comm if comm.size > 1 else SerialCommunicator()
    if v == "serial":
        return SerialCommunicator()
    if v == "mpi":
        return MPICommunicator()
    raise ValueError("PBCERI_COMM must be one of: auto|serial|mpi")


@contextlib.contextmanager
def abort_on_error(comm: Communicator, log: Logger | None = None) -> Iterator[None]:
    """Abort the whole group when the body raises on a multi-rank communicator.

    Ranks that are still computing would otherwise block forever in the next
    collective. Single-rank runs re-raise unchanged.
    """

    try:
        yield
    except Exception as exc:
        if int(comm.size) > 1:
            if log is not None:
                log.error("rank %d: %s: %s; aborting", comm.rank, type(exc).__name__, exc)
            comm.abort(exc)
        raise


__all__ = ["Communicator", "MPICommunicator", "SerialCommunicator", "abort_on_error", "get_communicator"]
