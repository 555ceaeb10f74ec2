from __future__ import annotations

"""Verbosity-level logger used by the integration drivers.

Messages are printf-style and go to ``stdout`` (or the stream given at
construction) when the logger verbosity is at least the message level.
"""

import os
import sys
import time
from typing import Any, TextIO


class Logger:
    """Tiny logger with pyscf-like verbosity levels.

    Attributes
    ----------
    verbose : int
        Verbosity level.
    stdout : TextIO
        Output stream.
    """

    QUIET = 0
    WARN = 2
    INFO = 4
    DEBUG = 5
    DEBUG1 = 6

    def __init__(self, verbose: int = QUIET, stdout: TextIO | None = None):
        self.verbose = int(verbose)
        self.stdout = sys.stdout if stdout is None else stdout

    @staticmethod
    def _fmt(msg: str, args: tuple[Any, ...]) -> str:
        if not args:
            return str(msg)
        try:
            return str(msg) % args
        except (TypeError, ValueError):
            return f"{msg} {' '.join(str(x) for x in args)}"

    def _write(self, msg: str, args: tuple[Any, ...]) -> None:
        print(self._fmt(msg, args), file=self.stdout)

    def debug(self, msg: str, *args: Any) -> None:
        if self.verbose >= self.DEBUG:
            self._write(msg, args)

    def debug1(self, msg: str, *args: Any) -> None:
        if self.verbose >= self.DEBUG1:
            self._write(msg, args)

    def info(self, msg: str, *args: Any) -> None:
        if self.verbose >= self.INFO:
            self._write(msg, args)

    def warn(self, msg: str, *args: Any) -> None:
        if self.verbose >= self.WARN:
            self._write("WARN: " + str(msg), args)

    def error(self, msg: str, *args: Any) -> None:
        # errors are always reported
        self._write("ERROR: " + str(msg), args)

    def timer(self, label: str, t0_cpu: float, t0_wall: float) -> tuple[float, float]:
        t1 = (time.process_time(), time.perf_counter())
        self.debug("%s: CPU %.2f sec, wall %.2f sec", label, t1[0] - t0_cpu, t1[1] - t0_wall)
        return t1


def _env_verbose() -> int:
    raw = os.environ.get("PBCERI_VERBOSE", "").strip()
    if raw == "":
        return Logger.QUIET
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"PBCERI_VERBOSE must be an integer, got: {raw!r}") from e


def new_logger(obj: Any | None = None, verbose: Any | None = None) -> Logger:
    """Return a logger from an explicit level, an object's ``verbose`` or the environment."""

    if isinstance(verbose, Logger):
        return verbose
    if verbose is None:
        if obj is not None and getattr(obj, "verbose", None) is not None:
            verbose = getattr(obj, "verbose")
        else:
            verbose = _env_verbose()
    return Logger(int(verbose))


__all__ = ["Logger", "new_logger"]
