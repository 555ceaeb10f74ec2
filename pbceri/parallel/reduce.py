from __future__ import annotations

"""Combining per-worker partial results.

A pass produces one partial result per worker (a zero-initialized buffer that
only the worker's own pairs were added into). The final value is their
element-wise sum, obtained either in-process with :func:`reduce_parts` or with
one collective per buffer through a communicator.
"""

import dataclasses
from typing import Iterable, Protocol, TypeVar

import numpy as np

T = TypeVar("T")


class Reducible(Protocol[T]):
    def zero_like(self, x: T) -> T:
        """Neutral element shaped like ``x``."""

    def combine(self, a: T, b: T) -> T:
        """Associative, commutative sum of two partial results."""


class MatrixSum:
    """Element-wise sum of equally shaped numpy arrays."""

    def zero_like(self, x: np.ndarray) -> np.ndarray:
        return np.zeros_like(np.asarray(x))

    def combine(self, a: np.ndarray, b: np.ndarray) -> np.ndarray:
        a = np.asarray(a)
        b = np.asarray(b)
        if a.shape != b.shape:
            raise ValueError(f"cannot combine partial results of shapes {a.shape} and {b.shape}")
        return a + b


class CounterSum:
    """Field-wise sum of integer counter dataclasses (e.g. G/R evaluation counts)."""

    def zero_like(self, x):
        return dataclasses.replace(x, **{f.name: 0 for f in dataclasses.fields(x)})

    def combine(self, a, b):
        if type(a) is not type(b):
            raise TypeError(f"cannot combine {type(a).__name__} with {type(b).__name__}")
        return dataclasses.replace(
            a, **{f.name: int(getattr(a, f.name)) + int(getattr(b, f.name)) for f in dataclasses.fields(a)}
        )


def reduce_parts(parts: Iterable[T], reducible: Reducible[T]) -> T:
    """Sum all partial results; the order of ``parts`` does not matter."""

    it = iter(parts)
    try:
        first = next(it)
    except StopIteration:
        raise ValueError("reduce_parts needs at least one partial result") from None
    acc = reducible.combine(reducible.zero_like(first), first)
    for part in it:
        acc = reducible.combine(acc, part)
    return acc


__all__ = ["CounterSum", "MatrixSum", "Reducible", "reduce_parts"]
