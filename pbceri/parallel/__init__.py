from __future__ import annotations

"""Work distribution and reduction for integration passes."""

from .comm import Communicator, MPICommunicator, SerialCommunicator, abort_on_error, get_communicator
from .distribute import (
    SetPair,
    block_owner,
    count_set_pairs,
    get_limit,
    is_mine,
    iter_set_pairs,
    owned_indices,
    owner,
)
from .reduce import CounterSum, MatrixSum, Reducible, reduce_parts
from .workers import run_ranks

__all__ = [
    "Communicator",
    "CounterSum",
    "MPICommunicator",
    "MatrixSum",
    "Reducible",
    "SerialCommunicator",
    "SetPair",
    "abort_on_error",
    "block_owner",
    "count_set_pairs",
    "get_communicator",
    "get_limit",
    "is_mine",
    "iter_set_pairs",
    "owned_indices",
    "owner",
    "reduce_parts",
    "run_ranks",
]
