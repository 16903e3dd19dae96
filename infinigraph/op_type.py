"""Operator kinds and compute devices."""

from __future__ import annotations

from enum import Enum, IntEnum

__all__ = ["OpType", "Device"]


class OpType(IntEnum):
    """Kind of operator in a graph."""

    Unknown = 0
    Add = 1
    Cast = 2
    Clip = 3
    Concat = 4
    Div = 5
    Mul = 6
    MatMul = 7
    Relu = 8
    Sub = 9
    Transpose = 10

    def __str__(self) -> str:
        return self.name


class Device(Enum):
    """Device a runtime executes on."""

    CPU = 1