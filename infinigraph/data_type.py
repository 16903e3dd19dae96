"""Tensor element types, numbered as in the ONNX element-type list."""

from __future__ import annotations

from enum import IntEnum

import numpy as np

__all__ = ["DataType"]


class DataType(IntEnum):
    """Element type of a tensor."""

    Undefine = 0
    Float32 = 1
    UInt8 = 2
    Int8 = 3
    UInt16 = 4
    Int16 = 5
    Int32 = 6
    Int64 = 7
    String = 8
    Bool = 9
    Float16 = 10
    Double = 11
    UInt32 = 12
    UInt64 = 13
    BFloat16 = 16

    def __str__(self) -> str:
        return self.name

    def size(self) -> int:
        """Bytes taken by one element."""
        return _SIZE_PER_ELEMENT[self.value]

    def cpu_type(self) -> int:
        """Index of the host type used to store this element type, or -1."""
        return _CPU_TYPE[self.value]

    def numpy_dtype(self) -> np.dtype:
        """The numpy dtype used to hold elements of this type on the host."""
        return np.dtype(_NUMPY_TYPE[self.value])


_SIZE_PER_ELEMENT = {
    0: 0,
    1: 4,
    2: 1,
    3: 1,
    4: 2,
    5: 2,
    6: 4,
    7: 8,
    8: 32,
    9: 1,
    10: 2,
    11: 8,
    12: 4,
    13: 8,
    16: 2,
}

_CPU_TYPE = {
    0: -1,
    1: 0,
    2: 2,
    3: 3,
    4: 4,
    5: 5,
    6: 6,
    7: 7,
    8: -1,
    9: 3,
    10: 4,
    11: 9,
    12: 1,
    13: 8,
    16: 4,
}

# Bool is stored as int8, Float16 and BFloat16 as raw uint16 words.
_NUMPY_TYPE = {
    0: np.bool_,
    1: np.float32,
    2: np.uint8,
    3: np.int8,
    4: np.uint16,
    5: np.int16,
    6: np.int32,
    7: np.int64,
    8: "S1",
    9: np.int8,
    10: np.uint16,
    11: np.float64,
    12: np.uint32,
    13: np.uint64,
    16: np.uint16,
}