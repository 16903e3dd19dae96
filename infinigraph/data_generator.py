"""Callables that fill tensor storage with deterministic data."""

from __future__ import annotations

import numpy as np

from infinigraph.data_type import DataType
from infinigraph.exceptions import InfiniError

__all__ = [
    "DataGenerator",
    "IncrementalGenerator",
    "ValGenerator",
    "OneGenerator",
    "ZeroGenerator",
]

_SUPPORTED = (DataType.UInt32, DataType.Float32)


class DataGenerator:
    """Fills a numpy array in place; only UInt32 and Float32 are supported."""

    def __call__(self, data: np.ndarray, dtype: DataType) -> None:
        if dtype not in _SUPPORTED:
            raise InfiniError("Unimplemented")
        self._fill(data)

    def _fill(self, data: np.ndarray) -> None:
        raise InfiniError("Unimplemented")


class IncrementalGenerator(DataGenerator):
    """Writes 0, 1, 2, ... in row-major order."""

    def _fill(self, data: np.ndarray) -> None:
        data[...] = np.arange(data.size, dtype=data.dtype).reshape(data.shape)


class ValGenerator(DataGenerator):
    """Writes one constant value everywhere."""

    def __init__(self, value: int) -> None:
        self.value = value

    def _fill(self, data: np.ndarray) -> None:
        data[...] = self.value


class OneGenerator(ValGenerator):
    """Writes ones."""

    def __init__(self) -> None:
        super().__init__(1)


class ZeroGenerator(ValGenerator):
    """Writes zeros."""

    def __init__(self) -> None:
        super().__init__(0)