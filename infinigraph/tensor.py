"""Graph objects with unique ids, storage blobs and tensors."""

from __future__ import annotations

import itertools
import math
import weakref
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np

from infinigraph.data_type import DataType
from infinigraph.exceptions import InfiniError, vec_to_string

if TYPE_CHECKING:
    from infinigraph.operator import Operator

__all__ = ["Object", "Blob", "Tensor"]

_guid_counter = itertools.count(1)
_fuid_counter = itertools.count(1)


class Object(ABC):
    """Base of every graph object; each instance, copies included, gets a new guid."""

    def __init__(self) -> None:
        self._guid = next(_guid_counter)

    @property
    def guid(self) -> int:
        """Globally unique id of this object."""
        return self._guid

    @abstractmethod
    def __str__(self) -> str:
        """Human-readable description of the object."""

    def print(self) -> None:
        """Write the description to standard output."""
        print(str(self))

    def __copy__(self) -> Object:
        cls = type(self)
        new = cls.__new__(cls)
        new.__dict__.update(self.__dict__)
        new._guid = next(_guid_counter)
        return new


class Blob:
    """A window into a runtime buffer, starting at a byte offset."""

    def __init__(self, runtime: Any, buffer: Any, offset: int = 0) -> None:
        self.runtime = runtime
        self.buffer = buffer
        self.offset = offset

    def view(self, dtype: DataType, count: int) -> np.ndarray:
        """A flat numpy array of ``count`` elements sharing the buffer's memory."""
        return np.frombuffer(
            self.buffer,
            dtype=DataType(dtype).numpy_dtype(),
            count=count,
            offset=self.offset,
        )

    def __str__(self) -> str:
        return f"{id(self.buffer):#x}+{self.offset}"


def _format_value(value: object) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    if isinstance(value, bytes):
        return value.decode("latin-1")
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


class Tensor(Object):
    """A typed, shaped tensor node connected to the operators that use it."""

    def __init__(self, shape: Sequence[int], dtype: DataType, runtime: Any) -> None:
        super().__init__()
        self._shape = [int(d) for d in shape]
        self._size = math.prod(self._shape)
        self.dtype = DataType(dtype)
        self.runtime = runtime
        self._fuid = next(_fuid_counter)
        self._blob: Blob | None = None
        self._targets: list[weakref.ref] = []
        self._source: weakref.ref | None = None

    # -- shape ---------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of elements."""
        return self._size

    @property
    def nbytes(self) -> int:
        """Number of bytes the elements take."""
        return self._size * self.dtype.size()

    @property
    def dims(self) -> list[int]:
        """A copy of the shape."""
        return list(self._shape)

    @property
    def rank(self) -> int:
        """Number of dimensions."""
        return len(self._shape)

    @property
    def fuid(self) -> int:
        """Family id, shared by copies of this tensor."""
        return self._fuid

    def set_shape(self, shape: Sequence[int]) -> None:
        """Replace the shape and recompute the element count."""
        self._shape = [int(d) for d in shape]
        self._size = math.prod(self._shape)

    # -- data ----------------------------------------------------------------

    def set_data_blob(self, blob: Blob | None) -> None:
        """Bind the tensor to storage."""
        self._blob = blob

    @property
    def blob(self) -> Blob | None:
        """The storage the tensor is bound to, if any."""
        return self._blob

    @property
    def data(self) -> np.ndarray:
        """The tensor's elements as a numpy view of its storage."""
        if self._blob is None:
            raise InfiniError("Tensor has no data bound")
        return self._blob.view(self.dtype, self._size).reshape(self._shape)

    def set_data(self, generator: Callable[[np.ndarray, DataType], None]) -> None:
        """Fill the storage by calling ``generator(array, dtype)``."""
        generator(self.data, self.dtype)

    def data_to_string(self) -> str:
        """Render the elements with nested brackets, one innermost row per line."""
        values = self.data.ravel().tolist()
        shape = self._shape or [1]
        dim_sizes = [math.prod(shape[j:]) for j in range(len(shape))]
        column = dim_sizes[-1]
        parts = [f"Tensor: {self.guid}\n"]
        last = len(values) - 1
        for i, value in enumerate(values):
            parts.extend("[" for size in dim_sizes if i % size == 0)
            parts.append(_format_value(value))
            parts.extend("]" for size in dim_sizes if i % size == size - 1)
            if i != last:
                parts.append(", ")
            if i % column == column - 1:
                parts.append("\n")
        return "".join(parts)

    def print_data(self) -> None:
        """Print the elements."""
        if self._blob is None:
            raise InfiniError("Tensor has no data bound")
        if not self.runtime.is_cpu():
            raise InfiniError("Unimplemented")
        print(self.data_to_string())

    def equal_data(self, other: Tensor | Sequence[Any] | np.ndarray,
                   relative_error: float = 1e-6) -> bool:
        """Compare elements with another tensor or a flat sequence of values."""
        if self._blob is None:
            raise InfiniError("Tensor has no data bound")
        if isinstance(other, Tensor):
            if other._blob is None:
                raise InfiniError("Compared tensor has no data bound")
            if other.dtype != self.dtype:
                raise InfiniError("Data types differ")
            if not self.runtime.is_cpu() or not other.runtime.is_cpu():
                raise InfiniError("Only host tensors can be compared")
            if other.size != self.size:
                return False
            expected = other.data.ravel()
        else:
            target = self.dtype.numpy_dtype()
            if isinstance(other, np.ndarray) and other.dtype != target:
                raise InfiniError(
                    f"Value type {other.dtype} does not match tensor type {self.dtype}"
                )
            expected = np.asarray(other).ravel()
            if expected.size != self.size:
                raise InfiniError("Number of values does not match tensor size")
            expected = expected.astype(target, copy=False)
        return _elements_equal(self.data.ravel(), expected, relative_error)

    # -- connections ---------------------------------------------------------

    @property
    def source(self) -> Operator | None:
        """The operator producing this tensor, if still alive."""
        return self._source() if self._source is not None else None

    @property
    def targets(self) -> list[Operator]:
        """The live operators consuming this tensor."""
        return [op for ref in self._targets if (op := ref()) is not None]

    def set_source(self, op: Operator | None) -> None:
        """Record the producing operator."""
        self._source = weakref.ref(op) if op is not None else None

    def add_target(self, op: Operator) -> None:
        """Record a consuming operator."""
        self._targets.append(weakref.ref(op))

    def remove_target(self, op: Operator) -> None:
        """Forget every record of ``op`` as a consumer."""
        self._targets = [ref for ref in self._targets if ref() is not op]

    def __str__(self) -> str:
        location = str(self._blob) if self._blob is not None else "nullptr data"
        text = (
            f"Tensor {self.guid}, Fuid {self.fuid}, shape {vec_to_string(self._shape)}, "
            f"dtype {self.dtype}, {self.runtime}, {location}\n"
        )
        source = self.source
        text += f", source {source.guid}" if source is not None else ", source None"
        text += ", targets " + vec_to_string(op.guid for op in self.targets)
        return text


def _elements_equal(actual: np.ndarray, expected: np.ndarray,
                    relative_error: float) -> bool:
    if actual.dtype.kind != "f":
        return not bool(np.any(actual != expected))
    a = actual.astype(np.float64)
    b = expected.astype(np.float64)
    abs_a, abs_b = np.abs(a), np.abs(b)
    diff = np.abs(a - b)
    smaller = np.minimum(abs_a, abs_b)
    with np.errstate(divide="ignore", invalid="ignore"):
        relative = diff / np.maximum(abs_a, abs_b)
    bad = np.where(smaller == 0.0, diff > relative_error, relative > relative_error)
    if bad.any():
        index = int(np.argmax(bad))
        print(f"Error on {index}: {a[index]:f} {b[index]:f}")
        return False
    return True