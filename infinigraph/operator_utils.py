"""Shape helpers used by operators and kernels."""

from __future__ import annotations

from collections.abc import Sequence

from infinigraph.exceptions import InfiniError
from infinigraph.op_type import Device, OpType

__all__ = [
    "infer_broadcast",
    "get_real_axis",
    "locate_index",
    "delocate_index",
    "device_to_str",
    "get_kernel_attrs_str",
]


def infer_broadcast(a: Sequence[int], b: Sequence[int]) -> list[int]:
    """Bidirectionally broadcast two shapes and return the resulting shape."""
    if not a or not b:
        return list(b) if not a else list(a)
    rank = max(len(a), len(b))
    padded_a = [1] * (rank - len(a)) + list(a)
    padded_b = [1] * (rank - len(b)) + list(b)
    result = []
    for x, y in zip(padded_a, padded_b):
        if not (x == y or x == 1 or y == 1):
            raise InfiniError(
                f"Shapes {list(a)} and {list(b)} cannot be broadcast together"
            )
        result.append(max(x, y))
    return result


def get_real_axis(axis: int, rank: int) -> int:
    """Normalise a possibly negative axis against a rank."""
    if rank < 1:
        raise InfiniError(f"Rank must be at least 1, got {rank}")
    if not -rank <= axis <= rank - 1:
        raise InfiniError(f"Axis {axis} out of range for rank {rank}")
    return axis + rank if axis < 0 else axis


def locate_index(n: int, shape: Sequence[int]) -> list[int]:
    """Turn a flat row-major index into a multi-dimensional index."""
    index = []
    for dim in reversed(shape):
        n, rem = divmod(n, dim)
        index.append(rem)
    index.reverse()
    return index


def delocate_index(
    shape_index: Sequence[int], shape: Sequence[int], stride: Sequence[int]
) -> int:
    """Turn a multi-dimensional index into a flat offset, wrapping broadcast dims."""
    if len(shape_index) != len(shape):
        raise InfiniError("Index rank does not match shape rank")
    if len(shape) != len(stride):
        raise InfiniError("Shape rank does not match stride rank")
    return sum((i % d) * s for i, d, s in zip(shape_index, shape, stride))


def device_to_str(device: Device) -> str:
    """Name of a device."""
    if device is Device.CPU:
        return "CPU"
    raise InfiniError("Unimplemented")


def get_kernel_attrs_str(kernel_attrs: tuple[Device, int]) -> str:
    """Describe a ``(device, op_type)`` kernel key."""
    device, op_value = kernel_attrs
    try:
        op_name = str(OpType(op_value))
    except ValueError:
        op_name = "Unknown"
    return f"{device_to_str(device)}, {op_name}"