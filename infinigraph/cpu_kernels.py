"""Reference host kernels for the built-in operators."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from infinigraph.data_type import DataType
from infinigraph.exceptions import InfiniError
from infinigraph.kernel import Kernel, register_kernel
from infinigraph.op_type import Device, OpType

__all__ = [
    "idx_to_pos",
    "NaiveConcat",
    "NativeElementWise",
    "NaiveTranspose",
    "NativeUnary",
    "ClipKernel",
]

_SUPPORTED_TYPES = (DataType.Float32, DataType.UInt32)


def _check_dtype(op: Any) -> None:
    if op.dtype not in _SUPPORTED_TYPES:
        raise InfiniError("Unimplemented")


def idx_to_pos(shape: Sequence[int], idx: int) -> list[int]:
    """Turn a flat row-major index into a position within ``shape``."""
    pos = [0] * len(shape)
    rest = idx
    for axis in reversed(range(len(shape))):
        if rest == 0:
            break
        rest, pos[axis] = divmod(rest, shape[axis])
    if rest:
        raise InfiniError(f"Index {idx} is outside shape {list(shape)}")
    return pos


@register_kernel(Device.CPU, OpType.Concat, "ConcatNaive_CPU")
class NaiveConcat(Kernel):
    """Copies each input into its slice of the output along the concat axis."""

    def compute(self, op: Any, context: Any) -> None:
        _check_dtype(op)
        dim = op.dim
        out = op.output().data
        offset = 0
        for tensor in op.inputs:
            if tensor.size == 0:
                continue
            extent = tensor.dims[dim]
            index = (slice(None),) * dim + (slice(offset, offset + extent),)
            out[index] = tensor.data
            offset += extent


_BINARY = {
    OpType.Add: {"f": np.add, "u": np.add},
    OpType.Sub: {"f": np.subtract, "u": np.subtract},
    OpType.Mul: {"f": np.multiply, "u": np.multiply},
    OpType.Div: {"f": np.true_divide, "u": np.floor_divide},
}


@register_kernel(Device.CPU, OpType.Div, "divNaive_CPU")
@register_kernel(Device.CPU, OpType.Mul, "mulNaive_CPU")
@register_kernel(Device.CPU, OpType.Sub, "subNaive_CPU")
@register_kernel(Device.CPU, OpType.Add, "addNaive_CPU")
class NativeElementWise(Kernel):
    """Binary arithmetic with bidirectional broadcasting."""

    def compute(self, op: Any, context: Any) -> None:
        _check_dtype(op)
        funcs = _BINARY.get(op.op_type)
        if funcs is None:
            raise InfiniError("Unimplemented")
        a = op.inputs[0].data
        b = op.inputs[1].data
        func = funcs[a.dtype.kind]
        with np.errstate(all="ignore"):
            result = func(a, b)
        op.output().data[...] = result


@register_kernel(Device.CPU, OpType.Transpose, "TransposeNaive_CPU")
class NaiveTranspose(Kernel):
    """Permutes the axes of the input into the output."""

    def compute(self, op: Any, context: Any) -> None:
        _check_dtype(op)
        source = op.inputs[0].data
        op.outputs[0].data[...] = np.transpose(source, op.permute)


@register_kernel(Device.CPU, OpType.Relu, "reluNaive_CPU")
class NativeUnary(Kernel):
    """Element-wise activations."""

    def compute(self, op: Any, context: Any) -> None:
        _check_dtype(op)
        if op.op_type != OpType.Relu:
            raise InfiniError("Unimplemented")
        values = op.inputs[0].data
        op.output().data[...] = np.maximum(values, values.dtype.type(0))


@register_kernel(Device.CPU, OpType.Clip, "Clip_CPU")
class ClipKernel(Kernel):
    """Clamps values; the lower bound is checked before the upper one."""

    def compute(self, op: Any, context: Any) -> None:
        _check_dtype(op)
        values = op.inputs[0].data
        result = values
        if op.max_value is not None:
            result = np.where(values > op.max_value, op.max_value, result)
        if op.min_value is not None:
            result = np.where(values < op.min_value, op.min_value, result)
        op.output().data[...] = result