"""Concatenation of tensors along one axis."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from infinigraph.exceptions import InfiniError, vec_to_string
from infinigraph.op_type import OpType
from infinigraph.operator import Operator
from infinigraph.operator_utils import get_real_axis
from infinigraph.tensor import Tensor

__all__ = ["ConcatOp"]


class ConcatOp(Operator):
    """Join tensors that agree on every axis except the concatenated one."""

    def __init__(self, graph: Any, inputs: Sequence[Tensor],
                 output: Tensor | None, dim: int) -> None:
        super().__init__(OpType.Concat, inputs, [output])
        self.dim = get_real_axis(dim, self.inputs[0].rank)
        if not self.check_valid(graph):
            raise InfiniError("Assertion failed: invalid Concat operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]]:
        dims = inputs[0].dims
        rank = inputs[0].rank
        if len(inputs) == 2:
            for i, tensor in enumerate(inputs):
                if tensor.size == 0:
                    return [inputs[1 - i].dims]
        total = dims[self.dim]
        for tensor in inputs[1:]:
            if tensor.rank != rank:
                raise InfiniError(
                    f"Concat inputs differ in rank: {rank} and {tensor.rank}"
                )
            for axis, (size, expected) in enumerate(zip(tensor.dims, dims)):
                if axis == self.dim:
                    total += size
                elif size != expected:
                    raise InfiniError(
                        f"Concat inputs differ on axis {axis}: {expected} and {size}"
                    )
        dims[self.dim] = total
        return [dims]

    def __str__(self) -> str:
        shapes = "".join(f"{vec_to_string(t.dims)}," for t in self.inputs)
        ids = "".join(f"{t.guid}," for t in self.inputs)
        return (
            f"Concat[{self.guid}]({shapes}dim={self.dim},input={ids}"
            f"output={self.outputs[0].guid})"
        )