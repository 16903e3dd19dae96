"""Axis permutation, in the manner of numpy.transpose."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from infinigraph.exceptions import InfiniError, vec_to_string
from infinigraph.op_type import OpType
from infinigraph.operator import Operator
from infinigraph.tensor import Tensor

__all__ = ["TransposeOp"]


class TransposeOp(Operator):
    """Permute a tensor's axes; an empty permutation keeps the order."""

    def __init__(self, graph: Any, input: Tensor, output: Tensor | None,
                 permute: Sequence[int] | None = None) -> None:
        super().__init__(OpType.Transpose, [input], [output])
        rank = input.rank
        if not permute:
            self.permute = list(range(rank))
        else:
            if len(permute) != rank:
                raise InfiniError(
                    f"Permutation of length {len(permute)} given for rank {rank}"
                )
            self.permute = [int(p) for p in permute]
        if not self.check_valid(graph):
            raise InfiniError("Assertion failed: invalid Transpose operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]]:
        dims = inputs[0].dims
        return [[dims[p] for p in self.permute]]

    def num_inputs(self) -> int:
        return 1

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        return (
            f"{self.op_type}[{self.guid}]({vec_to_string(self.inputs[0].dims)},"
            f"input={self.inputs[0].guid},output={self.outputs[0].guid})"
        )