"""Batched matrix multiplication."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from infinigraph.exceptions import InfiniError
from infinigraph.op_type import OpType
from infinigraph.operator import Operator
from infinigraph.operator_utils import infer_broadcast
from infinigraph.tensor import Tensor

__all__ = ["MatmulOp"]


class MatmulOp(Operator):
    """Multiply the last two axes of A and B, broadcasting the leading axes.

    ``trans_a`` and ``trans_b`` say whether the last two axes of A or B are
    swapped before multiplying.
    """

    def __init__(self, graph: Any, a: Tensor, b: Tensor, c: Tensor | None,
                 trans_a: bool = False, trans_b: bool = False) -> None:
        super().__init__(OpType.MatMul, [a, b], [c])
        self.trans_a = trans_a
        self.trans_b = trans_b
        self.m = 0
        self.n = 0
        self.k = 0
        if not self.check_valid(graph):
            raise InfiniError("Assertion failed: invalid MatMul operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]]:
        shape_a = inputs[0].dims
        shape_b = inputs[1].dims
        if len(shape_a) < 2 or len(shape_b) < 2:
            raise InfiniError("MatMul inputs must have rank of at least 2")
        result = infer_broadcast(shape_a[:-2], shape_b[:-2])
        k_a = shape_a[-2] if self.trans_a else shape_a[-1]
        k_b = shape_b[-1] if self.trans_b else shape_b[-2]
        if k_a != k_b:
            raise InfiniError(f"MatMul inner dimensions differ: {k_a} and {k_b}")
        self.m = shape_a[-1] if self.trans_a else shape_a[-2]
        self.n = shape_b[-2] if self.trans_b else shape_b[-1]
        self.k = k_a
        return [result + [self.m, self.n]]

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        a_name = "A^T" if self.trans_a else "A"
        b_name = "B^T" if self.trans_b else "B]"
        return (
            f"Matmul([{a_name},{b_name},A={self.inputs[0].guid},"
            f"B={self.inputs[1].guid},C={self.outputs[0].guid},"
            f"mnk=[{self.m},{self.n},{self.k}])"
        )