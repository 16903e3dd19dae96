"""Binary element-wise operators with broadcasting."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from infinigraph.exceptions import InfiniError, vec_to_string
from infinigraph.op_type import OpType
from infinigraph.operator import Operator
from infinigraph.operator_utils import infer_broadcast
from infinigraph.tensor import Tensor

__all__ = ["ElementWiseOp", "AddOp", "SubOp", "MulOp", "DivOp"]


class ElementWiseOp(Operator):
    """Base of binary element-wise operators."""

    def __init__(self, op_type: OpType, graph: Any, input0: Tensor,
                 input1: Tensor, output: Tensor | None) -> None:
        super().__init__(op_type, [input0, input1], [output])
        if not self.check_valid(graph):
            raise InfiniError(f"Assertion failed: invalid {self.op_type} operator")

    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]]:
        return [infer_broadcast(inputs[0].dims, inputs[1].dims)]

    def num_inputs(self) -> int:
        return 2

    def num_outputs(self) -> int:
        return 1

    def __str__(self) -> str:
        a, b = self.inputs
        return (
            f"{self.op_type}[{self.guid}]({vec_to_string(a.dims)},"
            f"{vec_to_string(b.dims)},input0={a.guid},input1={b.guid},"
            f"output={self.outputs[0].guid})"
        )


class AddOp(ElementWiseOp):
    """Element-wise addition."""

    def __init__(self, graph: Any, input0: Tensor, input1: Tensor,
                 output: Tensor | None) -> None:
        super().__init__(OpType.Add, graph, input0, input1, output)


class SubOp(ElementWiseOp):
    """Element-wise subtraction."""

    def __init__(self, graph: Any, input0: Tensor, input1: Tensor,
                 output: Tensor | None) -> None:
        super().__init__(OpType.Sub, graph, input0, input1, output)


class MulOp(ElementWiseOp):
    """Element-wise multiplication."""

    def __init__(self, graph: Any, input0: Tensor, input1: Tensor,
                 output: Tensor | None) -> None:
        super().__init__(OpType.Mul, graph, input0, input1, output)


class DivOp(ElementWiseOp):
    """Element-wise division."""

    def __init__(self, graph: Any, input0: Tensor, input1: Tensor,
                 output: Tensor | None) -> None:
        super().__init__(OpType.Div, graph, input0, input1, output)