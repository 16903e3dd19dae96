"""Base class of graph operators."""

from __future__ import annotations

import copy
import weakref
from abc import abstractmethod
from collections.abc import Sequence
from typing import Any

from infinigraph.data_type import DataType
from infinigraph.exceptions import InfiniError
from infinigraph.op_type import OpType
from infinigraph.tensor import Object, Tensor

__all__ = ["Operator"]


class Operator(Object):
    """An operator node: inputs, outputs and links to neighbouring operators."""

    def __init__(self, op_type: OpType, inputs: Sequence[Tensor | None],
                 outputs: Sequence[Tensor | None]) -> None:
        super().__init__()
        self.op_type = OpType(op_type)
        self.inputs: list[Tensor | None] = list(inputs)
        self.outputs: list[Tensor | None] = list(outputs)
        self._predecessors: list[weakref.ref] = []
        self._successors: list[weakref.ref] = []

    @abstractmethod
    def infer_shape(self, inputs: Sequence[Tensor]) -> list[list[int]] | None:
        """Output shapes for the given inputs, or None when inference fails."""

    def infer_data_type(self, inputs: Sequence[Tensor]) -> list[DataType]:
        """Output data types; by default every output takes the first input's."""
        return [inputs[0].dtype] * self.num_outputs()

    def check_valid(self, graph: Any) -> bool:
        """Check the operator, creating its outputs in ``graph`` when one is given."""
        shapes = self.infer_shape(self.inputs)
        if shapes is None:
            return False
        if len(shapes) != len(self.outputs):
            return False
        if graph is not None:
            dtypes = self.infer_data_type(self.inputs)
            for i, (shape, dtype) in enumerate(zip(shapes, dtypes)):
                if self.outputs[i] is not None:
                    raise InfiniError("Find empty output while operator creation")
                self.outputs[i] = graph.add_tensor(shape, dtype)
            return True
        return all(
            list(shape) == output.dims for shape, output in zip(shapes, self.outputs)
        )

    def output(self, index: int | None = None) -> Tensor:
        """The single output, or the output at ``index``."""
        if index is None:
            if len(self.outputs) != 1:
                raise InfiniError("Unimplemented")
            return self.outputs[0]
        if not 0 <= index < len(self.outputs):
            raise InfiniError("Index exceeded")
        return self.outputs[index]

    @property
    def predecessors(self) -> list[Operator]:
        """Live operators feeding this one."""
        return [op for ref in self._predecessors if (op := ref()) is not None]

    @property
    def successors(self) -> list[Operator]:
        """Live operators fed by this one."""
        return [op for ref in self._successors if (op := ref()) is not None]

    @property
    def dtype(self) -> DataType:
        """Data type of the first input."""
        return self.inputs[0].dtype

    @property
    def out_dtype(self) -> DataType:
        """Data type of the single output."""
        return self.output().dtype

    def num_inputs(self) -> int:
        """Number of inputs."""
        return len(self.inputs)

    def num_outputs(self) -> int:
        """Number of outputs."""
        return len(self.outputs)

    def clone(self, new_inputs: Sequence[Tensor],
              new_outputs: Sequence[Tensor]) -> Operator:
        """A copy with new inputs and outputs and no neighbour links."""
        op = copy.copy(self)
        op.inputs = list(new_inputs)
        op.outputs = list(new_outputs)
        op._predecessors = []
        op._successors = []
        if not op.check_valid(None):
            raise InfiniError("Assertion failed: cloned operator is not valid")
        return op

    def add_predecessor(self, op: Operator) -> None:
        """Link an operator that feeds this one."""
        self._predecessors.append(weakref.ref(op))

    def add_successor(self, op: Operator) -> None:
        """Link an operator fed by this one."""
        self._successors.append(weakref.ref(op))

    def remove_predecessor(self, op: Operator) -> None:
        """Drop every link to ``op`` as a predecessor."""
        self._predecessors = [ref for ref in self._predecessors if ref() is not op]

    def remove_successor(self, op: Operator) -> None:
        """Drop every link to ``op`` as a successor."""
        self._successors = [ref for ref in self._successors if ref() is not op]

    def replace_input(self, old: Tensor, new: Tensor) -> None:
        """Replace every occurrence of ``old`` among the inputs with ``new``."""
        self.inputs = [new if t is old else t for t in self.inputs]