"""Computation graph: tensors, operators, ordering, rewriting and memory."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from infinigraph.allocator import Allocator
from infinigraph.data_type import DataType
from infinigraph.exceptions import InfiniError, vec_to_string
from infinigraph.op_type import OpType
from infinigraph.operator import Operator
from infinigraph.tensor import Blob, Object, Tensor

__all__ = ["Graph"]


def _remove_first(items: list[Any], item: Any) -> None:
    for i, candidate in enumerate(items):
        if candidate is item:
            del items[i]
            return


def _contains(items: Iterable[Any], item: Any) -> bool:
    return any(candidate is item for candidate in items)


class Graph(Object):
    """A graph of tensors and the operators that connect them."""

    def __init__(self, runtime: Any) -> None:
        super().__init__()
        self.runtime = runtime
        self._tensors: list[Tensor] = []
        self._ops: list[Operator] = []
        self.allocator = Allocator(runtime)
        self._sorted = False

    # -- membership ----------------------------------------------------------

    @property
    def tensors(self) -> list[Tensor]:
        """The graph's tensors, in insertion order."""
        return list(self._tensors)

    @property
    def operators(self) -> list[Operator]:
        """The graph's operators, in their current order."""
        return list(self._ops)

    def add_tensor(self, shape: Sequence[int],
                   dtype: DataType = DataType.Float32) -> Tensor:
        """Create a tensor on this graph's runtime and add it."""
        tensor = Tensor(shape, dtype, self.runtime)
        self._tensors.append(tensor)
        return tensor

    def adopt_tensor(self, tensor: Tensor) -> Tensor:
        """Add an existing tensor, which must live on this graph's runtime."""
        if tensor.runtime is not self.runtime:
            raise InfiniError(
                f"Tensor runtime mismatch: cannot add a tensor in {tensor.runtime} "
                f"to {self.runtime}"
            )
        self._tensors.append(tensor)
        return tensor

    def adopt_tensors(self, tensors: Sequence[Tensor]) -> list[Tensor]:
        """Add several existing tensors."""
        for tensor in tensors:
            self.adopt_tensor(tensor)
        return list(tensors)

    def remove_operator(self, op: Operator) -> None:
        """Drop an operator from the graph if present."""
        _remove_first(self._ops, op)

    def remove_tensor(self, tensor: Tensor) -> None:
        """Drop a tensor from the graph if present."""
        _remove_first(self._tensors, tensor)

    def get_tensor(self, fuid: int) -> Tensor | None:
        """The tensor with the given family id, or None."""
        return next((t for t in self._tensors if t.fuid == fuid), None)

    @property
    def inputs(self) -> list[Tensor]:
        """Tensors that no operator produces."""
        return [t for t in self._tensors if t.source is None]

    @property
    def outputs(self) -> list[Tensor]:
        """Tensors that no operator consumes."""
        return [t for t in self._tensors if not t.targets]

    # -- operators -----------------------------------------------------------

    def add_op(self, op_class: type[Operator], *args: Any, **kwargs: Any) -> Operator:
        """Construct an operator that creates its outputs in this graph, and add it."""
        op = op_class(self, *args, **kwargs)
        self._connect(op)
        return op

    def add_op_with_outputs(self, op_class: type[Operator], *args: Any,
                            **kwargs: Any) -> Operator:
        """Construct an operator whose outputs are given, and add it."""
        op = op_class(None, *args, **kwargs)
        self._connect(op)
        return op

    def _connect(self, op: Operator) -> None:
        self._sorted = False
        self._ops.append(op)
        for tensor in op.inputs:
            if tensor is None:
                continue
            tensor.add_target(op)
            pred = tensor.source
            if pred is not None:
                pred.add_successor(op)
                op.add_predecessor(pred)
        for tensor in op.outputs:
            if tensor is None:
                continue
            tensor.set_source(op)
            for succ in tensor.targets:
                succ.add_predecessor(op)
                op.add_successor(succ)

    # -- ordering ------------------------------------------------------------

    def topo_sort(self) -> bool:
        """Order operators topologically; False when the graph has a cycle."""
        if self._sorted:
            return True
        ordered: list[Operator] = []
        placed: set[int] = set()
        while len(ordered) < len(self._ops):
            modified = False
            for op in self._ops:
                if id(op) in placed:
                    continue
                ready = all(
                    (src := t.source) is None or id(src) in placed
                    for t in op.inputs
                )
                if ready:
                    modified = True
                    ordered.append(op)
                    placed.add(id(op))
            if not modified:
                return False
        self._ops = ordered
        self._sorted = True
        return True

    # -- rewriting -----------------------------------------------------------

    def optimize(self) -> None:
        """Fold adjacent transposes and absorb last-two-axes transposes into matmuls."""
        while self._fuse_transposes():
            pass
        while self._fuse_matmuls():
            pass

    def _fuse_transposes(self) -> bool:
        for op in list(self._ops):
            if op.op_type != OpType.Transpose:
                continue
            middle = op.inputs[0]
            pre = middle.source
            if pre is None or pre.op_type != OpType.Transpose:
                continue
            if len(middle.targets) != 1:
                continue
            pre_input = pre.inputs[0]
            perm_op = list(op.permute)
            perm_pre = list(pre.permute)
            merged = [perm_pre[p] for p in perm_op]
            identity = merged == list(range(len(merged)))

            successors = op.successors
            out = op.output()
            pre_input.remove_target(pre)

            if identity:
                feeder = pre_input.source
                for succ in successors:
                    succ.replace_input(out, pre_input)
                    pre_input.add_target(succ)
                    if feeder is not None:
                        feeder.add_successor(succ)
                        succ.add_predecessor(feeder)
                self.remove_tensor(out)
            else:
                new_op = type(op)(None, pre_input, out, merged)
                self._connect(new_op)

            for p in pre.predecessors:
                p.remove_successor(pre)
                pre.remove_predecessor(p)
            for succ in successors:
                succ.remove_predecessor(op)
                op.remove_successor(succ)

            self.remove_operator(op)
            self.remove_operator(pre)
            self.remove_tensor(middle)
            return True
        return False

    def _fuse_matmuls(self) -> bool:
        changed = False
        for op in list(self._ops):
            if op.op_type != OpType.MatMul:
                continue
            changed |= self._absorb_transpose(op, 0)
            changed |= self._absorb_transpose(op, 1)
        return changed

    def _absorb_transpose(self, op: Operator, index: int) -> bool:
        tensor = op.inputs[index]
        pre = tensor.source
        if pre is None or pre.op_type != OpType.Transpose:
            return False
        if len(tensor.targets) != 1:
            return False
        perm = list(pre.permute)
        rank = len(perm)
        if rank < 2 or perm[:-2] != list(range(rank - 2)):
            return False
        if perm[-1] != rank - 2 or perm[-2] != rank - 1:
            return False

        source_tensor = pre.inputs[0]
        if index == 0:
            op.trans_a = not op.trans_a
        else:
            op.trans_b = not op.trans_b

        preds = pre.predecessors
        source_tensor.remove_target(pre)
        source_tensor.add_target(op)
        op.inputs[index] = source_tensor

        for p in preds:
            p.remove_successor(pre)
            p.add_successor(op)
            op.add_predecessor(p)

        op.remove_predecessor(pre)
        pre.remove_successor(op)

        self.remove_tensor(tensor)
        self.remove_operator(pre)
        return True

    # -- shapes and memory ---------------------------------------------------

    def shape_infer(self) -> None:
        """Recompute every operator's output shapes from its inputs."""
        for op in self._ops:
            shapes = op.infer_shape(op.inputs)
            if shapes is None:
                raise InfiniError(f"Shape inference failed for {op}")
            if len(shapes) != len(op.outputs):
                raise InfiniError("Inferred shape count does not match outputs")
            for new_shape, output in zip(shapes, op.outputs):
                if list(new_shape) != output.dims:
                    tensor = self.get_tensor(output.fuid)
                    if tensor is None:
                        raise InfiniError(
                            f"Output tensor with fuid {output.fuid} is not in the graph"
                        )
                    tensor.set_shape(new_shape)

    def data_malloc(self) -> None:
        """Plan every tensor's offset, allocate once, and bind the storage."""
        if not self.topo_sort():
            raise InfiniError("Graph has a cycle; cannot allocate memory")
        offsets = [self.allocator.alloc(t.nbytes) for t in self._tensors]
        buffer = self.allocator.get_ptr()
        for tensor, offset in zip(self._tensors, offsets):
            tensor.set_data_blob(Blob(self.runtime, buffer, offset))
        self.allocator.info()

    # -- validation and display ----------------------------------------------

    def check_valid(self) -> bool:
        """Check the graph's invariants, raising InfiniError on the first violation."""
        for tensor in self._tensors:
            if not tensor.targets and tensor.source is None:
                raise InfiniError(f"Tensor {tensor.guid} is not connected")
            for op in tensor.targets:
                if not _contains(self._ops, op):
                    raise InfiniError(f"Target of tensor {tensor.guid} not in graph")
            source = tensor.source
            if source is not None and not _contains(self._ops, source):
                raise InfiniError(f"Source of tensor {tensor.guid} not in graph")
        for op in self._ops:
            for tensor in [*op.inputs, *op.outputs]:
                if not _contains(self._tensors, tensor):
                    raise InfiniError(f"Tensor of operator {op.guid} not in graph")
            for neighbour in [*op.predecessors, *op.successors]:
                if not _contains(self._ops, neighbour):
                    raise InfiniError(f"Neighbour of operator {op.guid} not in graph")
        seen: set[int] = set()
        for tensor in self._tensors:
            if tensor.fuid in seen:
                raise InfiniError(str(tensor.fuid))
            seen.add(tensor.fuid)
        return True

    def __str__(self) -> str:
        lines = ["Graph Tensors:\n"]
        lines.extend(f"{tensor}\n" for tensor in self._tensors)
        lines.append("Graph operators:\n")
        for op in self._ops:
            preds = vec_to_string(o.guid for o in op.predecessors)
            succs = vec_to_string(o.guid for o in op.successors)
            lines.append(f"OP {op.guid}, pred {preds}, succ {succs}, {op}\n")
        return "".join(lines)