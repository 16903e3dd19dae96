# infinigraph

`infinigraph` is a small tensor computation graph library. You build a graph
of tensors and operators, let the operators infer their output shapes and
data types, simplify the graph with a few rewrite rules, give its tensors
memory, and run it with reference CPU kernels built on numpy.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## What is in it

- `infinigraph.graph.Graph` holds the tensors and operators.
  - `add_tensor(shape, dtype)` creates a tensor on the graph's runtime;
    `adopt_tensor` and `adopt_tensors` add existing ones.
  - `add_op(op_class, ...)` builds an operator that creates its own output
    tensors in the graph; `add_op_with_outputs(op_class, ...)` builds one
    whose outputs you pass in.
  - `topo_sort()` orders the operators and returns `False` on a cycle.
  - `shape_infer()` recomputes output shapes.
  - `check_valid()` raises on the first broken invariant.
  - `data_malloc()` plans an offset for every tensor, allocates one buffer
    and binds each tensor to its slice.
  - `inputs`, `outputs`, `tensors` and `operators` list the graph's parts,
    and `str(graph)` describes it.
- `Graph.optimize()` does two rewrites:
  - It handles two consecutive transposes, where the middle tensor has one
    reader. A pair that cancels out is removed. Any other pair becomes a
    single transpose.
  - A transpose that swaps only the last two axes and feeds a matmul is
    folded into that matmul's `trans_a` or `trans_b` flag.
- Operators, each in its own module:
  - `concat.ConcatOp`
  - `element_wise.AddOp`, `SubOp`, `MulOp` and `DivOp`, which broadcast
    their inputs
  - `matmul.MatmulOp`, with `trans_a` and `trans_b`
  - `transpose.TransposeOp`
  - `unary.ReluOp`
  - `unary.ClipOp`, where either bound may be `None`
  - `unary.CastOp`, which takes a `unary.CastType`
- `infinigraph.data_type.DataType` and `infinigraph.op_type.OpType` are the
  element types and operator kinds; `op_type.Device` names the device.
- `infinigraph.operator_utils` has the shape helpers: `infer_broadcast`,
  `get_real_axis`, `locate_index` and `delocate_index`.
- `infinigraph.allocator.Allocator` plans byte offsets.
  - `alloc` rounds sizes up to 8 bytes and reuses the lowest freed block
    that is large enough. Blocks are neither split nor merged.
  - `free` returns a block.
  - `get_ptr` allocates the peak size once and returns that same buffer
    from then on.
  - `info` prints current and peak use.
- `infinigraph.runtime.NativeCpuRuntime.get_instance()` returns the shared
  host runtime. Its `run(graph)` looks up each operator's kernel in
  `infinigraph.kernel.KernelRegistry`. The kernels are defined and
  registered in `infinigraph.cpu_kernels` by the `register_kernel`
  decorator.
- `infinigraph.data_generator` fills tensors with test data.
  `IncrementalGenerator` writes 0, 1, 2, … and `ValGenerator(value)`,
  `OneGenerator` and `ZeroGenerator` write a constant.

## Example

```python
from infinigraph.concat import ConcatOp
from infinigraph.data_generator import IncrementalGenerator, OneGenerator
from infinigraph.data_type import DataType
from infinigraph.graph import Graph
from infinigraph.runtime import NativeCpuRuntime

runtime = NativeCpuRuntime.get_instance()
g = Graph(runtime)
t1 = g.add_tensor([2, 2, 3, 1], DataType.Float32)
t2 = g.add_tensor([2, 2, 1, 1], DataType.Float32)
op = g.add_op(ConcatOp, [t1, t2], None, 2)

g.data_malloc()
t1.set_data(IncrementalGenerator())
t2.set_data(OneGenerator())
runtime.run(g)

print(op.output().dims)        # [2, 2, 4, 1]
op.output().print_data()
print(op.output().equal_data([0, 1, 2, 1, 3, 4, 5, 1,
                              6, 7, 8, 1, 9, 10, 11, 1]))  # True
```

## Limits

- The kernels and data generators handle only `Float32` and `UInt32`
  tensors. Any other element type raises an error.
- Kernels exist only for concat, the four element-wise operators,
  transpose, relu and clip. Running a graph that contains a matmul or a
  cast fails, because no kernel is registered for them.
- The package has no command-line tool. It does not read or write model
  files.

## Errors

A failed check raises `infinigraph.exceptions.InfiniError`. Examples are
shapes that cannot be broadcast, a missing kernel, and an invalid `free`.