import numpy as np
import pytest

from infinigraph.concat import ConcatOp
from infinigraph.cpu_kernels import (
    ClipKernel,
    NaiveConcat,
    NaiveTranspose,
    NativeElementWise,
    NativeUnary,
    idx_to_pos,
)
from infinigraph.data_generator import IncrementalGenerator, OneGenerator
from infinigraph.data_type import DataType
from infinigraph.element_wise import AddOp, DivOp, MulOp, SubOp
from infinigraph.exceptions import InfiniError
from infinigraph.graph import Graph
from infinigraph.kernel import KernelRegistry
from infinigraph.op_type import Device, OpType
from infinigraph.operator_utils import locate_index
from infinigraph.runtime import NativeCpuRuntime
from infinigraph.transpose import TransposeOp
from infinigraph.unary import ClipOp, ReluOp


@pytest.fixture
def runtime():
    return NativeCpuRuntime.get_instance()


def test_concat_native_cpu(runtime):
    g = Graph(runtime)
    t1 = g.add_tensor([2, 2, 3, 1], DataType.Float32)
    t2 = g.add_tensor([2, 2, 1, 1], DataType.Float32)
    t3 = g.add_tensor([2, 2, 2, 1], DataType.Float32)
    op = g.add_op(ConcatOp, [t1, t2, t3], None, 2)
    g.data_malloc()
    t1.set_data(IncrementalGenerator())
    t2.set_data(OneGenerator())
    t3.set_data(OneGenerator())
    runtime.run(g)
    assert op.output().equal_data(
        [0, 1, 2, 1, 1, 1, 3, 4, 5, 1, 1, 1,
         6, 7, 8, 1, 1, 1, 9, 10, 11, 1, 1, 1]
    )


@pytest.mark.parametrize(
    "op_class, second, expected",
    [
        (AddOp, IncrementalGenerator, [0, 1, 2, 4, 5, 6, 6, 7, 8, 10, 11, 12]),
        (MulOp, IncrementalGenerator, [0, 0, 0, 3, 4, 5, 0, 0, 0, 9, 10, 11]),
        (SubOp, IncrementalGenerator, [0, 1, 2, 2, 3, 4, 6, 7, 8, 8, 9, 10]),
        (DivOp, OneGenerator, [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11]),
    ],
)
def test_element_wise_native_cpu(runtime, op_class, second, expected):
    g = Graph(runtime)
    t1 = g.add_tensor([1, 2, 2, 3, 1], DataType.Float32)
    t2 = g.add_tensor([2, 1, 1], DataType.Float32)
    op = g.add_op(op_class, t1, t2, None)
    g.data_malloc()
    t1.set_data(IncrementalGenerator())
    t2.set_data(second())
    runtime.run(g)
    assert op.output().equal_data(expected)


def test_element_wise_uint32(runtime):
    g = Graph(runtime)
    t1 = g.add_tensor([2, 3], DataType.UInt32)
    t2 = g.add_tensor([2, 3], DataType.UInt32)
    op = g.add_op(AddOp, t1, t2, None)
    g.data_malloc()
    t1.set_data(IncrementalGenerator())
    t2.set_data(IncrementalGenerator())
    runtime.run(g)
    assert op.output().equal_data(np.array([0, 2, 4, 6, 8, 10], dtype=np.uint32))


def test_element_wise_unsupported_type(runtime):
    g = Graph(runtime)
    t1 = g.add_tensor([2], DataType.Int32)
    t2 = g.add_tensor([2], DataType.Int32)
    g.add_op(AddOp, t1, t2, None)
    g.data_malloc()
    with pytest.raises(InfiniError, match="Unimplemented"):
        runtime.run(g)


def test_transpose_native_cpu(runtime):
    g = Graph(runtime)
    source = g.add_tensor([1, 2, 3, 4], DataType.Float32)
    op = g.add_op(TransposeOp, source, None, [0, 2, 1, 3])
    g.data_malloc()
    source.set_data(IncrementalGenerator())
    runtime.run(g)
    assert op.output(0).equal_data(
        [0, 1, 2, 3, 12, 13, 14, 15, 4, 5, 6, 7,
         16, 17, 18, 19, 8, 9, 10, 11, 20, 21, 22, 23]
    )


def test_relu(runtime):
    g = Graph(runtime)
    source = g.add_tensor([2, 3], DataType.Float32)
    op = g.add_op(ReluOp, source, None)
    g.data_malloc()
    source.data[...] = np.array([[-1, 0, 2], [-3, 4, -5]], dtype=np.float32)
    runtime.run(g)
    assert op.output().equal_data([0, 0, 2, 0, 4, 0])


def test_clip(runtime):
    g = Graph(runtime)
    source = g.add_tensor([1, 2, 2, 3], DataType.Float32)
    op = g.add_op(ClipOp, source, None, 1.0, 4.0)
    g.data_malloc()
    source.set_data(IncrementalGenerator())
    runtime.run(g)
    assert op.output().equal_data([1, 1, 2, 3, 4, 4, 4, 4, 4, 4, 4, 4])


def test_clip_without_bounds_copies(runtime):
    g = Graph(runtime)
    source = g.add_tensor([5], DataType.UInt32)
    op = g.add_op(ClipOp, source, None, None, None)
    g.data_malloc()
    source.set_data(IncrementalGenerator())
    runtime.run(g)
    assert op.output().equal_data(source)


def test_registry_holds_cpu_kernels():
    registry = KernelRegistry.get_instance()
    assert isinstance(registry.get_kernel((Device.CPU, OpType.Concat)), NaiveConcat)
    assert isinstance(registry.get_kernel((Device.CPU, OpType.Transpose)), NaiveTranspose)
    assert isinstance(registry.get_kernel((Device.CPU, OpType.Relu)), NativeUnary)
    assert isinstance(registry.get_kernel((Device.CPU, OpType.Clip)), ClipKernel)
    for op_type in (OpType.Add, OpType.Sub, OpType.Mul, OpType.Div):
        assert isinstance(registry.get_kernel((Device.CPU, op_type)), NativeElementWise)
    assert registry.get_kernel_item((Device.CPU, OpType.Add)).name == "addNaive_CPU"


def test_idx_to_pos_values():
    assert idx_to_pos([2, 3, 4], 0) == [0, 0, 0]
    assert idx_to_pos([2, 3, 4], 23) == [1, 2, 3]


def test_idx_to_pos_matches_locate_index():
    shape = [2, 3, 4]
    for idx in range(24):
        assert idx_to_pos(shape, idx) == locate_index(idx, shape)


def test_idx_to_pos_out_of_range():
    with pytest.raises(InfiniError):
        idx_to_pos([2, 3], 6)