import pytest

from infinigraph.data_type import DataType
from infinigraph.element_wise import AddOp, DivOp, MulOp, SubOp
from infinigraph.exceptions import InfiniError
from infinigraph.graph import Graph
from infinigraph.op_type import OpType


@pytest.fixture
def graph():
    return Graph(object())


def test_shape_inference(graph):
    i0 = graph.add_tensor([2, 3, 3, 4], DataType.UInt32)
    i1 = graph.add_tensor([2, 3, 3, 4], DataType.UInt32)
    op = graph.add_op(AddOp, i0, i1, None)
    assert op.output().dims == [2, 3, 3, 4]


@pytest.mark.parametrize(
    "shape0, shape1",
    [
        ([2, 3, 4, 5], []),
        ([2, 3, 4, 5], [5]),
        ([4, 5], [2, 3, 4, 5]),
        ([1, 4, 5], [2, 3, 1, 1]),
        ([3, 4, 5], [2, 1, 1, 1]),
    ],
)
def test_broadcasting(graph, shape0, shape1):
    i0 = graph.add_tensor(shape0, DataType.UInt32)
    i1 = graph.add_tensor(shape1, DataType.UInt32)
    op = graph.add_op(AddOp, i0, i1, None)
    assert op.output().dims == [2, 3, 4, 5]


def test_incompatible_shapes_raise(graph):
    i0 = graph.add_tensor([2, 3])
    i1 = graph.add_tensor([4, 3])
    with pytest.raises(InfiniError):
        graph.add_op(MulOp, i0, i1, None)


@pytest.mark.parametrize(
    "cls, op_type",
    [(AddOp, OpType.Add), (SubOp, OpType.Sub), (MulOp, OpType.Mul),
     (DivOp, OpType.Div)],
)
def test_op_types(graph, cls, op_type):
    i0 = graph.add_tensor([2])
    i1 = graph.add_tensor([2])
    op = graph.add_op(cls, i0, i1, None)
    assert op.op_type == op_type
    assert op.num_inputs() == 2
    assert op.num_outputs() == 1


def test_given_output_with_wrong_shape_raises(graph):
    i0 = graph.add_tensor([2, 3])
    i1 = graph.add_tensor([2, 3])
    out = graph.add_tensor([3, 2])
    with pytest.raises(InfiniError):
        graph.add_op_with_outputs(AddOp, i0, i1, out)


def test_given_output_is_kept(graph):
    i0 = graph.add_tensor([2, 3])
    i1 = graph.add_tensor([3])
    out = graph.add_tensor([2, 3])
    op = graph.add_op_with_outputs(SubOp, i0, i1, out)
    assert op.output() is out
    assert out.source is op


def test_str(graph):
    i0 = graph.add_tensor([2, 3])
    i1 = graph.add_tensor([3])
    op = graph.add_op(AddOp, i0, i1, None)
    expected = (
        f"Add[{op.guid}]([2,3],[3],input0={i0.guid},input1={i1.guid},"
        f"output={op.output().guid})"
    )
    assert str(op) == expected