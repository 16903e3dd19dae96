import itertools

import pytest

from infinigraph.exceptions import InfiniError
from infinigraph.op_type import Device, OpType
from infinigraph.operator_utils import (
    delocate_index,
    get_kernel_attrs_str,
    get_real_axis,
    infer_broadcast,
    locate_index,
)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ([2, 3, 3, 4], [2, 3, 3, 4], [2, 3, 3, 4]),
        ([2, 3, 4, 5], [], [2, 3, 4, 5]),
        ([2, 3, 4, 5], [5], [2, 3, 4, 5]),
        ([4, 5], [2, 3, 4, 5], [2, 3, 4, 5]),
        ([1, 4, 5], [2, 3, 1, 1], [2, 3, 4, 5]),
        ([3, 4, 5], [2, 1, 1, 1], [2, 3, 4, 5]),
    ],
)
def test_broadcast_cases(a, b, expected):
    assert infer_broadcast(a, b) == expected


def test_broadcast_is_symmetric():
    assert infer_broadcast([1, 4, 5], [2, 3, 1, 1]) == infer_broadcast(
        [2, 3, 1, 1], [1, 4, 5]
    )


def test_broadcast_mismatch_raises():
    with pytest.raises(InfiniError):
        infer_broadcast([2, 3], [4, 3])


def test_real_axis_positive_and_negative():
    assert get_real_axis(2, 4) == 2
    assert get_real_axis(-1, 4) == 3
    assert get_real_axis(-4, 4) == 0


@pytest.mark.parametrize("axis, rank", [(4, 4), (-5, 4), (0, 0)])
def test_real_axis_out_of_range(axis, rank):
    with pytest.raises(InfiniError):
        get_real_axis(axis, rank)


def test_locate_index_covers_every_position():
    shape = [2, 3, 4]
    positions = [tuple(locate_index(i, shape)) for i in range(2 * 3 * 4)]
    assert positions == list(itertools.product(range(2), range(3), range(4)))


def test_locate_then_delocate_round_trips():
    shape = [2, 3, 4]
    stride = [12, 4, 1]
    for flat in range(24):
        assert delocate_index(locate_index(flat, shape), shape, stride) == flat


def test_delocate_wraps_broadcast_dimension():
    shape = [1, 4]
    stride = [4, 1]
    assert delocate_index([2, 3], shape, stride) == delocate_index(
        [0, 3], shape, stride
    )


def test_delocate_rank_mismatch_raises():
    with pytest.raises(InfiniError):
        delocate_index([0, 1], [2], [1])
    with pytest.raises(InfiniError):
        delocate_index([0], [2], [1, 1])


def test_kernel_attrs_string():
    assert get_kernel_attrs_str((Device.CPU, OpType.Concat)) == "CPU, Concat"
    assert get_kernel_attrs_str((Device.CPU, 99)) == "CPU, Unknown"