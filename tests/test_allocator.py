import pytest

from infinigraph.allocator import Allocator
from infinigraph.exceptions import InfiniError

# Bytes of a Float32 tensor of shape {1, 2, 2, 3}.
SMALL = 1 * 2 * 2 * 3 * 4
# Bytes of a Float32 tensor of shape {2, 2, 2, 3}.
LARGE = 2 * 2 * 2 * 3 * 4


class _FakeRuntime:
    def __init__(self):
        self.requests = []

    def alloc(self, size):
        self.requests.append(size)
        return bytearray(size)


def test_alloc_reuses_freed_block():
    allocator = Allocator(_FakeRuntime())
    offset_a = allocator.alloc(SMALL)
    offset_b = allocator.alloc(SMALL)
    offset_c = allocator.alloc(SMALL)
    allocator.free(offset_b, SMALL)
    offset_d = allocator.alloc(SMALL)
    assert offset_b == offset_d
    assert not (offset_a == 0 and offset_b == 0 and offset_c == 0 and offset_d == 0)


def test_alloc_with_end_free_block():
    allocator = Allocator(_FakeRuntime())
    allocator.alloc(SMALL)
    allocator.alloc(SMALL)
    offset_c = allocator.alloc(SMALL)
    allocator.info()
    allocator.free(offset_c, SMALL)
    offset_d = allocator.alloc(LARGE)
    allocator.info()
    assert offset_c == offset_d


def test_get_ptr_returns_same_buffer():
    runtime = _FakeRuntime()
    allocator = Allocator(runtime)
    for _ in range(4):
        allocator.alloc(SMALL)
    first = allocator.get_ptr()
    second = allocator.get_ptr()
    assert first is second
    assert runtime.requests == [allocator.peak]
    assert len(first) == allocator.peak


def test_offsets_are_aligned():
    allocator = Allocator(_FakeRuntime())
    offsets = [allocator.alloc(size) for size in (3, 5, 9, 1)]
    assert all(offset % allocator.alignment == 0 for offset in offsets)
    assert offsets == sorted(offsets)


def test_peak_tracks_maximum():
    allocator = Allocator(_FakeRuntime())
    first = allocator.alloc(SMALL)
    allocator.alloc(SMALL)
    high = allocator.peak
    allocator.free(first, SMALL)
    assert allocator.peak == high
    assert allocator.used == high - SMALL


def test_alloc_after_get_ptr_raises():
    allocator = Allocator(_FakeRuntime())
    allocator.alloc(SMALL)
    allocator.get_ptr()
    with pytest.raises(InfiniError):
        allocator.alloc(SMALL)
    with pytest.raises(InfiniError):
        allocator.free(0, SMALL)


def test_free_outside_used_raises():
    allocator = Allocator(_FakeRuntime())
    allocator.alloc(SMALL)
    with pytest.raises(InfiniError):
        allocator.free(SMALL, SMALL)


def test_free_unaligned_address_raises():
    allocator = Allocator(_FakeRuntime())
    allocator.alloc(SMALL)
    with pytest.raises(InfiniError):
        allocator.free(3, 8)


def test_free_past_end_raises():
    allocator = Allocator(_FakeRuntime())
    allocator.alloc(SMALL)
    with pytest.raises(InfiniError):
        allocator.free(8, SMALL)