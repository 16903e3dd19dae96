"""Offset-based memory planner that reserves one buffer for a whole graph."""

from __future__ import annotations

from typing import Any

from infinigraph.exceptions import InfiniError

__all__ = ["Allocator"]

# Eight bytes: the widest element type currently supported.
_ALIGNMENT = 8


class Allocator:
    """Plans tensor offsets first, then allocates the peak size once."""

    def __init__(self, runtime: Any) -> None:
        self.runtime = runtime
        self.used = 0
        self.peak = 0
        self.alignment = _ALIGNMENT
        self._buffer: Any = None
        # Free blocks keyed by start offset; values are block sizes.
        self._free_blocks: dict[int, int] = {}

    def _aligned_size(self, size: int) -> int:
        return ((size - 1) // self.alignment + 1) * self.alignment

    def _ensure_planning(self) -> None:
        if self._buffer is not None:
            raise InfiniError("Allocator memory has already been materialised")

    def alloc(self, size: int) -> int:
        """Reserve ``size`` bytes and return the block's start offset."""
        self._ensure_planning()
        size = self._aligned_size(size)
        for offset in sorted(self._free_blocks):
            if self._free_blocks[offset] >= size:
                del self._free_blocks[offset]
                return offset
        offset = self.used
        self.used += size
        self.peak = max(self.peak, self.used)
        return offset

    def free(self, addr: int, size: int) -> None:
        """Release the block of ``size`` bytes starting at ``addr``."""
        self._ensure_planning()
        size = self._aligned_size(size)
        if not 0 <= addr < self.used:
            raise InfiniError(f"Address {addr} is outside used memory")
        if addr % self.alignment:
            raise InfiniError(f"Address {addr} is not aligned")
        if size % self.alignment:
            raise InfiniError(f"Size {size} is not aligned")
        if addr + size > self.used:
            raise InfiniError("Freed block extends past used memory")
        self._free_blocks[addr] = size
        self.used -= size

    def get_ptr(self) -> Any:
        """Allocate the planned peak once and return the same buffer afterwards."""
        if self._buffer is None:
            self._buffer = self.runtime.alloc(self.peak)
            print(f"Allocator really alloc: {id(self._buffer):#x} {self.peak} bytes")
        return self._buffer

    def info(self) -> None:
        """Print current and peak usage."""
        print(f"Used memory: {self.used}, peak memory: {self.peak}")