"""Runtimes own device memory and run graphs with registered kernels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from infinigraph import cpu_kernels  # noqa: F401  (registers the host kernels)
from infinigraph.exceptions import InfiniError
from infinigraph.kernel import KernelRegistry
from infinigraph.op_type import Device

__all__ = ["Runtime", "NativeCpuRuntime"]

_WORD = 8


class Runtime(ABC):
    """A device that can hold memory and execute graphs."""

    def __init__(self, device: Device) -> None:
        self.device = device

    @abstractmethod
    def run(self, graph: Any) -> None:
        """Execute every operator of ``graph`` in order."""

    @abstractmethod
    def alloc(self, size: int) -> Any:
        """Allocate at least ``size`` bytes."""

    @abstractmethod
    def dealloc(self, buffer: Any) -> None:
        """Release memory returned by :meth:`alloc`."""

    def is_cpu(self) -> bool:
        """Whether memory of this runtime is addressable from the host."""
        return True

    @abstractmethod
    def __str__(self) -> str:
        """Name of the runtime."""


class NativeCpuRuntime(Runtime):
    """Runs graphs on the host with the reference kernels."""

    _instance: ClassVar[NativeCpuRuntime | None] = None

    def __init__(self) -> None:
        super().__init__(Device.CPU)
        self.live_allocations = 0

    @classmethod
    def get_instance(cls) -> NativeCpuRuntime:
        """The shared host runtime."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def run(self, graph: Any) -> None:
        registry = KernelRegistry.get_instance()
        for op in graph.operators:
            kernel = registry.get_kernel((self.device, int(op.op_type)))
            kernel.compute(op, self)

    def alloc(self, size: int) -> bytearray:
        """A zeroed buffer of ``size`` bytes rounded up to whole 8-byte words."""
        words = (size + _WORD - 1) // _WORD
        self.live_allocations += 1
        return bytearray(words * _WORD)

    def dealloc(self, buffer: Any) -> None:
        if not isinstance(buffer, bytearray):
            raise TypeError("Only buffers from alloc() can be released")
        if self.live_allocations == 0:
            raise InfiniError("No outstanding allocation to release")
        self.live_allocations -= 1

    def __str__(self) -> str:
        return "CPU Runtime"