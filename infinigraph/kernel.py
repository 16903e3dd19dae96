"""Kernel interface and the registry that maps (device, operator) keys to kernels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, ClassVar, NamedTuple

from infinigraph.exceptions import InfiniError
from infinigraph.op_type import Device, OpType
from infinigraph.operator_utils import get_kernel_attrs_str

__all__ = ["Kernel", "KernelRecord", "KernelRegistry", "register_kernel"]

KernelAttrs = tuple[Device, int]


class Kernel(ABC):
    """Executes one kind of operator on one device."""

    @abstractmethod
    def compute(self, op: Any, context: Any) -> None:
        """Run ``op``, reading its inputs and writing its outputs."""


class KernelRecord(NamedTuple):
    """A registered kernel with its name and registration number."""

    kernel: Kernel
    name: str
    id: int


def _normalise(key: tuple[Device, int]) -> KernelAttrs:
    device, op_type = key
    return device, int(op_type)


class KernelRegistry:
    """Maps ``(device, op_type)`` keys to kernel instances."""

    _instance: ClassVar[KernelRegistry | None] = None

    def __init__(self) -> None:
        self._kernels: dict[KernelAttrs, KernelRecord] = {}
        self._count = 0

    @classmethod
    def get_instance(cls) -> KernelRegistry:
        """The process-wide registry."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register_kernel(self, key: tuple[Device, int], kernel: Kernel,
                        name: str) -> bool:
        """Register ``kernel`` under ``key``; each key may be registered once."""
        key = _normalise(key)
        if key in self._kernels:
            raise InfiniError("Kernel already registered")
        self._count += 1
        self._kernels[key] = KernelRecord(kernel, name, self._count)
        return True

    def get_kernel(self, key: tuple[Device, int]) -> Kernel:
        """The kernel registered under ``key``."""
        key = _normalise(key)
        record = self._kernels.get(key)
        if record is None:
            raise InfiniError(
                "Kernel not found for key {" + get_kernel_attrs_str(key) + "}"
            )
        return record.kernel

    def get_kernel_item(self, key: tuple[Device, int]) -> KernelRecord:
        """The full record under ``key``; raises KeyError when absent."""
        return self._kernels[_normalise(key)]


def register_kernel(device: Device, op_type: OpType,
                    name: str) -> Callable[[type[Kernel]], type[Kernel]]:
    """Class decorator registering an instance of the kernel in the global registry."""

    def decorator(kernel_class: type[Kernel]) -> type[Kernel]:
        KernelRegistry.get_instance().register_kernel(
            (device, op_type), kernel_class(), name
        )
        return kernel_class

    return decorator