"""Error type and small formatting helpers shared across the package."""

from __future__ import annotations

from collections.abc import Iterable

__all__ = ["InfiniError", "vec_to_string"]


class InfiniError(RuntimeError):
    """Raised when a graph, operator or allocator invariant is violated."""


def _format_item(value: object) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def vec_to_string(values: Iterable[object]) -> str:
    """Render a sequence as ``[a,b,c]`` with no spaces."""
    return "[" + ",".join(_format_item(v) for v in values) + "]"