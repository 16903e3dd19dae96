"""Tensor computation graph with shape inference, graph rewriting, memory planning and CPU kernels."""

__version__ = "0.1.0"