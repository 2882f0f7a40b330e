"""
Layer interface definitions.

This module defines **domain-level Protocols** for differentiable layers and
for the max-pooling layer's configuration descriptor. The graph engine uses
the descriptor to wire layer shapes together without depending on any
concrete implementation.

Design principles
-----------------
- Pooling layers operate on channels-last 3-D tensors (width, height, depth).
- Pooling layers are **stateless** (no trainable parameters) and their
  configuration is immutable after construction.
- Interfaces are expressed using `Protocol` to enable structural subtyping
  (duck typing) rather than inheritance coupling.

Notes
-----
This module contains **no NumPy or backend-specific logic** and is safe to
depend on from any layer of the architecture.
"""

from __future__ import annotations

from typing import Any, Iterable, Protocol, runtime_checkable

from ._tensor3 import ITensor3


@runtime_checkable
class ILayer(Protocol):
    """
    Domain-level layer interface.

    Any object implementing both `forward` and `parameters` is considered a
    valid layer.
    """

    def forward(self, x: ITensor3) -> ITensor3:
        """
        Execute the forward computation of the layer.

        Parameters
        ----------
        x : ITensor3
            Input tensor to the layer.

        Returns
        -------
        ITensor3
            Output tensor produced by the layer.
        """
        ...

    def parameters(self) -> Iterable[Any]:
        """
        Return the trainable parameters of the layer.

        Returns
        -------
        Iterable[Any]
            An iterable over the layer's trainable parameters (possibly empty).
        """
        ...


@runtime_checkable
class IMaxPoolingLayer(ILayer, Protocol):
    """
    Protocol for spatial max pooling over channels-last 3-D tensors.

    Shape semantics
    ---------------
    Input:
        (input_width, input_height, input_depth)

    Output:
        (output_width, output_height, input_depth)

    where:
        output_width  = ceil(input_width / x_span)
        output_height = ceil(input_height / y_span)

    Windows never overlap; the last window along each axis is clipped when
    the input size is not a multiple of the span.
    """

    @property
    def x_span(self) -> int:
        """Window width."""
        ...

    @property
    def y_span(self) -> int:
        """Window height."""
        ...

    @property
    def input_width(self) -> int:
        """Expected input width."""
        ...

    @property
    def input_height(self) -> int:
        """Expected input height."""
        ...

    @property
    def input_depth(self) -> int:
        """Expected input depth (channels)."""
        ...

    @property
    def output_width(self) -> int:
        """Derived output width, `ceil(input_width / x_span)`."""
        ...

    @property
    def output_height(self) -> int:
        """Derived output height, `ceil(input_height / y_span)`."""
        ...
