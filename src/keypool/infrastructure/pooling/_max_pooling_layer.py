"""
Max pooling layer for KeyPool (channels-last 3-D tensors).

`MaxPoolingLayer` is a stateless, differentiable node that downsamples the
spatial dimensions of a (width, height, depth) tensor by taking the maximum
of every non-overlapping `x_span` x `y_span` window, per channel.

Entry points
------------
- `apply(x)`                     -> `MaxPoolingResult`
- `apply_r(x, r_x)`              -> `MaxPoolingRResult`
- `apply_batch(flat, n)`         -> `BatchedMaxPoolingResult`
- `apply_batch_r(flat, r, n)`    -> `BatchedMaxPoolingRResult`
- `forward(x)` / `layer(x)`      -> pooled `Tensor3` only

Design notes
------------
- Hyperparameters live in a frozen `MaxPoolingMeta`; nothing on the layer
  changes after construction, so one instance may serve concurrent calls.
- Every call builds its own `Context`, which the returned result keeps for
  backward and R-backward routing.
- All operands are validated before the forward kernel runs, so a failing
  call never produces partial output.
"""

from __future__ import annotations

import warnings
from typing import Any, Tuple

from ...domain.model._max_pooling_config_mixin import MaxPoolingConfigMixin
from .._layer import Layer
from ..module._serialization_core import register_module
from ..ops.maxpool_cpu_ext import to_batch_volume
from ..tensor._tensor3 import Tensor3, _check_dim
from ..tensor._tensor_context import Context
from ._max_pooling_function import MaxPoolingFn
from ._max_pooling_meta import MaxPoolingMeta
from ._max_pooling_results import (
    BatchedMaxPoolingResult,
    BatchedMaxPoolingRResult,
    MaxPoolingResult,
    MaxPoolingRResult,
)


@register_module()
class MaxPoolingLayer(MaxPoolingConfigMixin, Layer):
    """
    Spatial max pooling over channels-last 3-D tensors.

    Shape semantics
    ---------------
    Input:
        (input_width, input_height, input_depth)

    Output:
        (ceil(input_width / x_span), ceil(input_height / y_span), input_depth)

    Notes
    -----
    - The window for output column `ox` covers input columns
      `[ox*x_span, min((ox+1)*x_span, input_width))`; rows likewise.
    - Ties inside a window resolve to the first maximum in row-major scan
      order (increasing y, then increasing x), in every pass.
    """

    def __init__(
        self,
        x_span: int,
        y_span: int,
        input_width: int,
        input_height: int,
        input_depth: int,
    ) -> None:
        """
        Construct a MaxPoolingLayer.

        Parameters
        ----------
        x_span, y_span : int
            Window width and height.
        input_width, input_height, input_depth : int
            Expected input tensor shape.

        Raises
        ------
        TypeError
            If a field is not an int.
        ValueError
            If a field is not positive.
        """
        self._meta = MaxPoolingMeta(
            x_span=_check_dim("x_span", x_span),
            y_span=_check_dim("y_span", y_span),
            input_width=_check_dim("input_width", input_width),
            input_height=_check_dim("input_height", input_height),
            input_depth=_check_dim("input_depth", input_depth),
        )
        if self._meta.x_span > self._meta.input_width:
            warnings.warn(
                f"x_span={self._meta.x_span} exceeds input_width="
                f"{self._meta.input_width}; every row pools to a single clipped window.",
                UserWarning,
                stacklevel=2,
            )
        if self._meta.y_span > self._meta.input_height:
            warnings.warn(
                f"y_span={self._meta.y_span} exceeds input_height="
                f"{self._meta.input_height}; every column pools to a single clipped window.",
                UserWarning,
                stacklevel=2,
            )

    # ------------------------------------------------------------------
    # Configuration descriptor
    # ------------------------------------------------------------------
    @property
    def x_span(self) -> int:
        return self._meta.x_span

    @property
    def y_span(self) -> int:
        return self._meta.y_span

    @property
    def input_width(self) -> int:
        return self._meta.input_width

    @property
    def input_height(self) -> int:
        return self._meta.input_height

    @property
    def input_depth(self) -> int:
        return self._meta.input_depth

    @property
    def output_width(self) -> int:
        return self._meta.output_width

    @property
    def output_height(self) -> int:
        return self._meta.output_height

    @property
    def output_depth(self) -> int:
        return self._meta.input_depth

    @property
    def input_shape(self) -> Tuple[int, int, int]:
        return self._meta.input_shape

    @property
    def output_shape(self) -> Tuple[int, int, int]:
        return self._meta.output_shape

    @property
    def input_size(self) -> int:
        return self._meta.input_size

    @property
    def output_size(self) -> int:
        return self._meta.output_size

    # ------------------------------------------------------------------
    # Forward passes
    # ------------------------------------------------------------------
    def _new_context(self, parents: tuple, *, with_r: bool) -> Context:
        ctx = Context(
            parents=parents,
            backward_fn=lambda grad_out: MaxPoolingFn.backward(ctx, grad_out),
        )
        if with_r:
            ctx.r_backward_fn = lambda r_grad_out: MaxPoolingFn.r_backward(
                ctx, r_grad_out
            )
        return ctx

    def _input_volume(self, value: Any, n: int, what: str):
        return to_batch_volume(value, n=n, shape=self._meta.input_shape, what=what)

    def apply(self, x: Tensor3) -> MaxPoolingResult:
        """
        Pool a single tensor.

        Parameters
        ----------
        x : Tensor3
            Input of shape (input_width, input_height, input_depth).

        Returns
        -------
        MaxPoolingResult
            Pooled output plus the arg-max cache for `propagate_gradient`.

        Raises
        ------
        ShapeMismatchError
            If `x` has the wrong shape.
        """
        vol = self._input_volume(x, 1, "input")
        ctx = self._new_context((x,), with_r=False)
        y = MaxPoolingFn.forward(
            ctx, vol, x_span=self._meta.x_span, y_span=self._meta.y_span
        )
        return MaxPoolingResult(ctx, self._meta, y)

    def forward(self, x: Tensor3) -> Tensor3:
        """
        Pool a single tensor and return only the output.
        """
        return self.apply(x).output

    def apply_r(self, x: Tensor3, r_x: Tensor3) -> MaxPoolingRResult:
        """
        Pool a single tensor and propagate a directional derivative.

        Parameters
        ----------
        x : Tensor3
            Input of shape (input_width, input_height, input_depth).
        r_x : Tensor3
            Direction tensor with the same shape as `x`.

        Returns
        -------
        MaxPoolingRResult
            Output, R-output, and the routing needed for both backward passes.

        Raises
        ------
        ShapeMismatchError
            If `x` or `r_x` has the wrong shape.
        """
        vol = self._input_volume(x, 1, "input")
        r_vol = self._input_volume(r_x, 1, "R-direction")
        ctx = self._new_context((x, r_x), with_r=True)
        y = MaxPoolingFn.forward(
            ctx, vol, x_span=self._meta.x_span, y_span=self._meta.y_span
        )
        r_y = MaxPoolingFn.r_forward(ctx, r_vol)
        return MaxPoolingRResult(ctx, self._meta, y, r_y)

    # ------------------------------------------------------------------
    # Batched passes
    # ------------------------------------------------------------------
    @staticmethod
    def _check_batch_size(n: int) -> int:
        if isinstance(n, bool) or not isinstance(n, int):
            raise TypeError(f"n must be an int, got {type(n).__name__}")
        if n < 1:
            raise ValueError(f"n must be at least 1, got {n}")
        return n

    def apply_batch(self, flat: Any, n: int) -> BatchedMaxPoolingResult:
        """
        Pool `n` samples packed sample-major into a flat vector.

        Parameters
        ----------
        flat : array-like
            Flat vector of length `n * input_size`.
        n : int
            Number of samples.

        Returns
        -------
        BatchedMaxPoolingResult
            Flat output of length `n * output_size` plus the arg-max cache.

        Raises
        ------
        ShapeMismatchError
            If `flat` does not hold exactly `n` samples.
        """
        n = self._check_batch_size(n)
        vol = self._input_volume(flat, n, "batched input")
        ctx = self._new_context((flat,), with_r=False)
        y = MaxPoolingFn.forward(
            ctx, vol, x_span=self._meta.x_span, y_span=self._meta.y_span
        )
        return BatchedMaxPoolingResult(ctx, self._meta, y, n)

    def apply_batch_r(self, flat: Any, r_flat: Any, n: int) -> BatchedMaxPoolingRResult:
        """
        Batched counterpart of `apply_r`.

        Raises
        ------
        ShapeMismatchError
            If `flat` or `r_flat` does not hold exactly `n` samples.
        """
        n = self._check_batch_size(n)
        vol = self._input_volume(flat, n, "batched input")
        r_vol = self._input_volume(r_flat, n, "batched R-direction")
        ctx = self._new_context((flat, r_flat), with_r=True)
        y = MaxPoolingFn.forward(
            ctx, vol, x_span=self._meta.x_span, y_span=self._meta.y_span
        )
        r_y = MaxPoolingFn.r_forward(ctx, r_vol)
        return BatchedMaxPoolingRResult(ctx, self._meta, y, r_y, n)

    def __repr__(self) -> str:
        m = self._meta
        return (
            f"MaxPoolingLayer(x_span={m.x_span}, y_span={m.y_span}, "
            f"input_width={m.input_width}, input_height={m.input_height}, "
            f"input_depth={m.input_depth})"
        )
