"""
Applied-forward artifacts produced by `MaxPoolingLayer`.

Each call into the layer returns one of the result types below. A result
owns the per-call `Context` (and therefore the cached arg-max offsets), so
the layer itself stays stateless and several calls on one layer never
interfere with each other.

Result kinds
------------
- `MaxPoolingResult`          : single Tensor3, forward + backward
- `MaxPoolingRResult`         : single Tensor3, adds R-output and R-backward
- `BatchedMaxPoolingResult`   : `n` samples in a flat vector
- `BatchedMaxPoolingRResult`  : batched, with R-output and R-backward

Single-sample results accept and return `Tensor3` objects; batched results
accept and return flat, sample-major float64 vectors.

Gradient accumulation
---------------------
`propagate_gradient` and `propagate_r_gradient` return freshly allocated
gradients by default. When an accumulator is supplied, routed values are
added into it in place and the accumulator itself is returned, which is how
a graph engine sums contributions from several consumers of one input.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

from ..tensor._tensor3 import Tensor3
from ..tensor._tensor_context import Context
from ..ops.maxpool_cpu_ext import (
    accumulator_buffer,
    add_into,
    to_batch_volume,
    volume_to_flat,
    volume_to_tensor3,
)
from ._max_pooling_meta import MaxPoolingMeta


class _MaxPoolingResultBase:
    """Shared routing logic for single and batched results."""

    def __init__(
        self, ctx: Context, meta: MaxPoolingMeta, output: np.ndarray, n: int
    ) -> None:
        self._ctx = ctx
        self._meta = meta
        self._n = n
        self._output = self._emit(output)

    def _emit(self, vol: np.ndarray) -> Any:
        raise NotImplementedError

    @property
    def output(self) -> Any:
        """Pooled output of the forward pass."""
        return self._output

    @property
    def batch_size(self) -> int:
        return self._n

    def _output_volume(self, value: Any, what: str) -> np.ndarray:
        return to_batch_volume(
            value, n=self._n, shape=self._meta.output_shape, what=what
        )

    def _accumulator(self, into: Any, what: str) -> Optional[np.ndarray]:
        if into is None:
            return None
        return accumulator_buffer(
            into, size=self._n * self._meta.input_size, what=what
        )

    def _finish(self, vol: np.ndarray, buf: Optional[np.ndarray], into: Any) -> Any:
        if buf is None:
            return self._emit(vol)
        add_into(buf, vol)
        return into

    def propagate_gradient(self, upstream: Any, accumulate_into: Any = None) -> Any:
        """
        Route an output gradient back to the input.

        Parameters
        ----------
        upstream : Tensor3 or array-like
            Gradient with respect to the output (one value per output cell).
        accumulate_into : Tensor3 or np.ndarray, optional
            Input-sized float64 buffer to add the routed gradient into.

        Returns
        -------
        Tensor3 or np.ndarray
            The input gradient (or `accumulate_into`, updated in place). Every
            cell is zero except the selected maximum of each window, which holds
            that window's upstream value.

        Raises
        ------
        ShapeMismatchError
            If `upstream` or `accumulate_into` has the wrong shape.
        """
        g = self._output_volume(upstream, "upstream gradient")
        buf = self._accumulator(accumulate_into, "gradient accumulator")
        return self._finish(self._ctx.backward_fn(g), buf, accumulate_into)


class _RResultMixin:
    """Adds the R-operator outputs to a result type."""

    _ctx: Context
    _r_output: Any

    @property
    def r_output(self) -> Any:
        """Directional derivative of the output."""
        return self._r_output

    def propagate_r_gradient(
        self,
        upstream: Any,
        upstream_r: Any,
        accumulate_into: Any = None,
        r_accumulate_into: Any = None,
    ) -> Tuple[Any, Any]:
        """
        Route a gradient and its R-derivative back to the input.

        Parameters
        ----------
        upstream : Tensor3 or array-like or None
            Gradient with respect to the output. If None, only the R-gradient
            is propagated.
        upstream_r : Tensor3 or array-like
            R-derivative of the gradient with respect to the output.
        accumulate_into, r_accumulate_into : Tensor3 or np.ndarray, optional
            Input-sized float64 buffers to add the routed values into.

        Returns
        -------
        tuple
            `(grad, r_grad)`; `grad` is None when `upstream` is None.
        """
        g = None
        buf = None
        if upstream is not None:
            g = self._output_volume(upstream, "upstream gradient")
            buf = self._accumulator(accumulate_into, "gradient accumulator")
        rg = self._output_volume(upstream_r, "upstream R-gradient")
        rbuf = self._accumulator(r_accumulate_into, "R-gradient accumulator")

        grad = None
        if g is not None:
            grad = self._finish(self._ctx.backward_fn(g), buf, accumulate_into)
        r_grad = self._finish(self._ctx.r_backward_fn(rg), rbuf, r_accumulate_into)
        return grad, r_grad


class MaxPoolingResult(_MaxPoolingResultBase):
    """Result of pooling a single Tensor3."""

    def __init__(self, ctx: Context, meta: MaxPoolingMeta, output: np.ndarray) -> None:
        super().__init__(ctx, meta, output, 1)

    def _emit(self, vol: np.ndarray) -> Tensor3:
        return volume_to_tensor3(vol)


class BatchedMaxPoolingResult(_MaxPoolingResultBase):
    """Result of pooling `n` samples packed into one flat vector."""

    def _emit(self, vol: np.ndarray) -> np.ndarray:
        return volume_to_flat(vol)


class MaxPoolingRResult(_RResultMixin, MaxPoolingResult):
    """Result of pooling a single Tensor3 together with a direction tensor."""

    def __init__(
        self,
        ctx: Context,
        meta: MaxPoolingMeta,
        output: np.ndarray,
        r_output: np.ndarray,
    ) -> None:
        super().__init__(ctx, meta, output)
        self._r_output = self._emit(r_output)


class BatchedMaxPoolingRResult(_RResultMixin, BatchedMaxPoolingResult):
    """Batched result carrying the R-output alongside the output."""

    def __init__(
        self,
        ctx: Context,
        meta: MaxPoolingMeta,
        output: np.ndarray,
        r_output: np.ndarray,
        n: int,
    ) -> None:
        super().__init__(ctx, meta, output, n)
        self._r_output = self._emit(r_output)
