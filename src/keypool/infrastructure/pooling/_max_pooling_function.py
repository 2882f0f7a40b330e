"""
Autograd `Function` adapter for 3-D max pooling (CPU backend).

This module connects the pooling primitives in `ops.maxpool_cpu` to the
KeyPool autograd runtime (`Context`, `RFunction`). `MaxPoolingFn`:

- implements `forward(ctx, ...)` to compute the pooled volume and cache the
  arg-max offset of every output cell,
- implements `backward(ctx, grad_out)` to route gradients to those cells,
- implements `r_forward(ctx, r_x)` to thread a directional derivative through
  the same cells, and
- implements `r_backward(ctx, r_grad_out)` to route the R-derivative of the
  output gradient back to the input.

Design notes
------------
- Operands are `(N, H, W, D)` NumPy volumes; a single tensor is `N == 1`.
- Only the arg-max offsets are cached, so forward, backward and R passes are
  guaranteed to agree on tie-breaks.
- Shapes are checked against the shapes recorded at forward time, so a
  mismatched operand is rejected before any routing happens.
"""

from __future__ import annotations

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._function import RFunction
from ..tensor._tensor_context import Context
from ..ops.maxpool_cpu import (
    maxpool3_forward_cpu,
    maxpool3_backward_cpu,
    maxpool3_r_forward_cpu,
)


def _check_shape(what: str, arr: np.ndarray, expected: tuple) -> None:
    if tuple(arr.shape) != tuple(expected):
        raise ShapeMismatchError(what, tuple(expected), tuple(arr.shape))


class MaxPoolingFn(RFunction):
    """
    Autograd-enabled max pooling over channels-last volumes.

    Saved context
    -------------
    - `saved_tensors`: [argmax_idx]
    - `saved_meta`:
        - "x_shape": input shape (N, H, W, D)
        - "y_shape": output shape (N, H_out, W_out, D)
        - "x_span": window width
        - "y_span": window height
    """

    @staticmethod
    def forward(ctx: Context, x: np.ndarray, *, x_span: int, y_span: int) -> np.ndarray:
        """
        Compute max pooling and save the arg-max cache for later passes.

        Parameters
        ----------
        ctx : Context
            Per-call context for storing the arg-max cache and shapes.
        x : np.ndarray
            Input volume of shape (N, H, W, D).
        x_span, y_span : int
            Window width and height.

        Returns
        -------
        np.ndarray
            Output volume of shape (N, H_out, W_out, D).
        """
        y, argmax_idx = maxpool3_forward_cpu(x, x_span=x_span, y_span=y_span)

        ctx.save_for_backward(argmax_idx)
        ctx.saved_meta["x_shape"] = x.shape
        ctx.saved_meta["y_shape"] = y.shape
        ctx.saved_meta["x_span"] = x_span
        ctx.saved_meta["y_span"] = y_span
        return y

    @staticmethod
    def backward(ctx: Context, grad_out: np.ndarray) -> np.ndarray:
        """
        Route output gradients to the arg-max input cells.

        Parameters
        ----------
        ctx : Context
            Context populated by `forward`.
        grad_out : np.ndarray
            Gradient with respect to the output, shape (N, H_out, W_out, D).

        Returns
        -------
        np.ndarray
            Gradient with respect to the input, shape (N, H, W, D).
        """
        _check_shape("upstream gradient", grad_out, ctx.saved_meta["y_shape"])
        (argmax_idx,) = ctx.saved_tensors
        return maxpool3_backward_cpu(
            grad_out, argmax_idx, x_shape=ctx.saved_meta["x_shape"]
        )

    @staticmethod
    def r_forward(ctx: Context, r_x: np.ndarray) -> np.ndarray:
        """
        Pick the direction value of each window's selected input cell.

        Parameters
        ----------
        ctx : Context
            Context populated by `forward`.
        r_x : np.ndarray
            Directional derivative of the input, shape (N, H, W, D).

        Returns
        -------
        np.ndarray
            Directional derivative of the output, shape (N, H_out, W_out, D).
        """
        _check_shape("R-direction", r_x, ctx.saved_meta["x_shape"])
        (argmax_idx,) = ctx.saved_tensors
        return maxpool3_r_forward_cpu(r_x, argmax_idx)

    @staticmethod
    def r_backward(ctx: Context, r_grad_out: np.ndarray) -> np.ndarray:
        """
        Route the R-derivative of the output gradient to the input.

        Max pooling is piecewise linear in its input, so the routing itself has
        a zero directional derivative; the R-gradient therefore follows exactly
        the same arg-max cells as the plain gradient.
        """
        _check_shape("upstream R-gradient", r_grad_out, ctx.saved_meta["y_shape"])
        (argmax_idx,) = ctx.saved_tensors
        return maxpool3_backward_cpu(
            r_grad_out, argmax_idx, x_shape=ctx.saved_meta["x_shape"]
        )
