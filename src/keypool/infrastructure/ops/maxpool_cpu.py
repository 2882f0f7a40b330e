"""
CPU reference implementations for 3-D max pooling (NumPy backend).

This module provides **readable and correct** NumPy-based kernels for max
pooling over channels-last volumes laid out as **(N, H, W, D)**: a batch of
`N` samples, each `H` rows by `W` columns by `D` channels. A single Tensor3
is simply the `N == 1` case. These functions serve as:

- The backend kernels used by the autograd `MaxPoolingFn`
- The numerical ground truth for unit tests

Implemented passes
------------------
- forward reduction (with arg-max caching)
- reverse-mode gradient routing
- forward-mode (R-operator) routing

Design notes
------------
- Windows are non-overlapping and tile the input from the top-left corner.
  The last window along each axis is clipped to the input bounds, so the
  output size is `ceil(input / span)` and no padding is ever materialized.
- Channels are pooled independently; each window is scanned for all channels
  at once by flattening it to `(rows * cols, D)`.
- Tie-break: the window is flattened row-major (increasing y, then increasing
  x within a row) and `np.argmax` returns the first maximum in that order.
- `argmax_idx` stores, for every output cell, the linear offset of the
  selected input cell **within its sample** (`z + x*D + y*D*W`), which is the
  same convention as `Tensor3.index`.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np


def _ceil_div(a: int, b: int) -> int:
    """Integer ceiling division for positive operands."""
    return (a + b - 1) // b


def _out_wh(W: int, H: int, x_span: int, y_span: int) -> Tuple[int, int]:
    """
    Compute output spatial dimensions for clipped, non-overlapping windows.

    Parameters
    ----------
    W, H : int
        Input width and height.
    x_span, y_span : int
        Window width and height.

    Returns
    -------
    tuple[int, int]
        Output width and height (W_out, H_out).
    """
    return _ceil_div(W, x_span), _ceil_div(H, y_span)


def _window_bounds(o: int, span: int, size: int) -> Tuple[int, int]:
    """Return the half-open input range [start, stop) of output index `o`."""
    start = o * span
    return start, min(start + span, size)


def maxpool3_forward_cpu(
    x: np.ndarray, *, x_span: int, y_span: int
) -> tuple[np.ndarray, np.ndarray]:
    """
    Max pooling forward pass (CPU, NumPy) for (N, H, W, D) volumes.

    Parameters
    ----------
    x : np.ndarray
        Input volume of shape (N, H, W, D).
    x_span, y_span : int
        Window width and height.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        y :
            Output volume of shape (N, H_out, W_out, D).
        argmax_idx :
            int64 array of shape (N, H_out, W_out, D) with the per-sample linear
            offset of the input cell selected for each output cell.
    """
    N, H, W, D = x.shape
    W_out, H_out = _out_wh(W, H, x_span, y_span)

    y = np.empty((N, H_out, W_out, D), dtype=x.dtype)
    argmax_idx = np.empty((N, H_out, W_out, D), dtype=np.int64)

    channels = np.arange(D, dtype=np.int64)
    for n in range(N):
        for i in range(H_out):
            y0, y1 = _window_bounds(i, y_span, H)
            for j in range(W_out):
                x0, x1 = _window_bounds(j, x_span, W)
                patch = x[n, y0:y1, x0:x1, :].reshape(-1, D)
                flat_idx = np.argmax(patch, axis=0)
                y[n, i, j, :] = patch[flat_idx, channels]

                cols = x1 - x0
                py = y0 + flat_idx // cols
                px = x0 + flat_idx % cols
                argmax_idx[n, i, j, :] = channels + px * D + py * D * W

    return y, argmax_idx


def maxpool3_backward_cpu(
    grad_out: np.ndarray,
    argmax_idx: np.ndarray,
    *,
    x_shape: tuple[int, int, int, int],
) -> np.ndarray:
    """
    Max pooling backward pass (CPU, NumPy), (N, H, W, D).

    Parameters
    ----------
    grad_out : np.ndarray
        Gradient with respect to the output, shape (N, H_out, W_out, D).
    argmax_idx : np.ndarray
        Arg-max offsets returned by the forward pass.
    x_shape : tuple[int, int, int, int]
        Original input shape (N, H, W, D).

    Returns
    -------
    np.ndarray
        Gradient with respect to the input, shape (N, H, W, D).

    Notes
    -----
    - Every output gradient is routed to the single input cell that won the
      max during the forward pass; all other cells receive exactly zero.
    - Windows never overlap, so each input cell receives at most one value.
      `np.add.at` is still used so the routing is an accumulation.
    """
    N = x_shape[0]
    sample_size = int(np.prod(x_shape[1:]))

    grad_x = np.zeros((N, sample_size), dtype=np.float64)
    g = grad_out.reshape(N, -1)
    idx = argmax_idx.reshape(N, -1)
    for n in range(N):
        np.add.at(grad_x[n], idx[n], g[n])

    return grad_x.reshape(x_shape)


def maxpool3_r_forward_cpu(r_x: np.ndarray, argmax_idx: np.ndarray) -> np.ndarray:
    """
    Max pooling forward-mode (R-operator) pass (CPU, NumPy).

    Parameters
    ----------
    r_x : np.ndarray
        Directional derivative of the input, shape (N, H, W, D).
    argmax_idx : np.ndarray
        Arg-max offsets returned by the forward pass.

    Returns
    -------
    np.ndarray
        Directional derivative of the output, shape (N, H_out, W_out, D).

    Notes
    -----
    Each output cell picks the direction value at exactly the input cell the
    forward pass selected, so forward- and reverse-mode routing agree.
    """
    N = r_x.shape[0]
    picked = np.take_along_axis(
        r_x.reshape(N, -1), argmax_idx.reshape(N, -1), axis=1
    )
    return picked.reshape(argmax_idx.shape)
