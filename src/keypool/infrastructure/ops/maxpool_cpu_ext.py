"""
Boundary helpers between Tensor3 / flat vectors and pooling volumes.

The CPU kernels in `maxpool_cpu` operate on `(N, H, W, D)` NumPy volumes.
Callers, on the other hand, hand the pooling layer either a single `Tensor3`
or a flat, sample-major vector holding `n` concatenated tensors. This module
converts between the two representations and performs every shape check up
front, so kernels never see malformed operands and no partial result is ever
produced.

Responsibilities
----------------
- Validate operand shapes and raise `ShapeMismatchError` on disagreement.
- View flat float64 buffers as volumes without copying where possible.
- Convert kernel outputs back into `Tensor3` objects or flat vectors.
- Add routed gradients into caller-owned accumulators in place.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np

from ...domain._errors import ShapeMismatchError
from ..tensor._tensor3 import Tensor3


def to_batch_volume(
    value: Any, *, n: int, shape: Tuple[int, int, int], what: str
) -> np.ndarray:
    """
    View an operand as an `(n, height, width, depth)` float64 volume.

    Parameters
    ----------
    value : Tensor3 or array-like
        Either a Tensor3 (only valid when `n == 1`) or a flat, sample-major
        vector of `n * width * height * depth` reals.
    n : int
        Number of samples the operand must hold.
    shape : tuple[int, int, int]
        Expected per-sample (width, height, depth).
    what : str
        Operand name used in error messages.

    Returns
    -------
    np.ndarray
        Volume of shape (n, height, width, depth).

    Raises
    ------
    ShapeMismatchError
        If the operand's shape or length disagrees with `shape` and `n`.
    """
    width, height, depth = shape
    if isinstance(value, Tensor3):
        if n != 1 or value.shape != shape:
            raise ShapeMismatchError(what, shape, value.shape)
        return value.data.reshape(1, height, width, depth)

    arr = np.asarray(value, dtype=np.float64)
    expected = n * width * height * depth
    if arr.ndim != 1 or arr.size != expected:
        raise ShapeMismatchError(f"{what} length", expected, arr.shape)
    return arr.reshape(n, height, width, depth)


def volume_to_tensor3(vol: np.ndarray) -> Tensor3:
    """Convert a single-sample `(1, H, W, D)` volume to a Tensor3."""
    _, h, w, d = vol.shape
    return Tensor3(w, h, d, np.ascontiguousarray(vol, dtype=np.float64).reshape(-1))


def volume_to_flat(vol: np.ndarray) -> np.ndarray:
    """Convert an `(N, H, W, D)` volume to a flat, sample-major vector."""
    return np.ascontiguousarray(vol, dtype=np.float64).reshape(-1)


def accumulator_buffer(into: Any, *, size: int, what: str) -> np.ndarray:
    """
    Return the flat float64 buffer behind a gradient accumulator.

    Parameters
    ----------
    into : Tensor3 or np.ndarray
        Caller-owned accumulator. Tensor3 accumulators are unwrapped to their
        `data` buffer; NumPy arrays must already be contiguous float64 so
        in-place addition reaches the caller's memory.
    size : int
        Number of elements the accumulator must hold.
    what : str
        Operand name used in error messages.

    Raises
    ------
    ShapeMismatchError
        If the accumulator does not hold exactly `size` elements.
    TypeError
        If the accumulator cannot be updated in place.
    """
    buf = into.data if isinstance(into, Tensor3) else into
    if (
        not isinstance(buf, np.ndarray)
        or buf.dtype != np.float64
        or not buf.flags["C_CONTIGUOUS"]
    ):
        raise TypeError(
            f"{what} must be a Tensor3 or a contiguous float64 np.ndarray, "
            f"got {type(into).__name__}"
        )
    if buf.size != size:
        raise ShapeMismatchError(what, size, buf.size)
    return buf.reshape(-1)


def add_into(buf: Optional[np.ndarray], grad_vol: np.ndarray) -> None:
    """Add a routed gradient volume into a flat accumulator buffer, if any."""
    if buf is not None:
        buf += grad_vol.reshape(-1)
