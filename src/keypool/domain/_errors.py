"""
Shape-, index-, and persistence-related exceptions for KeyPool.

This module defines the error taxonomy used across the pooling stack. Every
error is raised synchronously, before any output buffer is produced, so a
failing call never leaves partial results behind.

None of these errors are transient: they always indicate a caller bug
(mismatched shapes, out-of-range coordinates) or a corrupt persisted
configuration, and retrying the same call will fail the same way.
"""

from __future__ import annotations

from typing import Any, Tuple


class ShapeMismatchError(ValueError):
    """
    Raised when a tensor's dimensions disagree with the shape a layer expects.

    This covers inputs, incoming gradients, R-direction tensors, flat batch
    vectors, and gradient accumulators.

    Attributes
    ----------
    what : str
        Short description of the offending operand (e.g., "input", "upstream").
    expected : Any
        The shape (or length) the layer was configured for.
    actual : Any
        The shape (or length) actually received.
    """

    def __init__(self, what: str, expected: Any, actual: Any) -> None:
        """
        Initialize the ShapeMismatchError.

        Parameters
        ----------
        what : str
            Name of the operand whose shape is wrong.
        expected : Any
            Expected shape or length.
        actual : Any
            Received shape or length.
        """
        super().__init__(f"{what} shape mismatch: expected {expected}, got {actual}.")
        self.what = what
        self.expected = expected
        self.actual = actual


class Tensor3IndexError(IndexError):
    """
    Raised when a Tensor3 is addressed outside of its bounds.

    Attributes
    ----------
    coords : tuple[int, int, int]
        The requested (x, y, z) coordinates.
    shape : tuple[int, int, int]
        The tensor's (width, height, depth).
    """

    def __init__(self, coords: Tuple[int, int, int], shape: Tuple[int, int, int]) -> None:
        super().__init__(
            f"Coordinates {coords} out of range for Tensor3 of shape "
            f"(width, height, depth)={shape}."
        )
        self.coords = coords
        self.shape = shape


class DeserializationError(ValueError):
    """
    Raised when a persisted layer configuration cannot be decoded.

    Typical causes are truncated bytes, invalid JSON, missing or non-positive
    fields, an unknown type tag, or an unsupported checkpoint format.
    """
