"""
Tensor3 interface definitions.

This module defines the domain-level interface for dense 3-D, channels-last
tensors using structural typing. Any object exposing the dimensions, a flat
data buffer, and coordinate accessors can be pooled.

Layout
------
Cells are addressed by (x, y, z) with 0 <= x < width, 0 <= y < height,
0 <= z < depth. The linear offset into `data` is:

    z + x * depth + y * depth * width

i.e. depth varies fastest, then x, then y.
"""

from __future__ import annotations

from typing import Any, Protocol, Tuple, runtime_checkable


@runtime_checkable
class ITensor3(Protocol):
    """
    Dense 3-D tensor interface (width x height x depth).

    Notes
    -----
    - `data` is a flat, ordered buffer whose length is always
      `width * height * depth`.
    - Out-of-range coordinate access is a programming error and must raise
      an `IndexError`.
    """

    @property
    def width(self) -> int:
        """Number of columns (x extent)."""
        ...

    @property
    def height(self) -> int:
        """Number of rows (y extent)."""
        ...

    @property
    def depth(self) -> int:
        """Number of channels (z extent)."""
        ...

    @property
    def data(self) -> Any:
        """Flat backing buffer in depth-fastest, then x, then y order."""
        ...

    @property
    def shape(self) -> Tuple[int, int, int]:
        """
        Return the tensor dimensions.

        Returns
        -------
        tuple[int, int, int]
            (width, height, depth).
        """
        ...

    def get(self, x: int, y: int, z: int) -> float:
        """Read the value stored at (x, y, z)."""
        ...

    def set(self, x: int, y: int, z: int, value: float) -> None:
        """Write `value` at (x, y, z)."""
        ...
