"""
NumPy-backed dense 3-D tensor (channels-last).

`Tensor3` stores its cells in a flat `np.float64` buffer using the
depth-fastest layout shared by the whole pooling stack:

    offset(x, y, z) = z + x * depth + y * depth * width

The flat buffer can be viewed as a `(height, width, depth)` array without
copying, which is what the CPU kernels in `ops.maxpool_cpu` operate on.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ...domain._errors import ShapeMismatchError, Tensor3IndexError
from ...domain._tensor3 import ITensor3


def _check_dim(name: str, v: int) -> int:
    """Validate a single tensor dimension and return it as a Python int."""
    if isinstance(v, bool) or not isinstance(v, (int, np.integer)):
        raise TypeError(f"{name} must be an int, got {type(v).__name__}")
    if v <= 0:
        raise ValueError(f"{name} must be positive, got {v}")
    return int(v)


class Tensor3(ITensor3):
    """
    Dense 3-D tensor addressed by (x, y, z).

    Attributes
    ----------
    width, height, depth : int
        Tensor dimensions.
    data : np.ndarray
        Flat float64 buffer of length `width * height * depth`.

    Notes
    -----
    - A Tensor3 is owned by whichever computation currently holds it; it is
      not safe to mutate one instance from several threads at once.
    - Coordinate access outside the bounds raises `Tensor3IndexError`.
    """

    def __init__(
        self,
        width: int,
        height: int,
        depth: int,
        data: Optional[Union[Sequence[float], np.ndarray]] = None,
    ) -> None:
        """
        Create a tensor, zero-filled or wrapping existing data.

        Parameters
        ----------
        width, height, depth : int
            Positive tensor dimensions.
        data : sequence of float or np.ndarray, optional
            Flat data in (z, x, y) fastest-to-slowest order. A float64,
            one-dimensional array is wrapped without copying; other flat inputs
            are converted. If omitted, the tensor is zero-initialized.

        Raises
        ------
        ShapeMismatchError
            If `data` is not one-dimensional or does not hold exactly
            `width * height * depth` values. Use `from_volume` for
            `(height, width, depth)` arrays.
        """
        self._width = _check_dim("width", width)
        self._height = _check_dim("height", height)
        self._depth = _check_dim("depth", depth)
        size = self._width * self._height * self._depth

        if data is None:
            self._data = np.zeros(size, dtype=np.float64)
            return

        arr = np.asarray(data, dtype=np.float64)
        if arr.ndim != 1:
            raise ShapeMismatchError("data rank", 1, arr.ndim)
        if arr.size != size:
            raise ShapeMismatchError("data length", size, int(arr.size))
        self._data = arr

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------
    @classmethod
    def zeros(cls, width: int, height: int, depth: int) -> "Tensor3":
        """Return a zero-filled tensor of the given dimensions."""
        return cls(width, height, depth)

    @classmethod
    def from_volume(cls, volume: np.ndarray) -> "Tensor3":
        """
        Build a tensor from a `(height, width, depth)` array.

        The array is flattened in C order, which matches the Tensor3 layout.
        """
        vol = np.asarray(volume, dtype=np.float64)
        if vol.ndim != 3:
            raise ShapeMismatchError("volume rank", 3, vol.ndim)
        h, w, d = vol.shape
        return cls(w, h, d, np.ascontiguousarray(vol).reshape(-1))

    # ------------------------------------------------------------------
    # Shape
    # ------------------------------------------------------------------
    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self._width, self._height, self._depth)

    @property
    def size(self) -> int:
        return int(self._data.size)

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------
    def index(self, x: int, y: int, z: int) -> int:
        """
        Return the linear offset of (x, y, z) into `data`.

        Raises
        ------
        Tensor3IndexError
            If any coordinate is outside the tensor bounds.
        """
        if not (
            0 <= x < self._width and 0 <= y < self._height and 0 <= z < self._depth
        ):
            raise Tensor3IndexError((x, y, z), self.shape)
        return z + x * self._depth + y * self._depth * self._width

    def get(self, x: int, y: int, z: int) -> float:
        return float(self._data[self.index(x, y, z)])

    def set(self, x: int, y: int, z: int, value: float) -> None:
        self._data[self.index(x, y, z)] = value

    # ------------------------------------------------------------------
    # Views and copies
    # ------------------------------------------------------------------
    def to_volume(self) -> np.ndarray:
        """
        Return a `(height, width, depth)` view of the flat buffer.

        Writes through the view modify this tensor.
        """
        return self._data.reshape(self._height, self._width, self._depth)

    def copy(self) -> "Tensor3":
        return Tensor3(self._width, self._height, self._depth, self._data.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tensor3):
            return NotImplemented
        return self.shape == other.shape and bool(np.array_equal(self._data, other._data))

    def __repr__(self) -> str:
        return (
            f"Tensor3(width={self._width}, height={self._height}, "
            f"depth={self._depth})"
        )
