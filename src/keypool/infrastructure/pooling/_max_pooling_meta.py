from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..ops.maxpool_cpu import _out_wh


@dataclass(frozen=True)
class MaxPoolingMeta:
    """
    Immutable configuration container for max pooling hyperparameters.

    Attributes
    ----------
    x_span, y_span : int
        Window width and height.
    input_width, input_height, input_depth : int
        Expected per-sample input shape.

    Notes
    -----
    This structure exists to:
    - keep pooling layers stateless and easy to inspect,
    - make the configuration safe to share across concurrent calls,
    - centralize the output-size arithmetic so every pass uses the same one.
    """

    x_span: int
    y_span: int
    input_width: int
    input_height: int
    input_depth: int

    @property
    def output_width(self) -> int:
        return _out_wh(self.input_width, self.input_height, self.x_span, self.y_span)[0]

    @property
    def output_height(self) -> int:
        return _out_wh(self.input_width, self.input_height, self.x_span, self.y_span)[1]

    @property
    def input_shape(self) -> Tuple[int, int, int]:
        return (self.input_width, self.input_height, self.input_depth)

    @property
    def output_shape(self) -> Tuple[int, int, int]:
        return (self.output_width, self.output_height, self.input_depth)

    @property
    def input_size(self) -> int:
        return self.input_width * self.input_height * self.input_depth

    @property
    def output_size(self) -> int:
        return self.output_width * self.output_height * self.input_depth
