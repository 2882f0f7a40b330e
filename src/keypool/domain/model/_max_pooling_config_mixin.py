"""
Configuration mixins for max pooling layers.

This module defines `MaxPoolingConfigMixin`, a lightweight mixin that provides
JSON-serializable configuration hooks for stateless max pooling layers.

The mixin standardizes how pooling layers expose and reconstruct their
hyperparameters (`x_span`, `y_span`, `input_width`, `input_height`,
`input_depth`), enabling consistent layer serialization, deserialization, and
reproducibility.

Design notes
------------
- Intended for stateless pooling layers whose behavior is fully determined
  by structural hyperparameters.
- Assumes the host class defines the five attributes or properties above.
- Uses plain Python ints to ensure JSON compatibility.
- Provides a `from_config` constructor to support layer loading and cloning.
"""

from typing import Any, Dict, Tuple

from typing_extensions import Self


CONFIG_FIELDS: Tuple[str, ...] = (
    "x_span",
    "y_span",
    "input_width",
    "input_height",
    "input_depth",
)


class MaxPoolingConfigMixin:
    """
    Mixin providing JSON serialization hooks for max pooling layers.

    This mixin assumes the host class exposes the following attributes
    or properties, and accepts them as keyword arguments in `__init__`:
    - x_span       : int
    - y_span       : int
    - input_width  : int
    - input_height : int
    - input_depth  : int
    """

    # ---------------------------------------------------------------------
    # JSON serialization
    # ---------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        """
        Return JSON-serializable configuration for this pooling layer.
        """
        return {name: int(getattr(self, name)) for name in CONFIG_FIELDS}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        """
        Reconstruct the pooling layer from a JSON configuration dict.
        """
        return cls(**{name: cfg[name] for name in CONFIG_FIELDS})
