"""
KeyPool: differentiable max pooling for channels-last 3-D tensors.

Public API
----------
- `Tensor3`          : dense (width, height, depth) tensor with flat storage
- `MaxPoolingLayer`  : forward, backward, R-operator, and batched pooling
- `get_deserializer` / `deserialize` / `save_json` / `load_json`
- `ShapeMismatchError`, `Tensor3IndexError`, `DeserializationError`
"""

from .domain._errors import DeserializationError, ShapeMismatchError, Tensor3IndexError
from .infrastructure.tensor._tensor3 import Tensor3
from .infrastructure.pooling import (
    MaxPoolingLayer,
    MaxPoolingResult,
    MaxPoolingRResult,
    BatchedMaxPoolingResult,
    BatchedMaxPoolingRResult,
)
from .infrastructure.module._serialization_core import (
    deserialize,
    get_deserializer,
    load_json,
    module_from_config,
    module_to_config,
    save_json,
)

__all__ = [
    "DeserializationError",
    "ShapeMismatchError",
    "Tensor3IndexError",
    "Tensor3",
    "MaxPoolingLayer",
    "MaxPoolingResult",
    "MaxPoolingRResult",
    "BatchedMaxPoolingResult",
    "BatchedMaxPoolingRResult",
    "deserialize",
    "get_deserializer",
    "load_json",
    "module_from_config",
    "module_to_config",
    "save_json",
]
