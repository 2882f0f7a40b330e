from ._max_pooling_layer import MaxPoolingLayer
from ._max_pooling_meta import MaxPoolingMeta
from ._max_pooling_results import (
    MaxPoolingResult,
    MaxPoolingRResult,
    BatchedMaxPoolingResult,
    BatchedMaxPoolingRResult,
)

__all__ = [
    MaxPoolingLayer.__name__,
    MaxPoolingMeta.__name__,
    MaxPoolingResult.__name__,
    MaxPoolingRResult.__name__,
    BatchedMaxPoolingResult.__name__,
    BatchedMaxPoolingRResult.__name__,
]
