"""
Infrastructure layer base class.

This module provides a concrete `Layer` implementation that satisfies the
domain-level `ILayer` protocol. It implements the conveniences shared by
every KeyPool layer:

- `__call__` forwarding to `forward` for ergonomic invocation
- empty parameter traversal for stateless layers
- opt-in configuration and byte-serialization hooks
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Iterator

from ..domain._layer import ILayer
from .module._serialization_core import serialize_config


class Layer(ILayer):
    """
    Infrastructure base class for layers.

    Subclasses implement `forward` and, to participate in persistence,
    `get_config` / `from_config` plus a `@register_module` registration.
    """

    def forward(self, x):
        """
        Execute the forward computation of the layer.

        Subclasses must implement this.
        """
        raise NotImplementedError

    def __call__(self, x):
        """
        Call the layer as a function, delegating to `forward`.
        """
        return self.forward(x)

    def parameters(self) -> Iterable[Any]:
        """
        Return an iterable over this layer's trainable parameters.

        The base implementation owns none.
        """
        return iter(())

    def named_parameters(self, prefix: str = "") -> Iterator[tuple[str, Any]]:
        """
        Return an iterator over (name, parameter) pairs.
        """
        return iter(())

    # ------------------------------------------------------------------
    # Serialization hooks (opt-in contract)
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        """
        Return a JSON-serializable configuration for this layer.

        Raises
        ------
        NotImplementedError
            If the layer does not support serialization.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not implement get_config(). "
            "This layer cannot be serialized."
        )

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Layer":
        """
        Reconstruct a layer from a configuration dict.

        Raises
        ------
        NotImplementedError
            If the layer does not support deserialization.
        """
        raise NotImplementedError(
            f"{cls.__name__} does not implement from_config(). "
            "This layer cannot be deserialized."
        )

    def serializer_type(self) -> str:
        """
        Return the type tag used to pick a deserializer on load.
        """
        return getattr(self, "_serializer_type", self.__class__.__name__)

    def serialize(self) -> bytes:
        """
        Encode this layer's configuration as canonical bytes.
        """
        return serialize_config(self)
