from __future__ import annotations

import json
import warnings
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Type

from ...domain._errors import DeserializationError

CHECKPOINT_FORMAT = "keypool.json.ckpt.v1"

_MODULE_REGISTRY: dict[str, Type[Any]] = {}


def register_module(name: Optional[str] = None) -> Callable[[Type[Any]], Type[Any]]:
    """
    Decorator to register a layer class for deserialization.

    The registry key doubles as the layer's serializer type tag.
    """

    def deco(cls: Type[Any]) -> Type[Any]:
        key = name or cls.__name__
        _MODULE_REGISTRY[key] = cls
        cls._serializer_type = key
        return cls

    return deco


def _lookup(type_name: str) -> Type[Any]:
    if type_name not in _MODULE_REGISTRY:
        raise DeserializationError(
            f"Unknown module type '{type_name}'. " f"Register it via @register_module."
        )
    return _MODULE_REGISTRY[type_name]


def _build(cls: Type[Any], cfg: Any) -> Any:
    """Instantiate `cls` from a config dict, mapping failures to DeserializationError."""
    if not isinstance(cfg, dict):
        raise DeserializationError(
            f"Config for '{cls.__name__}' must be an object, got {type(cfg).__name__}."
        )
    try:
        return cls.from_config(cfg)
    except KeyError as e:
        raise DeserializationError(
            f"Config for '{cls.__name__}' is missing field {e}."
        ) from e
    except (TypeError, ValueError) as e:
        raise DeserializationError(f"Invalid config for '{cls.__name__}': {e}") from e


# ---------------------------------------------------------------------------
# Byte-level serialization (configuration only)
# ---------------------------------------------------------------------------
def serialize_config(m: Any) -> bytes:
    """
    Encode a layer's configuration as canonical JSON bytes.

    Keys are sorted and separators are compact, so equal configurations
    always produce identical bytes.
    """
    return json.dumps(m.get_config(), sort_keys=True, separators=(",", ":")).encode(
        "utf-8"
    )


def get_deserializer(type_name: str) -> Callable[[bytes], Any]:
    """
    Return the decoder for layers registered under `type_name`.

    Raises
    ------
    DeserializationError
        If no layer is registered under `type_name`.
    """
    cls = _lookup(type_name)

    def deserialize_bytes(data: bytes) -> Any:
        try:
            cfg = json.loads(bytes(data).decode("utf-8"))
        except (
            UnicodeDecodeError,
            json.JSONDecodeError,
            RecursionError,
            TypeError,
        ) as e:
            raise DeserializationError(
                f"Malformed serialized '{type_name}': {e}"
            ) from e
        return _build(cls, cfg)

    return deserialize_bytes


def deserialize(type_name: str, data: bytes) -> Any:
    """Decode `data` into a layer of the kind registered under `type_name`."""
    return get_deserializer(type_name)(data)


# ---------------------------------------------------------------------------
# Configuration trees and JSON checkpoints
# ---------------------------------------------------------------------------
def module_to_config(m: Any) -> dict[str, Any]:
    """
    Convert a layer into a JSON-serializable configuration tree.

    Node format
    -----------
    {
      "type": "MaxPoolingLayer",
      "config": {...},
      "children": {}
    }

    Pooling layers are leaves, so `children` is always empty; the key keeps
    the node layout of nested configuration trees.
    """
    type_name = getattr(m, "_serializer_type", m.__class__.__name__)

    get_cfg = getattr(m, "get_config", None)
    cfg = get_cfg() if callable(get_cfg) else {}

    return {"type": type_name, "config": cfg, "children": {}}


def module_from_config(node: Dict[str, Any]) -> Any:
    """
    Rebuild a layer from a configuration tree.
    """
    if not isinstance(node, dict) or "type" not in node:
        raise DeserializationError("Config node must be an object with a 'type' key.")

    type_name = str(node["type"])
    cls = _lookup(type_name)
    m = _build(cls, node.get("config", {}) or {})

    if node.get("children"):
        raise DeserializationError(f"Layer '{type_name}' cannot accept children.")

    return m


def save_json(m: Any, path: str | Path) -> None:
    """
    Save a layer's architecture into a single JSON checkpoint file.

    Format
    ------
    {
      "format": "keypool.json.ckpt.v1",
      "arch": {...},
      "state": {}
    }

    Notes
    -----
    Pooling layers own no parameters, so `state` is always empty; the key is
    kept so checkpoints share one layout with parameterized layers.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)

    payload = {
        "format": CHECKPOINT_FORMAT,
        "arch": module_to_config(m),
        "state": {},
    }

    p.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


def load_json(path: str | Path) -> Any:
    """
    Load a layer from a JSON checkpoint created by `save_json()`.

    Raises
    ------
    DeserializationError
        If the file is not valid UTF-8 JSON or the checkpoint format is
        unsupported.
    """
    p = Path(path)
    try:
        payload = json.loads(p.read_text(encoding="utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError, RecursionError) as e:
        raise DeserializationError(f"Malformed checkpoint '{p}': {e}") from e

    fmt = payload.get("format") if isinstance(payload, dict) else None
    if fmt != CHECKPOINT_FORMAT:
        raise DeserializationError(f"Unsupported checkpoint format: {fmt!r}")

    if payload.get("state"):
        warnings.warn(
            f"Checkpoint '{p}' carries parameter state, but the stored layers "
            "own no parameters; the state is ignored.",
            UserWarning,
            stacklevel=2,
        )

    return module_from_config(payload.get("arch"))
