from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

import numpy as np

from src.keypool.domain._errors import DeserializationError
from src.keypool.infrastructure.tensor._tensor3 import Tensor3
from src.keypool.infrastructure.pooling._max_pooling_layer import MaxPoolingLayer
from src.keypool.infrastructure.module._serialization_core import (
    CHECKPOINT_FORMAT,
    deserialize,
    get_deserializer,
    load_json,
    module_from_config,
    module_to_config,
    save_json,
)


def _fields(layer: MaxPoolingLayer):
    return (
        layer.x_span,
        layer.y_span,
        layer.input_width,
        layer.input_height,
        layer.input_depth,
    )


class TestMaxPoolingSerialize(unittest.TestCase):
    def test_round_trip_preserves_configuration(self):
        layer = MaxPoolingLayer(3, 3, 10, 11, 2)
        encoded = layer.serialize()
        decoded = get_deserializer(layer.serializer_type())(encoded)

        self.assertIsInstance(decoded, MaxPoolingLayer)
        self.assertEqual(_fields(decoded), (3, 3, 10, 11, 2))

    def test_type_tag(self):
        self.assertEqual(MaxPoolingLayer(3, 3, 10, 11, 2).serializer_type(), "MaxPoolingLayer")

    def test_encoding_is_canonical(self):
        a = MaxPoolingLayer(4, 10, 30, 51, 2).serialize()
        b = MaxPoolingLayer.from_config(json.loads(a)).serialize()
        self.assertEqual(a, b)
        self.assertEqual(
            a,
            b'{"input_depth":2,"input_height":51,"input_width":30,"x_span":4,"y_span":10}',
        )

    def test_decoded_layer_pools_identically(self):
        layer = MaxPoolingLayer(2, 3, 7, 8, 3)
        decoded = deserialize("MaxPoolingLayer", layer.serialize())
        x = Tensor3(7, 8, 3, np.random.default_rng(0).standard_normal(7 * 8 * 3))
        self.assertEqual(layer.forward(x), decoded.forward(x))

    def test_truncated_bytes_raise(self):
        encoded = MaxPoolingLayer(3, 3, 10, 11, 2).serialize()
        with self.assertRaises(DeserializationError):
            deserialize("MaxPoolingLayer", encoded[:-5])

    def test_non_utf8_bytes_raise(self):
        with self.assertRaises(DeserializationError):
            deserialize("MaxPoolingLayer", b"\xff\xfe\x00")

    def test_deeply_nested_bytes_raise(self):
        with self.assertRaises(DeserializationError):
            deserialize("MaxPoolingLayer", b"[" * 100000)

    def test_missing_field_raises(self):
        with self.assertRaises(DeserializationError):
            deserialize("MaxPoolingLayer", b'{"x_span":3,"y_span":3}')

    def test_invalid_field_values_raise(self):
        for payload in [
            b'{"input_depth":2,"input_height":11,"input_width":10,"x_span":0,"y_span":3}',
            b'{"input_depth":2,"input_height":11,"input_width":10,"x_span":3.5,"y_span":3}',
            b'{"input_depth":true,"input_height":11,"input_width":10,"x_span":3,"y_span":3}',
            b"[3, 3, 10, 11, 2]",
        ]:
            with self.subTest(payload=payload):
                with self.assertRaises(DeserializationError):
                    deserialize("MaxPoolingLayer", payload)

    def test_unknown_type_tag_raises(self):
        with self.assertRaises(DeserializationError):
            get_deserializer("AvgPoolingLayer")


class TestModelSaveLoadJSON(unittest.TestCase):
    def test_config_tree_round_trip(self):
        layer = MaxPoolingLayer(5, 4, 17, 19, 3)
        node = module_to_config(layer)
        self.assertEqual(node["type"], "MaxPoolingLayer")
        self.assertEqual(node["children"], {})
        self.assertEqual(_fields(module_from_config(node)), (5, 4, 17, 19, 3))

    def test_save_load_json_round_trip(self):
        layer = MaxPoolingLayer(5, 4, 17, 19, 3)
        with tempfile.TemporaryDirectory() as td:
            ckpt = Path(td) / "nested" / "maxpool.json"
            save_json(layer, ckpt)

            payload = json.loads(ckpt.read_text(encoding="utf-8"))
            self.assertEqual(payload.get("format"), CHECKPOINT_FORMAT)
            self.assertEqual(payload["state"], {})
            self.assertIn("arch", payload)

            loaded = load_json(ckpt)
        self.assertEqual(_fields(loaded), _fields(layer))

    def test_unsupported_format_raises(self):
        with tempfile.TemporaryDirectory() as td:
            ckpt = Path(td) / "bad.json"
            ckpt.write_text(json.dumps({"format": "other.v0", "arch": {}}), encoding="utf-8")
            with self.assertRaises(DeserializationError):
                load_json(ckpt)

    def test_malformed_file_raises(self):
        with tempfile.TemporaryDirectory() as td:
            ckpt = Path(td) / "bad.json"
            ckpt.write_text("{not json", encoding="utf-8")
            with self.assertRaises(DeserializationError):
                load_json(ckpt)

    def test_non_utf8_file_raises(self):
        with tempfile.TemporaryDirectory() as td:
            ckpt = Path(td) / "bad.json"
            ckpt.write_bytes(b'{"format": "\xff\xfe"}')
            with self.assertRaises(DeserializationError):
                load_json(ckpt)

    def test_deeply_nested_file_raises(self):
        with tempfile.TemporaryDirectory() as td:
            ckpt = Path(td) / "deep.json"
            ckpt.write_bytes(b"[" * 100000)
            with self.assertRaises(DeserializationError):
                load_json(ckpt)

    def test_checkpoint_state_is_ignored_with_warning(self):
        layer = MaxPoolingLayer(2, 2, 4, 4, 1)
        with tempfile.TemporaryDirectory() as td:
            ckpt = Path(td) / "with_state.json"
            payload = {
                "format": CHECKPOINT_FORMAT,
                "arch": module_to_config(layer),
                "state": {"weight": {"b64": "", "dtype": "<f8", "shape": [0]}},
            }
            ckpt.write_text(json.dumps(payload), encoding="utf-8")
            with self.assertWarns(UserWarning):
                loaded = load_json(ckpt)
        self.assertEqual(_fields(loaded), (2, 2, 4, 4, 1))

    def test_children_on_leaf_layer_raise(self):
        node = module_to_config(MaxPoolingLayer(2, 2, 4, 4, 1))
        node["children"] = {"0": module_to_config(MaxPoolingLayer(1, 1, 2, 2, 1))}
        with self.assertRaises(DeserializationError):
            module_from_config(node)


if __name__ == "__main__":
    unittest.main()
