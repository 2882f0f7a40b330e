import unittest

import numpy as np

from src.keypool.domain._errors import ShapeMismatchError
from src.keypool.infrastructure.tensor._tensor3 import Tensor3
from src.keypool.infrastructure.pooling._max_pooling_layer import MaxPoolingLayer
from src.keypool.infrastructure.pooling._max_pooling_results import (
    BatchedMaxPoolingResult,
    BatchedMaxPoolingRResult,
)


class TestMaxPoolingBatch(unittest.TestCase):
    """
    Batched pooling must behave exactly like pooling each sample on its own
    and concatenating the results.
    """

    def setUp(self) -> None:
        self.layer = MaxPoolingLayer(
            x_span=5, y_span=4, input_width=17, input_height=19, input_depth=3
        )
        self.rng = np.random.default_rng(0)

    def _samples(self, n: int) -> np.ndarray:
        return self.rng.standard_normal(n * self.layer.input_size)

    def _split(self, flat: np.ndarray, size: int, n: int):
        return [flat[i * size : (i + 1) * size] for i in range(n)]

    def test_batch_output_is_bitwise_concatenation(self):
        w, h, d = self.layer.input_shape
        for n in (1, 2, 3, 5):
            with self.subTest(n=n):
                flat = self._samples(n)
                result = self.layer.apply_batch(flat, n)

                self.assertIsInstance(result, BatchedMaxPoolingResult)
                self.assertEqual(result.batch_size, n)
                expected = np.concatenate(
                    [
                        self.layer.forward(Tensor3(w, h, d, s)).data
                        for s in self._split(flat, self.layer.input_size, n)
                    ]
                )
                self.assertEqual(result.output.shape, (n * self.layer.output_size,))
                self.assertTrue(np.array_equal(result.output, expected))

    def test_batch_gradient_is_per_sample(self):
        n = 3
        w, h, d = self.layer.input_shape
        flat = self._samples(n)
        upstream = self.rng.standard_normal(n * self.layer.output_size)

        grad = self.layer.apply_batch(flat, n).propagate_gradient(upstream)

        samples = self._split(flat, self.layer.input_size, n)
        ups = self._split(upstream, self.layer.output_size, n)
        expected = np.concatenate(
            [
                self.layer.apply(Tensor3(w, h, d, s))
                .propagate_gradient(u)
                .data
                for s, u in zip(samples, ups)
            ]
        )
        self.assertTrue(np.array_equal(grad, expected))

    def test_batch_gradient_accumulates(self):
        n = 2
        flat = self._samples(n)
        upstream = np.ones(n * self.layer.output_size)
        acc = np.zeros(n * self.layer.input_size)

        result = self.layer.apply_batch(flat, n)
        out = result.propagate_gradient(upstream, accumulate_into=acc)

        self.assertIs(out, acc)
        self.assertEqual(float(acc.sum()), float(n * self.layer.output_size))
        # Every sample receives exactly its own windows' worth of gradient.
        for s in self._split(acc, self.layer.input_size, n):
            self.assertEqual(float(s.sum()), float(self.layer.output_size))

    def test_batch_r_matches_per_sample(self):
        n = 3
        w, h, d = self.layer.input_shape
        flat = self._samples(n)
        r_flat = self._samples(n)

        result = self.layer.apply_batch_r(flat, r_flat, n)

        self.assertIsInstance(result, BatchedMaxPoolingRResult)
        outs, r_outs = [], []
        for s, r in zip(
            self._split(flat, self.layer.input_size, n),
            self._split(r_flat, self.layer.input_size, n),
        ):
            single = self.layer.apply_r(Tensor3(w, h, d, s), Tensor3(w, h, d, r))
            outs.append(single.output.data)
            r_outs.append(single.r_output.data)
        self.assertTrue(np.array_equal(result.output, np.concatenate(outs)))
        self.assertTrue(np.array_equal(result.r_output, np.concatenate(r_outs)))

    def test_batch_r_gradient_matches_batch_gradient_routing(self):
        n = 2
        flat = self._samples(n)
        r_flat = self._samples(n)
        upstream = self.rng.standard_normal(n * self.layer.output_size)
        upstream_r = self.rng.standard_normal(n * self.layer.output_size)

        result = self.layer.apply_batch_r(flat, r_flat, n)
        grad, r_grad = result.propagate_r_gradient(upstream, upstream_r)

        self.assertTrue(np.array_equal(grad, result.propagate_gradient(upstream)))
        self.assertTrue(np.array_equal(r_grad, result.propagate_gradient(upstream_r)))

    def test_batch_r_finite_difference(self):
        n = 3
        flat = self._samples(n)
        r_flat = self._samples(n)
        eps = 1e-7

        result = self.layer.apply_batch_r(flat, r_flat, n)
        plus = self.layer.apply_batch(flat + eps * r_flat, n).output
        minus = self.layer.apply_batch(flat - eps * r_flat, n).output

        self.assertTrue(
            np.allclose(result.r_output, (plus - minus) / (2 * eps), atol=1e-6)
        )

    def test_batch_accepts_python_list(self):
        flat = self._samples(1)
        result = self.layer.apply_batch(flat.tolist(), 1)
        self.assertTrue(np.array_equal(result.output, self.layer.apply_batch(flat, 1).output))

    def test_wrong_batch_length_raises(self):
        flat = self._samples(2)
        with self.assertRaises(ShapeMismatchError):
            self.layer.apply_batch(flat, 3)
        with self.assertRaises(ShapeMismatchError):
            self.layer.apply_batch(flat[:-1], 2)
        with self.assertRaises(ShapeMismatchError):
            self.layer.apply_batch_r(flat, flat[:-1], 2)

    def test_batch_upstream_length_mismatch_raises(self):
        result = self.layer.apply_batch(self._samples(2), 2)
        with self.assertRaises(ShapeMismatchError):
            result.propagate_gradient(np.zeros(self.layer.output_size))

    def test_invalid_batch_size_raises(self):
        with self.assertRaises(ValueError):
            self.layer.apply_batch(np.zeros(0), 0)
        with self.assertRaises(TypeError):
            self.layer.apply_batch(self._samples(2), 2.0)


if __name__ == "__main__":
    unittest.main()
