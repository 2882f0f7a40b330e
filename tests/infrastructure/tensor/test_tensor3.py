import unittest

import numpy as np

from src.keypool.domain._errors import ShapeMismatchError, Tensor3IndexError
from src.keypool.domain._tensor3 import ITensor3
from src.keypool.infrastructure.tensor._tensor3 import Tensor3


class TestTensor3(unittest.TestCase):
    def test_zero_initialized(self):
        t = Tensor3.zeros(4, 3, 2)
        self.assertEqual(t.shape, (4, 3, 2))
        self.assertEqual(t.size, 24)
        self.assertEqual(t.data.dtype, np.float64)
        self.assertTrue(np.array_equal(t.data, np.zeros(24)))

    def test_linear_index_is_depth_then_x_then_y(self):
        t = Tensor3(4, 3, 2)
        self.assertEqual(t.index(0, 0, 0), 0)
        self.assertEqual(t.index(0, 0, 1), 1)
        self.assertEqual(t.index(1, 0, 0), 2)
        self.assertEqual(t.index(0, 1, 0), 8)
        self.assertEqual(t.index(3, 2, 1), 1 + 3 * 2 + 2 * 2 * 4)

    def test_set_and_get(self):
        t = Tensor3(4, 3, 2)
        t.set(2, 1, 1, 3.5)
        self.assertEqual(t.get(2, 1, 1), 3.5)
        self.assertEqual(t.data[1 + 2 * 2 + 1 * 8], 3.5)

    def test_wraps_existing_float64_buffer(self):
        buf = np.arange(24, dtype=np.float64)
        t = Tensor3(4, 3, 2, buf)
        t.set(0, 0, 0, -1.0)
        self.assertEqual(buf[0], -1.0)

    def test_converts_sequences(self):
        t = Tensor3(2, 1, 1, [1, 2])
        self.assertEqual(t.data.dtype, np.float64)
        self.assertEqual(t.get(1, 0, 0), 2.0)

    def test_wrong_data_length_raises(self):
        with self.assertRaises(ShapeMismatchError):
            Tensor3(4, 3, 2, np.zeros(23))

    def test_multidimensional_data_raises(self):
        with self.assertRaises(ShapeMismatchError):
            Tensor3(2, 3, 1, np.zeros((3, 2)))
        with self.assertRaises(ShapeMismatchError):
            Tensor3(2, 3, 1, [[0.0, 1.0], [2.0, 3.0], [4.0, 5.0]])

    def test_invalid_dimensions_raise(self):
        with self.assertRaises(ValueError):
            Tensor3(0, 3, 2)
        with self.assertRaises(TypeError):
            Tensor3(2.5, 3, 2)

    def test_out_of_range_access_raises_index_error(self):
        t = Tensor3(4, 3, 2)
        for coords in [(4, 0, 0), (0, 3, 0), (0, 0, 2), (-1, 0, 0)]:
            with self.subTest(coords=coords):
                with self.assertRaises(Tensor3IndexError):
                    t.get(*coords)
                with self.assertRaises(IndexError):
                    t.set(*coords, 1.0)

    def test_volume_view_matches_coordinates(self):
        t = Tensor3(4, 3, 2, np.arange(24, dtype=np.float64))
        vol = t.to_volume()
        self.assertEqual(vol.shape, (3, 4, 2))
        for y in range(3):
            for x in range(4):
                for z in range(2):
                    self.assertEqual(vol[y, x, z], t.get(x, y, z))

    def test_from_volume_round_trip(self):
        vol = np.random.default_rng(0).standard_normal((3, 4, 2))
        t = Tensor3.from_volume(vol)
        self.assertEqual(t.shape, (4, 3, 2))
        self.assertTrue(np.array_equal(t.to_volume(), vol))
        with self.assertRaises(ShapeMismatchError):
            Tensor3.from_volume(np.zeros((3, 4)))

    def test_copy_is_independent_and_equal(self):
        t = Tensor3(2, 2, 1, [1.0, 2.0, 3.0, 4.0])
        c = t.copy()
        self.assertEqual(c, t)
        c.set(0, 0, 0, 9.0)
        self.assertNotEqual(c, t)
        self.assertEqual(t.get(0, 0, 0), 1.0)

    def test_satisfies_protocol(self):
        self.assertIsInstance(Tensor3(1, 1, 1), ITensor3)

    def test_repr(self):
        self.assertEqual(repr(Tensor3(4, 3, 2)), "Tensor3(width=4, height=3, depth=2)")


if __name__ == "__main__":
    unittest.main()
