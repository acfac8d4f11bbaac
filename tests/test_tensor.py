import unittest

import numpy as np

from yolo8_onnx.errors import InvalidImage
from yolo8_onnx.tensor import pack


class TestPack(unittest.TestCase):
    def test_extremes_map_to_zero_and_one(self) -> None:
        img = np.zeros((4, 6, 3), dtype=np.uint8)
        img[:, 3:] = 255
        blob = pack(img)
        self.assertEqual(blob.shape, (1, 3, 4, 6))
        self.assertEqual(blob.dtype, np.float32)
        self.assertTrue(np.all(blob[..., :3] == 0.0))
        self.assertTrue(np.all(blob[..., 3:] == 1.0))

    def test_values_stay_in_unit_range(self) -> None:
        img = np.arange(256, dtype=np.uint8).reshape(16, 16, 1).repeat(3, axis=2)
        blob = pack(img)
        self.assertGreaterEqual(float(blob.min()), 0.0)
        self.assertLessEqual(float(blob.max()), 1.0)
        self.assertAlmostEqual(float(blob[0, 0, 0, 1]), 1.0 / 255.0, places=6)

    def test_layout_is_planar(self) -> None:
        img = np.zeros((2, 2, 3), dtype=np.uint8)
        img[..., 0] = 255  # R plane
        img[..., 2] = 51  # B plane
        blob = pack(img)
        self.assertTrue(np.all(blob[0, 0] == 1.0))
        self.assertTrue(np.all(blob[0, 1] == 0.0))
        self.assertTrue(np.allclose(blob[0, 2], 0.2))
        self.assertTrue(blob.flags["C_CONTIGUOUS"])

    def test_half_precision(self) -> None:
        img = np.full((2, 2, 3), 255, dtype=np.uint8)
        blob = pack(img, dtype=np.float16)
        self.assertEqual(blob.dtype, np.float16)
        self.assertTrue(np.all(blob == 1.0))

    def test_rejects_non_rgb_buffer(self) -> None:
        with self.assertRaises(InvalidImage):
            pack(np.zeros((4, 4), dtype=np.uint8))


if __name__ == "__main__":
    unittest.main()
