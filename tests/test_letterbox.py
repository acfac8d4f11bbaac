import unittest

import numpy as np

from yolo8_onnx.errors import InvalidImage
from yolo8_onnx.letterbox import letterbox


class TestLetterbox(unittest.TestCase):
    def test_same_size_has_unit_scale_and_no_padding(self) -> None:
        img = np.zeros((640, 640, 3), dtype=np.uint8)
        img[..., 0] = 10  # B
        img[..., 1] = 20  # G
        img[..., 2] = 30  # R
        res = letterbox(img, new_shape=(640, 640))
        self.assertEqual(res.scale, 1.0)
        self.assertEqual(res.resized, (640, 640))
        self.assertEqual(res.pad, (0, 0))
        self.assertEqual(res.image.shape, (640, 640, 3))
        # converted to RGB
        self.assertTrue(np.array_equal(res.image[0, 0], np.array([30, 20, 10], dtype=np.uint8)))

    def test_wide_image_pads_bottom_only(self) -> None:
        img = np.full((720, 1280, 3), 200, dtype=np.uint8)
        res = letterbox(img, new_shape=(640, 640))
        self.assertAlmostEqual(res.scale, 0.5)
        self.assertEqual(res.resized, (640, 360))
        self.assertEqual(res.pad, (0, 280))
        self.assertEqual(res.image.shape, (640, 640, 3))
        self.assertTrue(np.all(res.image[:360, :, :] == 200))
        self.assertTrue(np.all(res.image[360:, :, :] == 114))

    def test_tall_image_pads_right_only(self) -> None:
        img = np.full((640, 320, 3), 50, dtype=np.uint8)
        res = letterbox(img, new_shape=(640, 640))
        self.assertEqual(res.scale, 1.0)
        self.assertEqual(res.pad, (320, 0))
        self.assertTrue(np.all(res.image[:, :320] == 50))
        self.assertTrue(np.all(res.image[:, 320:] == 114))

    def test_non_square_target_uses_width_height_order(self) -> None:
        img = np.zeros((640, 640, 3), dtype=np.uint8)
        res = letterbox(img, new_shape=(320, 640))
        self.assertAlmostEqual(res.scale, 0.5)
        self.assertEqual(res.resized, (320, 320))
        self.assertEqual(res.pad, (0, 320))
        self.assertEqual(res.image.shape, (640, 320, 3))

    def test_small_image_is_enlarged(self) -> None:
        img = np.zeros((16, 32, 3), dtype=np.uint8)
        res = letterbox(img, new_shape=(640, 640))
        self.assertAlmostEqual(res.scale, 20.0)
        self.assertEqual(res.resized, (640, 320))
        self.assertEqual(res.pad, (0, 320))

    def test_output_never_exceeds_target_and_keeps_aspect(self) -> None:
        for h, w in [(100, 300), (333, 517), (1080, 1920), (1, 999), (479, 641), (2000, 7)]:
            img = np.zeros((h, w, 3), dtype=np.uint8)
            res = letterbox(img, new_shape=(640, 480))
            self.assertEqual(res.image.shape, (480, 640, 3))
            rw, rh = res.resized
            self.assertLessEqual(rw, 640)
            self.assertLessEqual(rh, 480)
            self.assertEqual(rw + res.pad[0], 640)
            self.assertEqual(rh + res.pad[1], 480)
            # one pixel of rounding on either side
            self.assertLessEqual(abs(rw - w * res.scale), 1.0)
            self.assertLessEqual(abs(rh - h * res.scale), 1.0)

    def test_custom_pad_color(self) -> None:
        img = np.zeros((100, 200, 3), dtype=np.uint8)
        res = letterbox(img, new_shape=(200, 200), color=(1, 2, 3))
        self.assertTrue(np.array_equal(res.image[150, 10], np.array([1, 2, 3], dtype=np.uint8)))

    def test_grayscale_and_bgra_become_rgb(self) -> None:
        gray = np.full((50, 50), 7, dtype=np.uint8)
        self.assertEqual(letterbox(gray, new_shape=(64, 64)).image.shape, (64, 64, 3))
        bgra = np.zeros((50, 50, 4), dtype=np.uint8)
        self.assertEqual(letterbox(bgra, new_shape=(64, 64)).image.shape, (64, 64, 3))

    def test_channel_order_is_case_insensitive(self) -> None:
        img = np.zeros((10, 10, 3), dtype=np.uint8)
        img[:, :, 0] = 9
        res = letterbox(img, new_shape=(10, 10), channel_order="RGB")
        self.assertEqual(res.image[0, 0].tolist(), [9, 0, 0])
        res = letterbox(img, new_shape=(10, 10), channel_order="BGR")
        self.assertEqual(res.image[0, 0].tolist(), [0, 0, 9])

    def test_unknown_channel_order_rejected(self) -> None:
        with self.assertRaises(ValueError):
            letterbox(np.zeros((10, 10, 3), dtype=np.uint8), channel_order="yuv")

    def test_invalid_images_rejected(self) -> None:
        with self.assertRaises(InvalidImage):
            letterbox(None)
        with self.assertRaises(InvalidImage):
            letterbox(np.zeros((0, 0, 3), dtype=np.uint8))
        with self.assertRaises(InvalidImage):
            letterbox(np.zeros((10, 10, 3), dtype=np.float32))
        with self.assertRaises(InvalidImage):
            letterbox(np.zeros((10, 10, 2), dtype=np.uint8))


if __name__ == "__main__":
    unittest.main()
