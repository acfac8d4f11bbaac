from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np

from .errors import InvalidImage


PAD_COLOR: Tuple[int, int, int] = (114, 114, 114)
CHANNEL_ORDERS = ("bgr", "rgb")


@dataclass(frozen=True)
class LetterboxResult:
    """
    image: RGB uint8 buffer of exactly the target size
    scale: uniform resize scale; the decoder divides by it to get back to source pixels
    resized: (width, height) of the unpadded region, anchored top-left
    pad: (right, bottom) padding in pixels
    """

    image: np.ndarray
    scale: float
    resized: Tuple[int, int]
    pad: Tuple[int, int]


def _to_rgb(image: np.ndarray, channel_order: str) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    channels = image.shape[2]
    if channels == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if channels == 3:
        if channel_order == "rgb":
            return image
        return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    if channels == 4:
        code = cv2.COLOR_RGBA2RGB if channel_order == "rgb" else cv2.COLOR_BGRA2RGB
        return cv2.cvtColor(image, code)
    raise InvalidImage(f"Unsupported channel count: {channels}")


def letterbox(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (640, 640),
    color: Tuple[int, int, int] = PAD_COLOR,
    channel_order: str = "bgr",
) -> LetterboxResult:
    """
    Resize keeping aspect ratio, then pad right/bottom up to `new_shape` (width, height).

    The image is converted to RGB. Padding is never applied on the left or top,
    so boxes map back to source pixels with a single division by `scale`.
    """

    if image is None or not hasattr(image, "shape"):
        raise InvalidImage("image must be a NumPy array")
    if image.ndim not in (2, 3) or image.size == 0:
        raise InvalidImage(f"Expected a non-empty (H, W[, C]) image, got shape {image.shape}")
    if image.dtype != np.uint8:
        raise InvalidImage(f"Expected 8-bit pixels, got {image.dtype}")
    channel_order = channel_order.lower()
    if channel_order not in CHANNEL_ORDERS:
        raise ValueError(f"channel_order must be one of {CHANNEL_ORDERS}, got {channel_order!r}")

    h, w = image.shape[:2]
    new_w, new_h = new_shape

    r = min(new_w / w, new_h / h)
    resized_w = min(new_w, max(1, int(round(w * r))))
    resized_h = min(new_h, max(1, int(round(h * r))))

    rgb = _to_rgb(image, channel_order)
    if (w, h) != (resized_w, resized_h):
        interpolation = cv2.INTER_AREA if r < 1.0 else cv2.INTER_LINEAR
        rgb = cv2.resize(rgb, (resized_w, resized_h), interpolation=interpolation)

    right, bottom = new_w - resized_w, new_h - resized_h
    padded = cv2.copyMakeBorder(rgb, 0, bottom, 0, right, cv2.BORDER_CONSTANT, value=color)

    return LetterboxResult(image=padded, scale=r, resized=(resized_w, resized_h), pad=(right, bottom))
