from typing import Union

import numpy as np

from .errors import InvalidImage


def pack(image: np.ndarray, dtype: Union[np.dtype, type] = np.float32) -> np.ndarray:
    """
    HWC uint8 RGB -> contiguous (1, 3, H, W) tensor scaled to [0, 1].

    Only the division by 255 is applied; the exported models expect no mean/std.
    """

    if image.ndim != 3 or image.shape[2] != 3:
        raise InvalidImage(f"Expected (H, W, 3) image, got shape {image.shape}")

    blob = image.astype(np.float32) / 255.0
    blob = np.transpose(blob, (2, 0, 1))[None, ...]
    return np.ascontiguousarray(blob, dtype=dtype)
