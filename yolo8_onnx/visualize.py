from __future__ import annotations

import hashlib
import math
from typing import Dict, Iterable, Optional, Tuple

import cv2
import numpy as np

from .types import ClassScore, Detection


def color_for_class(class_id: int) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a class id, derived from a hash of the id.
    """

    digest = hashlib.md5(str(int(class_id)).encode("utf-8")).digest()
    return int(digest[0]), int(digest[1]), int(digest[2])


def _label(class_id: int, score: float, class_names: Optional[Dict[int, str]]) -> str:
    name = class_names.get(class_id, str(class_id)) if class_names else str(class_id)
    # floor so 0.999 is never shown as 1.00
    return f"{name} {math.floor(score * 100) / 100:.2f}"


def _check_image(image_bgr: np.ndarray) -> None:
    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")


def draw_detections(
    image_bgr: np.ndarray,
    detections: Iterable[Detection],
    *,
    class_names: Optional[Dict[int, str]] = None,
    box_thickness: int = 3,
    font_scale: float = 0.75,
    font_thickness: int = 2,
    keypoint_radius: int = 3,
) -> np.ndarray:
    """
    Draw boxes, `label score` strips and keypoints on a BGR image and return a copy.
    """

    _check_image(image_bgr)
    out = image_bgr.copy()
    h, w = out.shape[:2]

    for det in detections:
        x1, y1, x2, y2 = det.as_xyxy()
        x1i = int(np.clip(round(x1), 0, w - 1))
        y1i = int(np.clip(round(y1), 0, h - 1))
        x2i = int(np.clip(round(x2), 0, w - 1))
        y2i = int(np.clip(round(y2), 0, h - 1))

        color = color_for_class(det.class_id)
        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=box_thickness)

        label = _label(det.class_id, det.confidence, class_names)
        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Above the box if it fits, else inside.
        y_text_top = y1i - th - baseline
        if y_text_top < 0:
            y_text_top = y1i

        x_text_right = min(x1i + tw, w - 1)
        y_text_bottom = min(y_text_top + th + baseline, h - 1)

        cv2.rectangle(out, (x1i, y_text_top), (x_text_right, y_text_bottom), color, thickness=-1)
        cv2.putText(
            out,
            label,
            (x1i, min(y_text_top + th, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (0, 0, 0),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

        for kx, ky in det.keypoints:
            if 0 <= kx < w and 0 <= ky < h:
                cv2.circle(out, (int(kx), int(ky)), keypoint_radius, color, thickness=-1)

    return out


def draw_classification(
    image_bgr: np.ndarray,
    scores: Iterable[ClassScore],
    *,
    class_names: Optional[Dict[int, str]] = None,
    font_scale: float = 0.75,
    font_thickness: int = 2,
) -> np.ndarray:
    """
    Write the ranked class list in the top-left corner and return a copy.
    """

    _check_image(image_bgr)
    out = image_bgr.copy()

    y = 0
    for item in scores:
        label = _label(item.class_id, item.score, class_names)
        (_, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        y += th + baseline + 4
        cv2.putText(
            out,
            label,
            (8, y),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color_for_class(item.class_id),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
