from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from .errors import UnexpectedOutputShape
from .nms import NMSConfig, nms
from .types import ClassScore, Detection


@dataclass
class YoloPostConfig:
    """
    Decoder settings, normally derived from a `RunConfig`.
    """

    conf_threshold: float = 0.6
    iou_threshold: float = 0.5
    # None keeps every box that survives NMS.
    max_detections: Optional[int] = None
    # Pose rows carry num_keypoints * (x, y, visibility) after the class scores.
    num_keypoints: int = 0
    top_k: int = 5
    # Accept (1, D, N) exports by transposing them to (1, N, D).
    channels_first: bool = False


class YoloPostprocessor:
    """
    Turns raw YOLOv8 output tensors into detections in original image pixels.

    Supported layouts (single image):
    - detect:   (1, N, 5 + C)       [cx, cy, w, h, obj, class_scores...]
    - pose:     (1, N, 5 + C + 3K)  [cx, cy, w, h, obj, class_scores..., (x, y, v) * K]
    - classify: (1, C)              class scores

    Box coordinates are in letterboxed input space and are mapped back by dividing
    by the letterbox scale. No offset is subtracted: padding sits on the right and
    bottom only.
    """

    def __init__(self, cfg: YoloPostConfig):
        self.cfg = cfg

    def process(self, preds: np.ndarray, scale: float, task: str = "detect") -> list:
        if task == "classify":
            return self.process_classification(preds)
        if task == "pose":
            return self.process_pose(preds, scale)
        return self.process_detections(preds, scale)

    def process_detections(self, preds: np.ndarray, scale: float) -> List[Detection]:
        rows = self._rows(preds, min_dims=6)
        return self._decode(rows, scale, num_classes=rows.shape[1] - 5, num_keypoints=0)

    def process_pose(self, preds: np.ndarray, scale: float) -> List[Detection]:
        k = self.cfg.num_keypoints
        rows = self._rows(preds, min_dims=5 + 3 * k)
        return self._decode(rows, scale, num_classes=rows.shape[1] - 5 - 3 * k, num_keypoints=k)

    def process_classification(self, preds: np.ndarray) -> List[ClassScore]:
        p = self._as_array(preds)
        if p.ndim != 2:
            raise UnexpectedOutputShape(f"Expected (batch, classes) output, got shape {p.shape}")
        if p.shape[0] != 1:
            raise UnexpectedOutputShape(f"Batch > 1 is not supported (got shape {p.shape})")
        if p.shape[1] == 0:
            raise UnexpectedOutputShape("Classification output has no class scores")

        scores = p[0]
        order = np.argsort(-scores, kind="stable")[: self.cfg.top_k]
        return [ClassScore(class_id=int(i), score=float(scores[i])) for i in order]

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    @staticmethod
    def _as_array(preds) -> np.ndarray:
        try:
            return np.asarray(preds, dtype=np.float32)
        except (TypeError, ValueError) as exc:
            raise UnexpectedOutputShape(f"Output is not a numeric tensor: {exc}") from exc

    def _rows(self, preds: np.ndarray, min_dims: int) -> np.ndarray:
        p = self._as_array(preds)
        if p.ndim != 3:
            raise UnexpectedOutputShape(f"Expected (batch, candidates, values) output, got shape {p.shape}")
        if p.shape[0] != 1:
            raise UnexpectedOutputShape(f"Batch > 1 is not supported (got shape {p.shape})")

        rows = p[0]
        if self.cfg.channels_first and rows.shape[0] >= min_dims:
            rows = rows.T
        if rows.shape[1] < min_dims:
            raise UnexpectedOutputShape(
                f"Rows of width {rows.shape[1]} are too narrow; need at least {min_dims} values"
            )
        return rows

    def _decode(self, rows: np.ndarray, scale: float, num_classes: int, num_keypoints: int) -> List[Detection]:
        objectness = rows[:, 4]
        rows = rows[objectness >= self.cfg.conf_threshold]
        n = rows.shape[0]
        if n == 0:
            return []

        objectness = rows[:, 4]
        if num_classes > 0:
            class_scores = rows[:, 5 : 5 + num_classes]
            # argmax returns the first index on ties
            class_ids = np.argmax(class_scores, axis=1)
            scores = class_scores[np.arange(n), class_ids] * objectness
        else:
            class_ids = np.zeros(n, dtype=np.int64)
            scores = objectness.copy()

        boxes_ltwh = self._scale_boxes(rows[:, :4], scale)
        boxes_xyxy = boxes_ltwh.copy()
        boxes_xyxy[:, 2] += boxes_xyxy[:, 0]
        boxes_xyxy[:, 3] += boxes_xyxy[:, 1]

        keep = nms(
            boxes_xyxy,
            scores,
            NMSConfig(iou_threshold=self.cfg.iou_threshold, max_detections=self.cfg.max_detections),
        )
        logger.debug("decoded {} candidates, {} kept after NMS", n, len(keep))

        keypoints = None
        if num_keypoints > 0:
            start = 5 + num_classes
            kpts = rows[:, start : start + 3 * num_keypoints].reshape(n, num_keypoints, 3)
            keypoints = kpts[:, :, :2] / scale

        return [
            Detection(
                class_id=int(class_ids[i]),
                confidence=float(scores[i]),
                box=self._as_tuple(boxes_ltwh[i]),
                keypoints=() if keypoints is None else tuple((float(x), float(y)) for x, y in keypoints[i]),
            )
            for i in keep
        ]

    @staticmethod
    def _scale_boxes(boxes_cxcywh: np.ndarray, scale: float) -> np.ndarray:
        """
        cxcywh in letterbox space -> ltwh in original image space.
        """

        cx, cy, w, h = boxes_cxcywh.T
        left = cx - w / 2
        top = cy - h / 2
        return np.stack([left, top, w, h], axis=1) / scale

    @staticmethod
    def _as_tuple(box: np.ndarray) -> Tuple[float, float, float, float]:
        return float(box[0]), float(box[1]), float(box[2]), float(box[3])
