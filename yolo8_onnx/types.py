from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Detection:
    """
    A single detection in original image pixel coordinates.

    `box` is (left, top, width, height). `confidence` is objectness times the
    winning class score. `keypoints` is empty unless a pose model produced it.
    """

    class_id: int
    confidence: float
    box: Tuple[float, float, float, float]
    keypoints: Tuple[Tuple[float, float], ...] = ()

    @property
    def left(self) -> float:
        return self.box[0]

    @property
    def top(self) -> float:
        return self.box[1]

    @property
    def width(self) -> float:
        return self.box[2]

    @property
    def height(self) -> float:
        return self.box[3]

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        left, top, width, height = self.box
        return left, top, left + width, top + height


@dataclass(frozen=True)
class ClassScore:
    class_id: int
    score: float
