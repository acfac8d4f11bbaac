from __future__ import annotations

import json
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np


PathLike = Union[str, Path]


class ModelType(IntEnum):
    # float32 models
    DETECT = 1
    POSE = 2
    CLASSIFY = 3
    # float16 models
    DETECT_HALF = 4
    POSE_HALF = 5
    CLASSIFY_HALF = 6

    @property
    def task(self) -> str:
        return _TASKS[self]

    @property
    def is_half(self) -> bool:
        return self.value >= ModelType.DETECT_HALF.value

    @classmethod
    def from_task(cls, task: str, half: bool = False) -> "ModelType":
        key = task.strip().lower()
        if key not in _BY_TASK:
            raise ValueError(f"Unknown task {task!r}; expected one of {sorted(_BY_TASK)}")
        full, reduced = _BY_TASK[key]
        return reduced if half else full


_TASKS = {
    ModelType.DETECT: "detect",
    ModelType.POSE: "pose",
    ModelType.CLASSIFY: "classify",
    ModelType.DETECT_HALF: "detect",
    ModelType.POSE_HALF: "pose",
    ModelType.CLASSIFY_HALF: "classify",
}

_BY_TASK = {
    "detect": (ModelType.DETECT, ModelType.DETECT_HALF),
    "pose": (ModelType.POSE, ModelType.POSE_HALF),
    "classify": (ModelType.CLASSIFY, ModelType.CLASSIFY_HALF),
}


@dataclass(frozen=True)
class RunConfig:
    """
    Run parameters for one session. Fixed once the session exists.

    `input_size` is (width, height) of the model input.
    """

    model_path: str
    model_type: ModelType = ModelType.DETECT
    input_size: Tuple[int, int] = (640, 640)
    conf_threshold: float = 0.6
    iou_threshold: float = 0.5
    num_keypoints: int = 2
    cuda: bool = False
    intra_op_num_threads: int = 1
    log_severity_level: int = 3
    top_k: int = 5
    pad_color: Tuple[int, int, int] = (114, 114, 114)
    max_detections: Optional[int] = None
    channels_first: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.model_type, ModelType):
            object.__setattr__(self, "model_type", ModelType(self.model_type))
        if len(self.input_size) != 2:
            raise ValueError("input_size must be (width, height)")
        if any(int(d) <= 0 for d in self.input_size):
            raise ValueError("input_size dimensions must be > 0")
        object.__setattr__(self, "input_size", (int(self.input_size[0]), int(self.input_size[1])))
        for name in ("conf_threshold", "iou_threshold"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number")
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1]")
        if self.num_keypoints < 0:
            raise ValueError("num_keypoints must be >= 0")
        if self.intra_op_num_threads < 1:
            raise ValueError("intra_op_num_threads must be >= 1")
        if not 0 <= self.log_severity_level <= 4:
            raise ValueError("log_severity_level must be in 0..4")
        if self.top_k < 1:
            raise ValueError("top_k must be >= 1")
        if len(self.pad_color) != 3 or any(not 0 <= int(c) <= 255 for c in self.pad_color):
            raise ValueError("pad_color must be three values in 0..255")
        object.__setattr__(self, "pad_color", tuple(int(c) for c in self.pad_color))
        if self.max_detections is not None and self.max_detections < 1:
            raise ValueError("max_detections must be >= 1 when set")

    @property
    def input_dtype(self) -> np.dtype:
        return np.dtype(np.float16) if self.model_type.is_half else np.dtype(np.float32)

    @property
    def task(self) -> str:
        return self.model_type.task


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _require_bool(payload: Dict[str, Any], key: str) -> bool:
    value = payload[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean")
    return value


def _parse_input_size(value: object) -> Tuple[int, int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value, value
    if (
        isinstance(value, list)
        and len(value) == 2
        and all(isinstance(v, int) and not isinstance(v, bool) for v in value)
    ):
        return value[0], value[1]
    raise ValueError("input_size must be an integer or [width, height]")


def _parse_model_type(value: object, half: bool) -> ModelType:
    if isinstance(value, str):
        return ModelType.from_task(value, half=half)
    if isinstance(value, int) and not isinstance(value, bool):
        model_type = ModelType(value)
        if half and not model_type.is_half:
            model_type = ModelType.from_task(model_type.task, half=True)
        return model_type
    raise ValueError("model_type must be a task name or integer code")


def load_run_config(path: PathLike) -> RunConfig:
    """
    Load a `RunConfig` from a JSON object.

    A relative `model_path` resolves against the config file's directory.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Run config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid run config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Run config must be a JSON object")

    allowed = {
        "model_path",
        "model_type",
        "half",
        "input_size",
        "conf_threshold",
        "iou_threshold",
        "num_keypoints",
        "cuda",
        "intra_op_num_threads",
        "log_severity_level",
        "top_k",
        "pad_color",
        "max_detections",
        "channels_first",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown run config keys: {unknown}")

    if "model_path" not in payload:
        raise ValueError("Missing required key: model_path")
    model_path = payload["model_path"]
    if not isinstance(model_path, str) or not model_path.strip():
        raise ValueError("model_path must be a non-empty string")
    model_file = Path(model_path)
    if not model_file.is_absolute():
        model_file = (path.parent / model_file).resolve()

    kwargs: Dict[str, Any] = {"model_path": str(model_file)}

    half = _require_bool(payload, "half") if "half" in payload else False
    if "model_type" in payload:
        kwargs["model_type"] = _parse_model_type(payload["model_type"], half)
    elif half:
        kwargs["model_type"] = ModelType.DETECT_HALF
    if "input_size" in payload:
        kwargs["input_size"] = _parse_input_size(payload["input_size"])

    for key in ("conf_threshold", "iou_threshold"):
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    for key in ("num_keypoints", "intra_op_num_threads", "log_severity_level", "top_k"):
        if key in payload:
            kwargs[key] = _require_int(payload, key)
    for key in ("cuda", "channels_first"):
        if key in payload:
            kwargs[key] = _require_bool(payload, key)

    if payload.get("max_detections") is not None:
        kwargs["max_detections"] = _require_int(payload, "max_detections")
    if "pad_color" in payload:
        color = payload["pad_color"]
        if not isinstance(color, list) or not all(isinstance(c, int) and not isinstance(c, bool) for c in color):
            raise ValueError("pad_color must be a list of integers")
        kwargs["pad_color"] = tuple(color)

    return RunConfig(**kwargs)
