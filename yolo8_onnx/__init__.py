"""
YOLOv8 inference on ONNX Runtime: letterbox preprocessing, tensor packing,
inference and decoding (objectness filter, class argmax, NMS, rescale) for
detect, pose and classify models.

Core operations report failures through `Result` instead of raising.
"""

from .types import ClassScore, Detection
from .errors import (
    ErrorKind,
    InferenceBackendError,
    InvalidImage,
    ModelTopologyError,
    UnexpectedOutputShape,
    YoloError,
)
from .result import Result
from .config import ModelType, RunConfig, load_run_config
from .letterbox import LetterboxResult, letterbox
from .tensor import pack
from .nms import NMSConfig, nms
from .postprocess import YoloPostConfig, YoloPostprocessor
from .runtime import YoloPipeline, create_session, load_pipeline
from .metadata import load_class_names
from .visualize import color_for_class, draw_classification, draw_detections

__all__ = [
    "ClassScore",
    "Detection",
    "ErrorKind",
    "InferenceBackendError",
    "InvalidImage",
    "ModelTopologyError",
    "UnexpectedOutputShape",
    "YoloError",
    "Result",
    "ModelType",
    "RunConfig",
    "load_run_config",
    "LetterboxResult",
    "letterbox",
    "pack",
    "NMSConfig",
    "nms",
    "YoloPostConfig",
    "YoloPostprocessor",
    "YoloPipeline",
    "create_session",
    "load_pipeline",
    "load_class_names",
    "color_for_class",
    "draw_classification",
    "draw_detections",
]
