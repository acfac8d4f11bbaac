from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

import numpy as np
from loguru import logger

from .config import RunConfig
from .errors import InferenceBackendError, UnexpectedOutputShape, YoloError
from .letterbox import letterbox
from .postprocess import YoloPostConfig, YoloPostprocessor
from .result import Result, capture
from .tensor import pack
from .types import ClassScore, Detection


Outputs = Union[List[Detection], List[ClassScore]]


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: tuple
    scale: float


def post_config_from(cfg: RunConfig) -> YoloPostConfig:
    return YoloPostConfig(
        conf_threshold=cfg.conf_threshold,
        iou_threshold=cfg.iou_threshold,
        max_detections=cfg.max_detections,
        num_keypoints=cfg.num_keypoints,
        top_k=cfg.top_k,
        channels_first=cfg.channels_first,
    )


class YoloPipeline:
    """
    Plug-and-play pipeline: letterbox -> pack -> inference -> decode.

    The pipeline expects BGR images (OpenCV-style) as `np.ndarray`. `run` never
    raises core errors: it returns a `Result` holding either the decoded list or
    the error. Calls on one pipeline are serialized because the backend's
    buffers are reused between runs.
    """

    def __init__(
        self,
        infer_fn: Callable[[np.ndarray], np.ndarray],
        cfg: RunConfig,
        *,
        backend: Optional[object] = None,
    ):
        self._infer_fn = infer_fn
        self._lock = threading.Lock()
        self.cfg = cfg
        self.backend = backend
        self.post = YoloPostprocessor(post_config_from(cfg))

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        lb = letterbox(image_bgr, new_shape=self.cfg.input_size, color=self.cfg.pad_color)
        blob = pack(lb.image, dtype=self.cfg.input_dtype)
        orig_h, orig_w = image_bgr.shape[:2]
        return PreprocessResult(blob=blob, orig_size=(orig_w, orig_h), scale=lb.scale)

    def infer(self, blob: np.ndarray) -> np.ndarray:
        with self._lock:
            try:
                return self._infer_fn(blob)
            except YoloError:
                raise
            except Exception as exc:
                raise InferenceBackendError(str(exc)) from exc

    def postprocess(self, preds: np.ndarray, scale: float) -> Outputs:
        if preds is None:
            raise UnexpectedOutputShape("Backend returned no output tensor")
        return self.post.process(preds, scale, task=self.cfg.task)

    def predict(self, image_bgr: np.ndarray) -> Outputs:
        """Raising variant of `run`."""

        prep = self.preprocess(image_bgr)
        preds = self.infer(prep.blob)
        return self.postprocess(preds, prep.scale)

    def run(self, image_bgr: np.ndarray) -> Result[Outputs]:
        return capture(self.predict, image_bgr)

    def __call__(self, image_bgr: np.ndarray) -> Result[Outputs]:
        return self.run(image_bgr)

    def warm_up(self) -> Result[Outputs]:
        w, h = self.cfg.input_size
        dummy = np.zeros((h, w, 3), dtype=np.uint8)
        return self.run(dummy)


def load_pipeline(cfg: RunConfig) -> YoloPipeline:
    """
    Create an ONNX Runtime backed pipeline. Raises `InferenceBackendError` or
    `ModelTopologyError` if the model cannot be opened.
    """

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    ort_backend = OnnxRuntimeBackend(
        cfg.model_path,
        OnnxRuntimeBackendConfig(
            cuda=cfg.cuda,
            intra_op_num_threads=cfg.intra_op_num_threads,
            log_severity_level=cfg.log_severity_level,
        ),
    )
    if ort_backend.input_dtype is not None and ort_backend.input_dtype != cfg.input_dtype:
        logger.warning(
            "Model declares {} input but {} was configured; tensors will be cast",
            ort_backend.input_dtype,
            cfg.input_dtype,
        )
    logger.info("Session ready: {} ({}) on {}", cfg.model_path, cfg.model_type.name, ort_backend.providers_in_use)
    return YoloPipeline(ort_backend.infer, cfg, backend=ort_backend)


def create_session(cfg: RunConfig) -> Result[YoloPipeline]:
    return capture(load_pipeline, cfg)
