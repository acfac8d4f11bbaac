"""
Error taxonomy for the inference core.

Stages raise these; `YoloPipeline.run` and `create_session` turn them into
`Result` values so callers never have to catch them.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_IMAGE = "InvalidImage"
    MODEL_TOPOLOGY = "ModelTopologyError"
    INFERENCE_BACKEND = "InferenceBackendError"
    UNEXPECTED_OUTPUT_SHAPE = "UnexpectedOutputShape"


class YoloError(Exception):
    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"[{self.kind.value}]: {self.message}"


class InvalidImage(YoloError):
    """Source image is missing, empty or not a pixel buffer."""

    kind = ErrorKind.INVALID_IMAGE


class ModelTopologyError(YoloError):
    """Model exposes no usable input or output tensor."""

    kind = ErrorKind.MODEL_TOPOLOGY


class InferenceBackendError(YoloError):
    """The backend failed; `message` is the backend's own text."""

    kind = ErrorKind.INFERENCE_BACKEND


class UnexpectedOutputShape(YoloError):
    """Output tensor rank/shape does not fit the configured model type."""

    kind = ErrorKind.UNEXPECTED_OUTPUT_SHAPE
