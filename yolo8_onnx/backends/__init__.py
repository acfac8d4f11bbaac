"""
Inference backends for yolo8_onnx.

Kept in a separate module so pre/post-processing can be used and tested
without loading a model.
"""

from __future__ import annotations

__all__ = []
