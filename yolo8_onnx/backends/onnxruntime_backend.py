from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import onnxruntime as ort
from loguru import logger

from ..errors import InferenceBackendError, ModelTopologyError


PathLike = Union[str, Path]

_ORT_DTYPES = {
    "tensor(float)": np.dtype(np.float32),
    "tensor(float16)": np.dtype(np.float16),
}


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - cuda: put CUDAExecutionProvider (device 0) ahead of the CPU provider
    - intra_op_num_threads: size of ORT's intra-op thread pool
    - log_severity_level: ORT log level, 0 (verbose) .. 4 (fatal)
    - input_name/output_name: override auto-selected I/O names if needed
    """

    cuda: bool = False
    intra_op_num_threads: int = 1
    log_severity_level: int = 3
    input_name: Optional[str] = None
    output_name: Optional[str] = None


def select_providers(cuda: bool, available: Sequence[str]) -> List[str]:
    wanted = ["CUDAExecutionProvider", "CPUExecutionProvider"] if cuda else ["CPUExecutionProvider"]
    providers = [p for p in wanted if p in available]
    for p in wanted:
        if p not in available:
            logger.warning("Execution provider {} is not available; skipping it", p)
    return providers or ["CPUExecutionProvider"]


class OnnxRuntimeBackend:
    """
    ONNX Runtime invoker: one named input, one primary output.

    Topology is checked once here; `infer` only binds, runs and hands back the
    raw output array without looking at its contents.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise InferenceBackendError(f"Model file not found: {self.model_path}")

        sess_opts = ort.SessionOptions()
        sess_opts.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        sess_opts.intra_op_num_threads = cfg.intra_op_num_threads
        sess_opts.log_severity_level = cfg.log_severity_level

        providers = select_providers(cfg.cuda, ort.get_available_providers())
        try:
            self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)
        except Exception as exc:
            raise InferenceBackendError(str(exc)) from exc

        inputs = self.session.get_inputs()
        outputs = self.session.get_outputs()
        logger.info("Number of input nodes: {}", len(inputs))
        logger.info("Number of output nodes: {}", len(outputs))
        if not inputs:
            raise ModelTopologyError(f"Model has no inputs: {self.model_path}")
        if not outputs:
            raise ModelTopologyError(f"Model has no outputs: {self.model_path}")

        input_names = [i.name for i in inputs]
        output_names = [o.name for o in outputs]
        self.input_name = cfg.input_name or input_names[0]
        self.output_name = cfg.output_name or output_names[0]
        if self.input_name not in input_names:
            raise ModelTopologyError(f"Input name {self.input_name!r} not found. Available: {input_names}")
        if self.output_name not in output_names:
            raise ModelTopologyError(f"Output name {self.output_name!r} not found. Available: {output_names}")
        logger.info("Input name: {} | output name: {}", self.input_name, self.output_name)

        declared = next(i for i in inputs if i.name == self.input_name)
        self.input_shape = list(declared.shape)
        self.input_dtype: Optional[np.dtype] = _ORT_DTYPES.get(declared.type)

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if self.input_dtype is not None and blob.dtype != self.input_dtype:
            blob = blob.astype(self.input_dtype)
        try:
            outputs = self.session.run([self.output_name], {self.input_name: blob})
        except Exception as exc:
            raise InferenceBackendError(str(exc)) from exc
        return outputs[0]
