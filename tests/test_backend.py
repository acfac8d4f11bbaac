import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest import mock

import numpy as np

from yolo8_onnx.backends import onnxruntime_backend as backend_mod
from yolo8_onnx.backends.onnxruntime_backend import (
    OnnxRuntimeBackend,
    OnnxRuntimeBackendConfig,
    select_providers,
)
from yolo8_onnx.config import RunConfig
from yolo8_onnx.errors import InferenceBackendError, ModelTopologyError
from yolo8_onnx.runtime import YoloPipeline, load_pipeline


def fake_session(inputs=None, outputs=None, output=None, input_type="tensor(float)"):
    session = mock.MagicMock()
    if inputs is None:
        inputs = [SimpleNamespace(name="images", shape=[1, 3, 640, 640], type=input_type)]
    if outputs is None:
        outputs = [SimpleNamespace(name="output0", shape=[1, 8400, 85], type="tensor(float)")]
    session.get_inputs.return_value = inputs
    session.get_outputs.return_value = outputs
    session.get_providers.return_value = ["CPUExecutionProvider"]
    session.run.return_value = [output if output is not None else np.zeros((1, 1, 6), dtype=np.float32)]
    return session


class TestOnnxRuntimeBackend(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.model_path = Path(tmpdir.name) / "model.onnx"
        self.model_path.write_bytes(b"not a real model")

    def _patch_session(self, session):
        patcher = mock.patch.object(backend_mod.ort, "InferenceSession", return_value=session)
        ctor = patcher.start()
        self.addCleanup(patcher.stop)
        return ctor

    def test_binds_first_input_and_output(self) -> None:
        session = fake_session()
        self._patch_session(session)
        backend = OnnxRuntimeBackend(self.model_path)
        self.assertEqual(backend.input_name, "images")
        self.assertEqual(backend.output_name, "output0")
        self.assertEqual(backend.input_dtype, np.dtype(np.float32))

        blob = np.zeros((1, 3, 640, 640), dtype=np.float32)
        out = backend.infer(blob)
        self.assertEqual(out.shape, (1, 1, 6))
        names, feeds = session.run.call_args[0]
        self.assertEqual(names, ["output0"])
        self.assertIs(feeds["images"], blob)

    def test_session_options_follow_config(self) -> None:
        ctor = self._patch_session(fake_session())
        OnnxRuntimeBackend(self.model_path, OnnxRuntimeBackendConfig(intra_op_num_threads=3, log_severity_level=2))
        opts = ctor.call_args.kwargs["sess_options"]
        self.assertEqual(opts.intra_op_num_threads, 3)
        self.assertEqual(opts.log_severity_level, 2)
        self.assertIn("CPUExecutionProvider", ctor.call_args.kwargs["providers"])

    def test_no_inputs_is_topology_error(self) -> None:
        self._patch_session(fake_session(inputs=[]))
        with self.assertRaises(ModelTopologyError):
            OnnxRuntimeBackend(self.model_path)

    def test_no_outputs_is_topology_error(self) -> None:
        self._patch_session(fake_session(outputs=[]))
        with self.assertRaises(ModelTopologyError):
            OnnxRuntimeBackend(self.model_path)

    def test_unknown_input_name_is_topology_error(self) -> None:
        self._patch_session(fake_session())
        with self.assertRaises(ModelTopologyError):
            OnnxRuntimeBackend(self.model_path, OnnxRuntimeBackendConfig(input_name="pixels"))

    def test_run_failure_keeps_backend_message(self) -> None:
        session = fake_session()
        session.run.side_effect = RuntimeError("Unexpected input data type")
        self._patch_session(session)
        backend = OnnxRuntimeBackend(self.model_path)
        with self.assertRaises(InferenceBackendError) as ctx:
            backend.infer(np.zeros((1, 3, 640, 640), dtype=np.float32))
        self.assertEqual(ctx.exception.message, "Unexpected input data type")

    def test_session_creation_failure(self) -> None:
        patcher = mock.patch.object(backend_mod.ort, "InferenceSession", side_effect=RuntimeError("Protobuf parsing failed"))
        patcher.start()
        self.addCleanup(patcher.stop)
        with self.assertRaises(InferenceBackendError) as ctx:
            OnnxRuntimeBackend(self.model_path)
        self.assertIn("Protobuf parsing failed", ctx.exception.message)

    def test_missing_model_file(self) -> None:
        with self.assertRaises(InferenceBackendError):
            OnnxRuntimeBackend(self.model_path.with_name("missing.onnx"))

    def test_blob_cast_to_declared_half_input(self) -> None:
        session = fake_session(input_type="tensor(float16)")
        self._patch_session(session)
        backend = OnnxRuntimeBackend(self.model_path)
        backend.infer(np.zeros((1, 3, 8, 8), dtype=np.float32))
        _, feeds = session.run.call_args[0]
        self.assertEqual(feeds["images"].dtype, np.float16)

    def test_load_pipeline_runs_end_to_end(self) -> None:
        output = np.array([[[320, 320, 100, 100, 0.9, 0.1, 0.8]]], dtype=np.float32)
        self._patch_session(fake_session(output=output))
        pipeline = load_pipeline(RunConfig(model_path=str(self.model_path), conf_threshold=0.5))
        self.assertIsInstance(pipeline, YoloPipeline)
        result = pipeline.run(np.zeros((640, 640, 3), dtype=np.uint8))
        self.assertTrue(result.ok)
        self.assertTrue(np.allclose(result.value[0].box, (270, 270, 100, 100)))


class TestSelectProviders(unittest.TestCase):
    def test_cpu_only(self) -> None:
        available = ["CUDAExecutionProvider", "CPUExecutionProvider"]
        self.assertEqual(select_providers(False, available), ["CPUExecutionProvider"])

    def test_cuda_first_when_available(self) -> None:
        available = ["CUDAExecutionProvider", "CPUExecutionProvider"]
        self.assertEqual(select_providers(True, available), ["CUDAExecutionProvider", "CPUExecutionProvider"])

    def test_missing_cuda_falls_back_to_cpu(self) -> None:
        self.assertEqual(select_providers(True, ["CPUExecutionProvider"]), ["CPUExecutionProvider"])


if __name__ == "__main__":
    unittest.main()
