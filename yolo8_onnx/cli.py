from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import cv2
import numpy as np
from loguru import logger
from tqdm import tqdm

from .config import ModelType, RunConfig, load_run_config
from .errors import InvalidImage
from .logging_config import configure_logging
from .metadata import load_class_names
from .runtime import YoloPipeline, create_session
from .visualize import draw_classification, draw_detections


IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff", ".webp"}
VIDEO_SUFFIXES = {".mp4", ".avi", ".mov", ".mkv"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="yolo8-onnx", description="Run a YOLOv8 ONNX model on images.")
    parser.add_argument("task", choices=["detect", "pose", "classify"], help="Model task.")
    parser.add_argument("model", help="Path to the .onnx model.")
    parser.add_argument("input", help="Image file or directory of images.")
    parser.add_argument("--classes", default=None, help="coco.yaml-style file with a `names:` mapping.")
    parser.add_argument("--config", default=None, help="JSON run config; command line options override it.")
    parser.add_argument("--imgsz", type=int, nargs="+", default=None, help="Input size: N or W H (default 640).")
    parser.add_argument("--conf", type=float, default=None, help="Objectness threshold (default 0.6).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (default 0.5).")
    parser.add_argument("--keypoints", type=int, default=None, help="Keypoints per pose detection.")
    parser.add_argument("--top-k", type=int, default=None, help="Classes reported by classify (default 5).")
    parser.add_argument("--half", action="store_true", help="Model takes float16 input.")
    parser.add_argument("--cuda", action="store_true", help="Use CUDAExecutionProvider when available.")
    parser.add_argument("--threads", type=int, default=None, help="ORT intra-op thread count.")
    parser.add_argument("--out", default=None, help="Directory for annotated images (default: next to input).")
    parser.add_argument("--no-save", action="store_true", help="Do not write annotated images.")
    parser.add_argument("--show", action="store_true", help="Show a window with each annotated image.")
    parser.add_argument("--log-level", default="INFO", help="Log level (INFO, DEBUG, ...).")
    parser.add_argument("--log-file", default=None, help="Optional rotating log file.")
    return parser


def build_run_config(args: argparse.Namespace) -> RunConfig:
    base = load_run_config(args.config) if args.config else RunConfig(model_path=args.model)

    overrides: Dict[str, object] = {
        "model_path": args.model,
        "model_type": ModelType.from_task(args.task, half=args.half or base.model_type.is_half),
    }
    if args.imgsz is not None:
        if len(args.imgsz) not in (1, 2):
            raise ValueError("--imgsz takes one or two integers")
        overrides["input_size"] = (args.imgsz[0], args.imgsz[-1])
    if args.conf is not None:
        overrides["conf_threshold"] = args.conf
    if args.iou is not None:
        overrides["iou_threshold"] = args.iou
    if args.keypoints is not None:
        overrides["num_keypoints"] = args.keypoints
    if args.top_k is not None:
        overrides["top_k"] = args.top_k
    if args.threads is not None:
        overrides["intra_op_num_threads"] = args.threads
    if args.cuda:
        overrides["cuda"] = True
    return dataclasses.replace(base, **overrides)


def collect_images(input_path: Path) -> List[Path]:
    if input_path.is_dir():
        images = sorted(p for p in input_path.iterdir() if p.suffix.lower() in IMAGE_SUFFIXES)
        if not images:
            raise FileNotFoundError(f"No images found in {input_path}")
        return images
    if not input_path.exists():
        raise FileNotFoundError(f"Input not found: {input_path}")
    suffix = input_path.suffix.lower()
    if suffix in VIDEO_SUFFIXES:
        raise ValueError(f"Video input is not supported: {input_path}")
    if suffix not in IMAGE_SUFFIXES:
        raise ValueError(f"Unsupported file format: {suffix}")
    return [input_path]


def read_image(path: Path) -> np.ndarray:
    img = cv2.imread(str(path))
    if img is None:
        raise InvalidImage(f"Could not read image at path: {path}")
    return img


def output_path_for(image_path: Path, out_dir: Optional[str]) -> Path:
    parent = Path(out_dir) if out_dir else image_path.parent
    return parent / f"{image_path.stem}_output{image_path.suffix}"


def process_image(
    pipeline: YoloPipeline,
    image_path: Path,
    class_names: Dict[int, str],
    args: argparse.Namespace,
) -> bool:
    img = read_image(image_path)
    logger.debug("{}: {}x{}", image_path, img.shape[1], img.shape[0])

    result = pipeline.run(img)
    if not result.ok:
        logger.error("{}: {}", image_path, result.error)
        return False

    if pipeline.cfg.task == "classify":
        for item in result.value:
            logger.info("{} {:.4f}", class_names.get(item.class_id, str(item.class_id)), item.score)
        vis = draw_classification(img, result.value, class_names=class_names)
    else:
        logger.info("{}: {} detections", image_path.name, len(result.value))
        for det in result.value:
            logger.info("{} {:.2f} {}", class_names.get(det.class_id, str(det.class_id)), det.confidence, det.box)
        vis = draw_detections(img, result.value, class_names=class_names)

    if not args.no_save:
        out_path = output_path_for(image_path, args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(out_path), vis):
            raise RuntimeError(f"Failed to write output image: {out_path}")
        logger.info("Output saved to: {}", out_path)

    if args.show:
        cv2.imshow("Result of Detection", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    try:
        cfg = build_run_config(args)
        class_names = load_class_names(args.classes) if args.classes else {}
        images = collect_images(Path(args.input))
    except (OSError, ValueError) as exc:
        logger.error("{}", exc)
        return 1

    session = create_session(cfg)
    if not session.ok:
        logger.error("Failed to create session: {}", session.error)
        return 1
    pipeline = session.value

    try:
        for image_path in tqdm(images, desc="images", disable=len(images) == 1):
            if not process_image(pipeline, image_path, class_names, args):
                return 1
    except (InvalidImage, OSError, RuntimeError) as exc:
        logger.error("{}", exc)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
