from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from .config import TinyYoloConfig, validate_labels
from .convert import convert_boxes
from .decode import TensorLike, as_grid_tensor, decode_outputs
from .metadata import load_labels
from .nms import suppress
from .types import InvalidInputError, PixelBox

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
RunFn = Callable[[np.ndarray], Mapping[str, np.ndarray]]


def detect(
    output_coarse: TensorLike,
    output_fine: TensorLike,
    labels: Sequence[str],
    config: Optional[TinyYoloConfig] = None,
) -> List[PixelBox]:
    """
    Decode -> convert -> suppress for one pair of detector outputs.

    Args:
        output_coarse: (1, 20, 20, 3 * (5 + C)) head, anchors 3-5
        output_fine: (1, 40, 40, 3 * (5 + C)) head, anchors 0-2
        labels: class names, index = class id
        config: thresholds, grid sizes and anchors; defaults to TinyYoloConfig()
    """

    cfg = config if config is not None else TinyYoloConfig()
    raw_boxes = decode_outputs(output_coarse, output_fine, labels, cfg)
    pixel_boxes = convert_boxes(raw_boxes, cfg)
    return suppress(pixel_boxes, cfg)


class TinyYoloDecoder:
    """
    Holds the label table and config so repeated frames only pass tensors.
    """

    def __init__(self, labels: Sequence[str], config: TinyYoloConfig = TinyYoloConfig()):
        self.labels = validate_labels(labels)
        self.config = config

    def __call__(self, output_coarse: TensorLike, output_fine: TensorLike) -> List[PixelBox]:
        return detect(output_coarse, output_fine, self.labels, self.config)


# A checkout is recognised by its packaging file or by the folder holding model weights.
ROOT_MARKERS = ("pyproject.toml", "Models")


def asset_root(start: Optional[PathLike] = None) -> Path:
    """
    Directory that relative model and label paths are resolved against: the
    nearest ancestor of `start` (default: cwd) holding one of ROOT_MARKERS,
    else `start` itself.
    """

    here = Path.cwd() if start is None else Path(start)
    here = here.resolve()
    if here.is_file():
        here = here.parent
    candidates = [here, *here.parents]
    matches = [d for d in candidates if any((d / marker).exists() for marker in ROOT_MARKERS)]
    return matches[0] if matches else here


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """Absolute paths pass through; relative ones join `root` or `asset_root()`."""
    target = Path(path)
    if target.is_absolute():
        return target
    base = asset_root() if root in ("auto", None) else Path(root)
    return base.resolve().joinpath(target).resolve()


@dataclass(frozen=True)
class PreprocessResult:
    blob: np.ndarray
    orig_size: tuple
    resized: bool


class TinyYoloPipeline:
    """
    Image-level detector: preprocess -> run model -> decode/suppress.

    `run_fn` is the inference executor. It takes the input blob and returns the
    model outputs keyed by name. Images are OpenCV-style BGR arrays; boxes come
    back in input-resolution pixels with the origin at the image center.
    """

    def __init__(
        self,
        run_fn: RunFn,
        labels: Sequence[str],
        *,
        config: TinyYoloConfig = TinyYoloConfig(),
        backend: Optional[object] = None,
    ):
        self._run_fn = run_fn
        self.backend = backend
        self.decoder = TinyYoloDecoder(labels, config)

    @property
    def config(self) -> TinyYoloConfig:
        return self.decoder.config

    @property
    def labels(self):
        return self.decoder.labels

    def preprocess(self, image_bgr: np.ndarray) -> PreprocessResult:
        if image_bgr is None or not hasattr(image_bgr, "shape"):
            raise TypeError("image_bgr must be a NumPy array (BGR).")
        if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

        res = self.config.input_resolution
        orig_h, orig_w = image_bgr.shape[:2]
        img = image_bgr
        resized = (orig_w, orig_h) != (res, res)
        if resized:
            try:
                import cv2  # type: ignore
            except Exception as e:  # pragma: no cover
                raise ImportError("OpenCV is required to resize inputs. Install with `pip install opencv-python`.") from e

            logger.warning("input image is %dx%d, resizing to %dx%d", orig_w, orig_h, res, res)
            img = cv2.resize(image_bgr, (res, res), interpolation=cv2.INTER_LINEAR)

        # BGR -> RGB, normalize, add batch
        blob = img[:, :, ::-1].astype(np.float32) / 255.0
        if self.config.input_layout == "nchw":
            blob = np.transpose(blob, (2, 0, 1))
        blob = np.ascontiguousarray(blob[None, ...])

        return PreprocessResult(blob=blob, orig_size=(orig_w, orig_h), resized=resized)

    def select_outputs(self, outputs: Mapping[str, np.ndarray]):
        cfg = self.config
        missing = [n for n in (cfg.coarse_output_name, cfg.fine_output_name) if n not in outputs]
        if missing:
            raise InvalidInputError(f"Model outputs missing {missing}; got {sorted(outputs)}")
        coarse = as_grid_tensor(outputs[cfg.coarse_output_name], cfg.output_layout)
        fine = as_grid_tensor(outputs[cfg.fine_output_name], cfg.output_layout)
        return coarse, fine

    def __call__(self, image_bgr: np.ndarray) -> List[PixelBox]:
        prep = self.preprocess(image_bgr)
        outputs: Dict[str, np.ndarray] = dict(self._run_fn(prep.blob))
        coarse, fine = self.select_outputs(outputs)
        boxes = self.decoder(coarse, fine)
        logger.debug("%d detections", len(boxes))
        return boxes


def load_pipeline(
    model_path: PathLike,
    labels_path: PathLike,
    *,
    root: Optional[PathLike] = "auto",
    config: TinyYoloConfig = TinyYoloConfig(),
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
) -> TinyYoloPipeline:
    """
    Build a pipeline for an ONNX model and its label file.

        pipe = load_pipeline("Models/yolov3-tiny.onnx", "Models/coco.names",
                             config=TinyYoloConfig(output_layout="nchw", input_layout="nchw"))

    Relative paths resolve against `asset_root()` unless `root` is given.
    """

    resolved_model = resolve_path(model_path, root=root)
    labels = load_labels(resolve_path(labels_path, root=root))

    if resolved_model.suffix.lower() != ".onnx":
        raise ValueError(f"Unsupported model format '{resolved_model.suffix}'. Only .onnx is supported.")

    from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

    backend = OnnxRuntimeBackend(
        resolved_model,
        OnnxRuntimeBackendConfig(
            providers=onnx_providers,
            input_name=onnx_input_name,
            output_names=(config.coarse_output_name, config.fine_output_name),
        ),
    )
    logger.info("loaded %s with providers %s", resolved_model.name, list(backend.providers_in_use))
    return TinyYoloPipeline(backend.run, labels, config=config, backend=backend)
