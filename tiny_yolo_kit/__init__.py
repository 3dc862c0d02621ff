"""
Decode and post-process helpers for two-scale YOLOv3-tiny detectors.

Takes the raw 20x20 and 40x40 head outputs, decodes them into pixel boxes
and suppresses same-label duplicates. The core only needs NumPy; OpenCV is
used for resizing and drawing, ONNX Runtime for the optional executor.
"""

from .types import InvalidInputError, PixelBox, RawBox
from .config import DEFAULT_ANCHORS, TinyYoloConfig, load_config, validate_labels
from .tensor import GridTensor
from .decode import decode_grid, decode_outputs
from .convert import convert_boxes, sigmoid
from .nms import IouFormula, SuppressionPolicy, iou, non_max_suppression, suppress
from .pipeline import TinyYoloDecoder, TinyYoloPipeline, detect, load_pipeline, resolve_path
from .metadata import load_labels
from .visualize import draw_pixel_boxes

__all__ = [
    "InvalidInputError",
    "PixelBox",
    "RawBox",
    "DEFAULT_ANCHORS",
    "TinyYoloConfig",
    "load_config",
    "validate_labels",
    "GridTensor",
    "decode_grid",
    "decode_outputs",
    "convert_boxes",
    "sigmoid",
    "IouFormula",
    "SuppressionPolicy",
    "iou",
    "non_max_suppression",
    "suppress",
    "TinyYoloDecoder",
    "TinyYoloPipeline",
    "detect",
    "load_pipeline",
    "resolve_path",
    "load_labels",
    "draw_pixel_boxes",
]
