from __future__ import annotations

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple, Union


PathLike = Union[str, Path]
Anchor = Tuple[float, float]

# (width, height) priors in input pixels. 0-2 pair with the fine grid, 3-5 with the coarse grid.
DEFAULT_ANCHORS: Tuple[Anchor, ...] = (
    (10.0, 14.0),
    (23.0, 27.0),
    (37.0, 58.0),
    (81.0, 82.0),
    (135.0, 169.0),
    (344.0, 319.0),
)

ANCHORS_PER_CELL = 3
BOX_VALUES = 5  # tx, ty, tw, th, objectness
LAYOUTS = ("nhwc", "nchw")


@dataclass(frozen=True)
class TinyYoloConfig:
    """
    Decode/suppress settings for a two-scale YOLOv3-tiny head.
    """

    confidence_threshold: float = 0.25
    iou_threshold: float = 0.45
    input_resolution: int = 640
    coarse_grid: int = 20
    fine_grid: int = 40
    anchors: Tuple[Anchor, ...] = DEFAULT_ANCHORS
    # How the raw output arrays are laid out. Barracuda style is NHWC, ONNX exports are NCHW.
    output_layout: str = "nhwc"
    input_layout: str = "nhwc"
    coarse_output_name: str = "016_convolutional"
    fine_output_name: str = "023_convolutional"
    # Reproduce the deployed IoU formula (max for both corners) instead of the standard one.
    legacy_iou: bool = False
    # Keep the highest-confidence box instead of the later one during suppression.
    keep_highest_score: bool = False

    def __post_init__(self) -> None:
        # Compared against raw objectness outputs, so any finite value is allowed.
        if not math.isfinite(self.confidence_threshold):
            raise ValueError("confidence_threshold must be a finite number")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.input_resolution <= 0:
            raise ValueError("input_resolution must be > 0")
        if self.coarse_grid <= 0 or self.fine_grid <= 0:
            raise ValueError("grid sizes must be > 0")
        if len(self.anchors) != 2 * ANCHORS_PER_CELL:
            raise ValueError(f"anchors must hold {2 * ANCHORS_PER_CELL} (width, height) pairs")
        for pair in self.anchors:
            if len(pair) != 2 or pair[0] <= 0 or pair[1] <= 0:
                raise ValueError(f"anchor sizes must be positive (width, height) pairs, got {pair!r}")
        if self.output_layout not in LAYOUTS:
            raise ValueError(f"output_layout must be one of {LAYOUTS}")
        if self.input_layout not in LAYOUTS:
            raise ValueError(f"input_layout must be one of {LAYOUTS}")

    def grid_for_anchor(self, anchor_index: int) -> int:
        if not 0 <= anchor_index < len(self.anchors):
            raise ValueError(f"anchor_index out of range: {anchor_index}")
        return self.coarse_grid if anchor_index >= ANCHORS_PER_CELL else self.fine_grid

    def channels_for(self, num_classes: int) -> int:
        return ANCHORS_PER_CELL * (BOX_VALUES + num_classes)


def validate_labels(labels: Sequence[str]) -> Tuple[str, ...]:
    if isinstance(labels, str):
        raise ValueError("labels must be a sequence of class names, not a single string")
    table = tuple(labels)
    if not table:
        raise ValueError("label table must contain at least one class name")
    if any(not isinstance(name, str) for name in table):
        raise ValueError("label table entries must be strings")
    return table


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


def _require_str(payload: Dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value


def _require_bool(payload: Dict[str, Any], key: str) -> bool:
    value = payload[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false")
    return value


def _parse_anchors(value: object) -> Tuple[Anchor, ...]:
    if not isinstance(value, list):
        raise ValueError("anchors must be a list of [width, height] pairs")
    pairs = []
    for item in value:
        if (
            not isinstance(item, list)
            or len(item) != 2
            or any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in item)
        ):
            raise ValueError(f"anchor entries must be [width, height] numbers, got {item!r}")
        pairs.append((float(item[0]), float(item[1])))
    return tuple(pairs)


_NUMBER_KEYS = ("confidence_threshold", "iou_threshold")
_INT_KEYS = ("input_resolution", "coarse_grid", "fine_grid")
_STR_KEYS = ("output_layout", "input_layout", "coarse_output_name", "fine_output_name")
_BOOL_KEYS = ("legacy_iou", "keep_highest_score")


def load_config(path: PathLike) -> TinyYoloConfig:
    """
    Load a `TinyYoloConfig` from a JSON object. Missing keys keep their defaults.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")

    allowed = set(_NUMBER_KEYS + _INT_KEYS + _STR_KEYS + _BOOL_KEYS) | {"anchors"}
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key in _NUMBER_KEYS:
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    for key in _INT_KEYS:
        if key in payload:
            kwargs[key] = _require_int(payload, key)
    for key in _STR_KEYS:
        if key in payload:
            kwargs[key] = _require_str(payload, key)
    for key in _BOOL_KEYS:
        if key in payload:
            kwargs[key] = _require_bool(payload, key)
    if "anchors" in payload:
        kwargs["anchors"] = _parse_anchors(payload["anchors"])

    return TinyYoloConfig(**kwargs)
