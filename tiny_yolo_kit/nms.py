from __future__ import annotations

import enum
import logging
from typing import Dict, List, Sequence

import numpy as np

from .config import TinyYoloConfig
from .types import PixelBox

logger = logging.getLogger(__name__)


class IouFormula(enum.Enum):
    # min() for the bottom-right intersection corner
    STANDARD = enum.auto()
    # max() for both intersection corners, as the deployed demo computed it.
    # Not bounded by 1 and non-zero for disjoint boxes; only use it to reproduce old numbers.
    LEGACY = enum.auto()


class SuppressionPolicy(enum.Enum):
    # Of two overlapping same-label boxes, drop the earlier one in list order.
    KEEP_LATER = enum.auto()
    # Greedy per-label NMS by descending confidence.
    KEEP_HIGHEST_SCORE = enum.auto()


def iou(a: PixelBox, b: PixelBox, formula: IouFormula = IouFormula.STANDARD) -> float:
    """
    Intersection over union of two center-anchored boxes.
    """

    a_x1, a_y1, a_x2, a_y2 = a.as_xyxy()
    b_x1, b_y1, b_x2, b_y2 = b.as_xyxy()

    x_left = max(a_x1, b_x1)
    y_top = max(a_y1, b_y1)
    if formula is IouFormula.LEGACY:
        x_right = max(a_x2, b_x2)
        y_bottom = max(a_y2, b_y2)
    else:
        x_right = min(a_x2, b_x2)
        y_bottom = min(a_y2, b_y2)

    if x_right < x_left or y_bottom < y_top:
        return 0.0

    inter = (x_right - x_left) * (y_bottom - y_top)
    union = (a_x2 - a_x1) * (a_y2 - a_y1) + (b_x2 - b_x1) * (b_y2 - b_y1) - inter
    if union <= 0:
        return 0.0
    return inter / union


def _nms_indices(
    boxes: np.ndarray,
    scores: np.ndarray,
    iou_threshold: float,
    formula: IouFormula,
) -> List[int]:
    """
    Greedy NumPy NMS over (N, 4) xyxy boxes. Returns kept indices, best score first.
    """

    if boxes.size == 0:
        return []

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = (x2 - x1) * (y2 - y1)
    corner = np.maximum if formula is IouFormula.LEGACY else np.minimum

    # Stable sort so that equal scores keep list order.
    order = np.argsort(-scores, kind="stable")
    keep: List[int] = []

    while order.size > 0:
        i = order[0]
        keep.append(int(i))

        xx1 = np.maximum(x1[i], x1[order[1:]])
        yy1 = np.maximum(y1[i], y1[order[1:]])
        xx2 = corner(x2[i], x2[order[1:]])
        yy2 = corner(y2[i], y2[order[1:]])

        w = np.maximum(0.0, xx2 - xx1)
        h = np.maximum(0.0, yy2 - yy1)
        inter = w * h
        union = areas[i] + areas[order[1:]] - inter
        safe_union = np.where(union > 0, union, 1.0)
        overlap = np.where(union > 0, inter / safe_union, 0.0)

        inds = np.where(~(overlap > iou_threshold))[0]
        order = order[inds + 1]

    return keep


def _suppress_keep_later(boxes: List[PixelBox], iou_threshold: float, formula: IouFormula) -> List[PixelBox]:
    i = 0
    while i < len(boxes) - 1:
        current = boxes[i]
        duplicated = any(
            other.label == current.label and iou(current, other, formula) > iou_threshold
            for other in boxes[i + 1 :]
        )
        if duplicated:
            # Index i now holds the next box; check it against the rest too.
            del boxes[i]
        else:
            i += 1
    return boxes


def _suppress_keep_highest_score(
    boxes: List[PixelBox], iou_threshold: float, formula: IouFormula
) -> List[PixelBox]:
    by_label: Dict[str, List[int]] = {}
    for idx, box in enumerate(boxes):
        by_label.setdefault(box.label, []).append(idx)

    kept: List[int] = []
    for indices in by_label.values():
        xyxy = np.array([boxes[idx].as_xyxy() for idx in indices], dtype=np.float64)
        scores = np.array([boxes[idx].confidence for idx in indices], dtype=np.float64)
        keep_local = _nms_indices(xyxy, scores, iou_threshold, formula)
        kept.extend(indices[k] for k in keep_local)

    return [boxes[idx] for idx in sorted(kept)]


def non_max_suppression(
    boxes: Sequence[PixelBox],
    iou_threshold: float,
    *,
    formula: IouFormula = IouFormula.STANDARD,
    policy: SuppressionPolicy = SuppressionPolicy.KEEP_LATER,
) -> List[PixelBox]:
    """
    Drop duplicate detections of the same label. Boxes with different labels
    never suppress each other. Survivors keep their relative order and the
    input sequence is left untouched.

    The default IoU is the standard one. The original deployment computed the
    intersection with `max` for both corners; pass `formula=IouFormula.LEGACY`
    (or `legacy_iou=True` in the config) to reproduce its numbers.
    """

    working = list(boxes)
    if len(working) < 2:
        return working

    if policy is SuppressionPolicy.KEEP_HIGHEST_SCORE:
        kept = _suppress_keep_highest_score(working, iou_threshold, formula)
    else:
        kept = _suppress_keep_later(working, iou_threshold, formula)

    logger.debug("suppression kept %d of %d boxes", len(kept), len(boxes))
    return kept


def suppress(boxes: Sequence[PixelBox], config: TinyYoloConfig) -> List[PixelBox]:
    """Suppress with the config thresholds. Matching the original deployment needs `legacy_iou=True`."""
    return non_max_suppression(
        boxes,
        config.iou_threshold,
        formula=IouFormula.LEGACY if config.legacy_iou else IouFormula.STANDARD,
        policy=SuppressionPolicy.KEEP_HIGHEST_SCORE if config.keep_highest_score else SuppressionPolicy.KEEP_LATER,
    )
