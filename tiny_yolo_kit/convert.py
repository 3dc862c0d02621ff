from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .config import TinyYoloConfig
from .types import PixelBox, RawBox

logger = logging.getLogger(__name__)


def sigmoid(value):
    """
    Numerically stable logistic function for scalars or arrays.
    """

    v = np.asarray(value, dtype=np.float64)
    # exp(-|v|) never overflows, so both branches stay finite.
    e = np.exp(-np.abs(v))
    out = np.where(v >= 0, 1.0 / (1.0 + e), e / (1.0 + e))
    if out.ndim == 0:
        return float(out)
    return out


def convert_boxes(raw_boxes: Sequence[RawBox], config: TinyYoloConfig) -> List[PixelBox]:
    """
    Map raw grid predictions to pixel boxes centered on the image center.

        center = -res/2 + pitch/2 + pitch * cell + sigmoid(t)
        size   = anchor * exp(t)

    Sizes are not clamped; extreme raw values decode to `inf`.
    """

    if not raw_boxes:
        return []

    res = float(config.input_resolution)
    grids = np.array([config.grid_for_anchor(b.anchor_index) for b in raw_boxes], dtype=np.float64)
    pitch = res / grids
    cells = np.array([(b.cell_x, b.cell_y) for b in raw_boxes], dtype=np.float64)
    offsets = np.array([(b.tx, b.ty) for b in raw_boxes], dtype=np.float64)
    scales = np.array([(b.tw, b.th) for b in raw_boxes], dtype=np.float64)
    anchors = np.array([config.anchors[b.anchor_index] for b in raw_boxes], dtype=np.float64)

    centers = -0.5 * res + 0.5 * pitch[:, None] + pitch[:, None] * cells + sigmoid(offsets)
    with np.errstate(over="ignore"):
        sizes = anchors * np.exp(scales)

    pixel_boxes = [
        PixelBox(
            x=float(cx),
            y=float(cy),
            width=float(w),
            height=float(h),
            label=box.label,
            confidence=box.confidence,
            class_id=box.class_id,
        )
        for box, (cx, cy), (w, h) in zip(raw_boxes, centers, sizes)
    ]
    logger.debug("converted %d boxes to pixel space", len(pixel_boxes))
    return pixel_boxes
