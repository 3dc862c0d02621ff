from __future__ import annotations

from typing import Iterable, Optional, Tuple

import numpy as np

from .types import PixelBox


_PALETTE = [
    (255, 56, 56),
    (255, 157, 151),
    (255, 112, 31),
    (255, 178, 29),
    (207, 210, 49),
    (72, 249, 10),
    (146, 204, 23),
    (61, 219, 134),
    (26, 147, 52),
    (0, 212, 187),
    (44, 153, 168),
    (0, 194, 255),
    (52, 69, 147),
    (100, 115, 255),
    (0, 24, 236),
    (132, 56, 255),
    (82, 0, 133),
    (203, 56, 255),
    (255, 149, 200),
    (255, 55, 199),
]


def color_for_class_id(class_id: int) -> Tuple[int, int, int]:
    """
    Deterministic BGR color: fixed palette, then a seeded RNG for larger ids.
    """

    if 0 <= class_id < len(_PALETTE):
        return _PALETTE[class_id]
    rng = np.random.default_rng(int(class_id))
    bgr = rng.integers(0, 256, size=3, dtype=np.uint8)
    return int(bgr[0]), int(bgr[1]), int(bgr[2])


def draw_pixel_boxes(
    image_bgr: np.ndarray,
    boxes: Iterable[PixelBox],
    *,
    input_resolution: Optional[int] = None,
    show_score: bool = False,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw boxes and labels on a copy of a BGR image.

    Boxes are in input-resolution pixels with a center origin. When the image
    is not `input_resolution` square the boxes are scaled to fit it.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_pixel_boxes(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]
    res = input_resolution if input_resolution is not None else w
    sx, sy = w / float(res), h / float(res)

    for box in boxes:
        x1, y1, x2, y2 = box.to_image_xyxy(res)
        if not all(np.isfinite(v) for v in (x1, y1, x2, y2)):
            continue
        x1i = int(np.clip(round(x1 * sx), 0, w - 1))
        y1i = int(np.clip(round(y1 * sy), 0, h - 1))
        x2i = int(np.clip(round(x2 * sx), 0, w - 1))
        y2i = int(np.clip(round(y2 * sy), 0, h - 1))

        color = color_for_class_id(box.class_id)
        cv2.rectangle(out, (x1i, y1i), (x2i, y2i), color, thickness=box_thickness)

        label = f"{box.label} {box.confidence:.2f}" if show_score else box.label
        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        y_text_top = y1i - th - baseline
        if y_text_top < 0:
            y_text_top = y1i

        cv2.rectangle(
            out,
            (x1i, y_text_top),
            (min(x1i + tw, w - 1), min(y_text_top + th + baseline, h - 1)),
            color,
            thickness=-1,
        )
        cv2.putText(
            out,
            label,
            (x1i, min(y_text_top + th, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
