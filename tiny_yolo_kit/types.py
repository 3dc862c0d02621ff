from dataclasses import dataclass
from typing import Tuple


class InvalidInputError(ValueError):
    """
    Raised when a model output does not match the expected grid layout.
    """


@dataclass(frozen=True)
class RawBox:
    """
    One candidate detection straight from a grid cell, before pixel decoding.

    `tx, ty` are the raw center offsets and `tw, th` the raw log-scale sizes.
    Anchor indices 0-2 come from the fine grid, 3-5 from the coarse grid.
    """

    tx: float
    ty: float
    tw: float
    th: float
    label: str
    anchor_index: int
    cell_x: int
    cell_y: int
    confidence: float = 0.0
    class_id: int = 0


@dataclass(frozen=True)
class PixelBox:
    """
    Detection in input-image pixels. `x, y` is the box center measured from
    the image center, not from the top-left corner.
    """

    x: float
    y: float
    width: float
    height: float
    label: str
    confidence: float = 0.0
    class_id: int = 0

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        half_w = 0.5 * self.width
        half_h = 0.5 * self.height
        return self.x - half_w, self.y - half_h, self.x + half_w, self.y + half_h

    def to_image_xyxy(self, input_resolution: int) -> Tuple[float, float, float, float]:
        # Shift the center-origin corners to a top-left origin.
        offset = 0.5 * input_resolution
        x1, y1, x2, y2 = self.as_xyxy()
        return x1 + offset, y1 + offset, x2 + offset, y2 + offset
