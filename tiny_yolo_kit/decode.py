from __future__ import annotations

import logging
from typing import List, Sequence, Union

import numpy as np

from .config import ANCHORS_PER_CELL, BOX_VALUES, TinyYoloConfig, validate_labels
from .tensor import GridTensor
from .types import RawBox

logger = logging.getLogger(__name__)

TensorLike = Union[GridTensor, np.ndarray]


def as_grid_tensor(output: TensorLike, layout: str = "nhwc") -> GridTensor:
    if isinstance(output, GridTensor):
        return output
    return GridTensor(output, layout=layout)


def _best_class(class_scores: np.ndarray) -> int:
    # Scan starts from a best value of 0, so an all non-positive vector resolves to class 0.
    # NaN never wins a strict greater-than comparison, so it can't be picked either.
    scores = np.where(np.isnan(class_scores), -np.inf, class_scores)
    best = int(np.argmax(scores))
    if scores[best] > 0:
        return best
    return 0


def decode_grid(
    output: TensorLike,
    labels: Sequence[str],
    *,
    grid_size: int,
    anchor_offset: int,
    confidence_threshold: float,
    layout: str = "nhwc",
) -> List[RawBox]:
    """
    Extract one RawBox per (cell, anchor) whose objectness is above the threshold.

    Cells are visited in row-major order and the 3 anchors of a cell in order.
    The tensor row axis is `cell_y` and the column axis is `cell_x`.

    Args:
        output: (1, G, G, 3 * (5 + C)) output array, or a GridTensor
        labels: class names, C entries
        grid_size: expected G
        anchor_offset: 0 for the fine grid, 3 for the coarse grid
        confidence_threshold: objectness must be strictly greater than this
    """

    table = validate_labels(labels)
    tensor = as_grid_tensor(output, layout)
    num_classes = len(table)
    block = BOX_VALUES + num_classes
    tensor.validate(grid_size, ANCHORS_PER_CELL * block)

    cells = tensor.as_array()[0].reshape(grid_size, grid_size, ANCHORS_PER_CELL, block)
    objectness = cells[..., 4]
    rows, cols, anchors = np.nonzero(objectness > confidence_threshold)

    boxes: List[RawBox] = []
    for row, col, anchor in zip(rows.tolist(), cols.tolist(), anchors.tolist()):
        values = cells[row, col, anchor]
        class_id = _best_class(values[BOX_VALUES:])
        boxes.append(
            RawBox(
                tx=float(values[0]),
                ty=float(values[1]),
                tw=float(values[2]),
                th=float(values[3]),
                label=table[class_id],
                anchor_index=anchor + anchor_offset,
                cell_x=col,
                cell_y=row,
                confidence=float(values[4]),
                class_id=class_id,
            )
        )
    return boxes


def decode_outputs(
    output_coarse: TensorLike,
    output_fine: TensorLike,
    labels: Sequence[str],
    config: TinyYoloConfig,
) -> List[RawBox]:
    """
    Decode both heads into one candidate list: fine grid boxes first, then coarse.
    """

    fine = decode_grid(
        output_fine,
        labels,
        grid_size=config.fine_grid,
        anchor_offset=0,
        confidence_threshold=config.confidence_threshold,
        layout=config.output_layout,
    )
    coarse = decode_grid(
        output_coarse,
        labels,
        grid_size=config.coarse_grid,
        anchor_offset=ANCHORS_PER_CELL,
        confidence_threshold=config.confidence_threshold,
        layout=config.output_layout,
    )
    logger.debug("decoded %d fine + %d coarse candidates", len(fine), len(coarse))
    return fine + coarse
