from __future__ import annotations

from typing import Tuple

import numpy as np

from .types import InvalidInputError


class GridTensor:
    """
    Read-only (batch, row, col, channel) view over one detector output.

    `layout="nchw"` accepts channel-first arrays, as ONNX exports produce them,
    and exposes them with the same indexing as NHWC.
    """

    def __init__(self, array, layout: str = "nhwc"):
        data = np.asarray(array, dtype=np.float32)
        if data.ndim != 4:
            raise InvalidInputError(f"Expected a 4-D output tensor, got shape {data.shape}")
        if layout == "nchw":
            data = np.transpose(data, (0, 2, 3, 1))
        elif layout != "nhwc":
            raise ValueError(f"Unsupported tensor layout: {layout!r}")
        # Read-only view; the caller's array keeps its own flags.
        view = np.ascontiguousarray(data).view()
        view.setflags(write=False)
        self._data = view

    @property
    def shape(self) -> Tuple[int, int, int, int]:
        return tuple(self._data.shape)  # type: ignore[return-value]

    @property
    def grid_size(self) -> int:
        return int(self._data.shape[1])

    @property
    def channels(self) -> int:
        return int(self._data.shape[3])

    def validate(self, grid_size: int, channels: int) -> None:
        batch, rows, cols, chans = self._data.shape
        if batch != 1:
            raise InvalidInputError(f"Batch > 1 is not supported (got shape {self.shape}).")
        if rows != cols:
            raise InvalidInputError(f"Expected a square grid, got shape {self.shape}")
        if rows != grid_size:
            raise InvalidInputError(f"Expected a {grid_size}x{grid_size} grid, got shape {self.shape}")
        if chans != channels:
            raise InvalidInputError(f"Expected {channels} channels per cell, got shape {self.shape}")

    def cell(self, row: int, col: int) -> np.ndarray:
        """Channel vector of one grid cell (batch 0)."""
        return self._data[0, row, col]

    def __getitem__(self, index: Tuple[int, int, int, int]) -> float:
        return float(self._data[index])

    def as_array(self) -> np.ndarray:
        return self._data
