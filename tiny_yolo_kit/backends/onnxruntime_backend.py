from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import numpy as np


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers in priority order, e.g.
      ["CUDAExecutionProvider", "CPUExecutionProvider"]. Picking these is how a
      caller chooses between GPU and CPU execution.
    - input_name: override the auto-selected input name
    - output_names: restrict which outputs are fetched; None fetches all of them
    """

    providers: Optional[Sequence[str]] = None
    input_name: Optional[str] = None
    output_names: Optional[Sequence[str]] = None


class OnnxRuntimeBackend:
    """
    ONNX Runtime executor for two-head detectors.

    `run(blob)` returns every requested output keyed by its graph name, so the
    caller can pick the coarse and fine heads by name.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(
            str(self.model_path), sess_options=ort.SessionOptions(), providers=providers
        )

        self.input_name = cfg.input_name or self.session.get_inputs()[0].name
        available = [o.name for o in self.session.get_outputs()]
        if cfg.output_names is None:
            self.output_names = available
        else:
            missing = [name for name in cfg.output_names if name not in available]
            if missing:
                raise ValueError(f"Model has no outputs named {missing}; available: {available}")
            self.output_names = list(cfg.output_names)

    @property
    def providers_in_use(self) -> Sequence[str]:
        return tuple(self.session.get_providers())

    @property
    def available_providers(self) -> Sequence[str]:
        return tuple(self._ort.get_available_providers())

    def run(self, blob: np.ndarray) -> Dict[str, np.ndarray]:
        outputs = self.session.run(self.output_names, {self.input_name: blob})
        return dict(zip(self.output_names, outputs))
