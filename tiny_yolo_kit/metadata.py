from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple, Union

PathLike = Union[str, Path]


def _parse_names_mapping(text: str) -> Tuple[str, ...]:
    """
    Parse the `names:` block of an Ultralytics-style metadata.yaml:

        names:
          0: person
          1: bicycle

    Ids must run from 0 without gaps since label position is the class id.
    """

    names: Dict[int, str] = {}
    in_names = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line == "names:":
            in_names = True
            continue
        if not in_names or ":" not in line:
            continue
        left, right = line.split(":", 1)
        left = left.strip()
        if not left.isdigit():
            continue
        names[int(left)] = right.strip().strip("'").strip('"')

    if sorted(names) != list(range(len(names))):
        raise ValueError("class ids in names mapping must be contiguous from 0")
    return tuple(names[i] for i in range(len(names)))


def load_labels(path: PathLike) -> Tuple[str, ...]:
    """
    Load the class label table. Plain text files hold one name per line
    (line number = class id); `.yaml`/`.yml` files use a `names:` mapping.
    """

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Label file not found: {path}")
    text = path.read_text(encoding="utf-8")

    if path.suffix.lower() in {".yaml", ".yml"}:
        labels = _parse_names_mapping(text)
    else:
        lines = [line.rstrip("\r") for line in text.split("\n")]
        while lines and not lines[-1].strip():
            lines.pop()
        labels = tuple(lines)

    if not labels:
        raise ValueError(f"No class labels found in {path}")
    return labels
