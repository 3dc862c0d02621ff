"""
Optional inference backends for tiny_yolo_kit.

Backends are kept in a separate module so the decode/suppress core stays
lightweight and can be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
