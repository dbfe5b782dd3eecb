"""Aspect-ratio reduction and ratio-driven cell geometry."""

from __future__ import annotations

import math
from typing import NamedTuple


class Ratio(NamedTuple):
    """Width:height reduced to lowest terms."""

    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}/{self.height}"


def reduce_ratio(width: int, height: int) -> Ratio:
    """Reduce *width* x *height* by their greatest common divisor.

    Raises:
        ValueError: if the size has zero area or a negative side.
    """
    if width <= 0 or height <= 0:
        msg = f"Cannot compute the ratio of a {width}x{height} image"
        raise ValueError(msg)
    gcd = math.gcd(width, height)
    return Ratio(width // gcd, height // gcd)


def dimensions_for(ratio: Ratio, size: int) -> tuple[int, int]:
    """Concrete (w, h) for *ratio* whose longest side is *size*.

    Landscape ratios fix the width at *size*; portrait and square ratios
    fix the height. The other side is truncated, minimum 1.
    """
    rw, rh = ratio
    if rw > rh:
        return size, max(1, size * rh // rw)
    return max(1, size * rw // rh), size
