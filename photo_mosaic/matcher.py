"""Nearest-colour search over catalogue entries."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from photo_mosaic.catalogue import CatalogueEntry
from photo_mosaic.color_utils import RGB, color_distance, compute_distance_matrix
from photo_mosaic.errors import MosaicError
from photo_mosaic.ratio import Ratio


class EmptyCatalogueError(MosaicError):
    """No catalogue entry is available to match against."""

    def __init__(self, ratio: Ratio | None = None) -> None:
        self.ratio = ratio
        if ratio is None:
            msg = "No processed pictures to match against"
        else:
            msg = f"No processed pictures found with the same ratio ({ratio})"
        super().__init__(msg)


def find_closest(
    entries: Sequence[CatalogueEntry],
    color: RGB,
    metric: str = "uniform",
) -> CatalogueEntry:
    """Entry whose colour is closest to *color*.

    Linear scan that stops at the first exact match. Ties resolve to the
    earliest entry.
    """
    if not entries:
        raise EmptyCatalogueError
    best = entries[0]
    best_dist = color_distance(best.color, color, metric)
    if best_dist == 0:
        return best
    for entry in entries[1:]:
        dist = color_distance(entry.color, color, metric)
        if dist == 0:
            return entry
        if dist < best_dist:
            best, best_dist = entry, dist
    return best


def match_colors(
    entries: Sequence[CatalogueEntry],
    colors: np.ndarray,
    metric: str = "uniform",
    batch_size: int = 1024,
) -> list[int]:
    """Index into *entries* of the closest entry for each of *colors*.

    Vectorised equivalent of :func:`find_closest`: ``argmin`` returns the
    first minimum, so ties resolve the same way. Distances are computed
    *batch_size* query colours at a time to bound peak memory.
    """
    if not entries:
        raise EmptyCatalogueError
    colors = np.asarray(colors, dtype=np.uint8).reshape(-1, 3)
    if len(colors) == 0:
        return []
    palette = np.array([e.color for e in entries], dtype=np.uint8)
    best: list[int] = []
    for i in range(0, len(colors), batch_size):
        dist = compute_distance_matrix(colors[i : i + batch_size], palette, metric)
        best.extend(int(j) for j in np.argmin(dist, axis=1))
    return best
