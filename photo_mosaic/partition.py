"""Split a model image into a grid of chunks and colour each chunk."""

from __future__ import annotations

import math

import numpy as np

from photo_mosaic.color_utils import ColorStrategy, average_color

Box = tuple[int, int, int, int]  # left, top, right, bottom


def grid_shape(
    width: int,
    height: int,
    chunk_w: int,
    chunk_h: int,
    edge_policy: str = "drop",
) -> tuple[int, int]:
    """Number of chunk (columns, rows) covering a *width* x *height* image.

    ``"drop"`` counts whole chunks only; ``"clamp"`` also counts the
    partial chunks along the right and bottom edges.
    """
    if chunk_w < 1 or chunk_h < 1:
        msg = f"Chunk size must be positive, got {chunk_w}x{chunk_h}"
        raise ValueError(msg)
    if edge_policy == "drop":
        return width // chunk_w, height // chunk_h
    if edge_policy == "clamp":
        return math.ceil(width / chunk_w), math.ceil(height / chunk_h)
    msg = f"Unknown edge policy '{edge_policy}'. Available: drop, clamp"
    raise ValueError(msg)


def chunk_boxes(
    width: int,
    height: int,
    chunk_w: int,
    chunk_h: int,
    edge_policy: str = "drop",
) -> list[Box]:
    """Chunk boxes in row-major order, each cropped to the image bounds."""
    cols, rows = grid_shape(width, height, chunk_w, chunk_h, edge_policy)
    return [
        (
            col * chunk_w,
            row * chunk_h,
            min((col + 1) * chunk_w, width),
            min((row + 1) * chunk_h, height),
        )
        for row in range(rows)
        for col in range(cols)
    ]


def chunk_colors(
    model: np.ndarray,
    chunk_w: int,
    chunk_h: int,
    strategy: ColorStrategy = average_color,
    edge_policy: str = "drop",
) -> np.ndarray:
    """Representative colour of every chunk of *model*.

    Args:
        model:       (H, W, 3) uint8 image.
        chunk_w:     Chunk width in pixels.
        chunk_h:     Chunk height in pixels.
        strategy:    Colour extractor applied to each chunk region.
        edge_policy: ``"drop"`` or ``"clamp"`` (see :func:`grid_shape`).

    Returns:
        (N, 3) uint8 colours in row-major chunk order.
    """
    h, w = model.shape[:2]
    boxes = chunk_boxes(w, h, chunk_w, chunk_h, edge_policy)
    colors = np.empty((len(boxes), 3), dtype=np.uint8)
    for i, (left, top, right, bottom) in enumerate(boxes):
        colors[i] = strategy(model[top:bottom, left:right])
    return colors
