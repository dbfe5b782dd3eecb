"""Assemble the final mosaic from matched thumbnails."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import numpy as np
from PIL import Image

from photo_mosaic.catalogue import Catalogue
from photo_mosaic.color_utils import get_color_strategy
from photo_mosaic.config import MosaicConfig
from photo_mosaic.errors import MosaicError
from photo_mosaic.matcher import EmptyCatalogueError, match_colors
from photo_mosaic.partition import chunk_colors, grid_shape
from photo_mosaic.ratio import dimensions_for, reduce_ratio

logger = logging.getLogger(__name__)


class MissingTileError(MosaicError):
    """A catalogued thumbnail is missing or unreadable on disk."""


def _load_tile(path: Path, size: tuple[int, int]) -> Image.Image:
    try:
        with Image.open(path) as img:
            tile = img.convert("RGB")
    except OSError as exc:
        msg = (
            f"Thumbnail {path} is listed in the catalogue but cannot be read "
            f"({exc}); was the catalogue built for another folder?"
        )
        raise MissingTileError(msg) from exc
    if tile.size != size:
        logger.debug("Resampling %s from %s to %s", path.name, tile.size, size)
        tile = tile.resize(size, Image.LANCZOS)
    return tile


def create_mosaic(
    model: np.ndarray,
    catalogue: Catalogue,
    processed_dir: str | Path,
    cfg: MosaicConfig | None = None,
) -> Image.Image:
    """Rebuild *model* from the catalogue's thumbnails.

    Only entries sharing the model's aspect ratio are candidates. The model
    is cut into chunks of that ratio (longest side ``cfg.chunk_size``) and
    every chunk is replaced by the thumbnail whose colour is closest. The
    canvas is a whole number of thumbnail cells in each axis.

    Args:
        model:         (H, W, 3) uint8 model image.
        catalogue:     Loaded catalogue of the processed folder.
        processed_dir: Folder holding the thumbnails named in the catalogue.
        cfg:           Chunk size, metric and edge policy.

    Raises:
        EmptyCatalogueError: no entry has the model's ratio.
        MissingTileError: a matched thumbnail cannot be read.
        ValueError: the model is smaller than a single chunk.
    """
    cfg = (cfg or MosaicConfig()).validate()
    processed_dir = Path(processed_dir)
    h, w = model.shape[:2]
    ratio = reduce_ratio(w, h)

    entries = catalogue.with_ratio(ratio)
    if not entries:
        raise EmptyCatalogueError(ratio)
    logger.info("%d pictures found with the same ratio (%s)", len(entries), ratio)

    chunk_w, chunk_h = dimensions_for(ratio, cfg.chunk_size)
    thumb_w, thumb_h = dimensions_for(ratio, catalogue.thumbnail_size)
    cols, rows = grid_shape(w, h, chunk_w, chunk_h, cfg.edge_policy)
    if cols == 0 or rows == 0:
        msg = f"Model {w}x{h} is smaller than one {chunk_w}x{chunk_h} chunk"
        raise ValueError(msg)

    t0 = time.perf_counter()
    strategy = get_color_strategy(catalogue.color_strategy)
    colors = chunk_colors(model, chunk_w, chunk_h, strategy, cfg.edge_policy)
    logger.info(
        "%dx%d chunks of %dx%d analysed (%s, %.1f s)",
        cols, rows, chunk_w, chunk_h, catalogue.color_strategy,
        time.perf_counter() - t0,
    )

    t0 = time.perf_counter()
    matches = match_colors(entries, colors, cfg.metric)
    logger.info("Chunks matched (%s, %.1f s)", cfg.metric, time.perf_counter() - t0)

    canvas = Image.new("RGB", (cols * thumb_w, rows * thumb_h))
    tiles: dict[str, Image.Image] = {}
    x = y = 0
    for idx in matches:
        name = entries[idx].path
        tile = tiles.get(name)
        if tile is None:
            tile = _load_tile(processed_dir / name, (thumb_w, thumb_h))
            tiles[name] = tile
        canvas.paste(tile, (x, y))

        x += thumb_w
        if x >= canvas.width:
            x = 0
            y += thumb_h

    logger.info(
        "Mosaic %dx%d built from %d distinct thumbnails",
        canvas.width, canvas.height, len(tiles),
    )
    return canvas
