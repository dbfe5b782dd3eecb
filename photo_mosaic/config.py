"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass

from photo_mosaic.color_utils import COLOR_STRATEGIES, METRICS

EDGE_POLICIES = ("drop", "clamp")


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for preprocessing and mosaic creation.

    Attributes:
        thumbnail_size:    Longest side of each stored thumbnail (tile).
        chunk_size:        Longest side of each model chunk analysed for colour.
        contrast:          Contrast boost applied to thumbnails (0 = none).
        color_strategy:    Representative colour - "average" or "median_cut".
        metric:            Colour distance - "uniform", "perceptual" or "lab".
        edge_policy:       "drop" partial chunks at the model edges or "clamp" them.
        workers:           Threads used for preprocessing (1 = sequential).
        metadata_filename: Catalogue file name inside the processed folder.
    """

    # Geometry
    thumbnail_size: int = 64
    chunk_size: int = 8

    # Preprocessing
    contrast: float = 20.0
    color_strategy: str = "average"  # see color_utils.COLOR_STRATEGIES
    workers: int = 1

    # Matching
    metric: str = "uniform"  # see color_utils.METRICS
    edge_policy: str = "drop"

    # Persistence
    metadata_filename: str = "mosaic.json"

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp", ".gif"}
    )

    def validate(self) -> MosaicConfig:
        """Raise ``ValueError`` on unknown option names or bad sizes."""
        if self.thumbnail_size < 1 or self.chunk_size < 1:
            msg = "thumbnail_size and chunk_size must be positive"
            raise ValueError(msg)
        if self.workers < 1:
            msg = "workers must be at least 1"
            raise ValueError(msg)
        if self.color_strategy not in COLOR_STRATEGIES:
            available = ", ".join(sorted(COLOR_STRATEGIES))
            msg = f"Unknown colour strategy '{self.color_strategy}'. Available: {available}"
            raise ValueError(msg)
        if self.metric not in METRICS:
            available = ", ".join(METRICS)
            msg = f"Unknown metric '{self.metric}'. Available: {available}"
            raise ValueError(msg)
        if self.edge_policy not in EDGE_POLICIES:
            available = ", ".join(EDGE_POLICIES)
            msg = f"Unknown edge policy '{self.edge_policy}'. Available: {available}"
            raise ValueError(msg)
        return self
