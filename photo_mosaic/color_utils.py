"""Representative-colour extraction and colour distances."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache

import numpy as np
from PIL import Image
from scipy.spatial.distance import cdist
from skimage.color import rgb2lab

RGB = tuple[int, int, int]
ColorStrategy = Callable[[np.ndarray], RGB]

# Per-channel weights in R, G, B order
CHANNEL_WEIGHTS: dict[str, tuple[int, int, int]] = {
    "uniform": (1, 1, 1),
    "perceptual": (22, 43, 34),
}
METRICS = ("uniform", "perceptual", "lab")

MEDIAN_CUT_BUCKETS = 256


def _as_pixels(pixels: np.ndarray) -> np.ndarray:
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        msg = f"Expected an (H, W, 3) RGB array, got shape {pixels.shape}"
        raise ValueError(msg)
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        msg = "Cannot extract a colour from an empty region"
        raise ValueError(msg)
    return pixels


def average_color(pixels: np.ndarray) -> RGB:
    """Per-channel mean of an (H, W, 3) region, truncated to integers."""
    flat = _as_pixels(pixels).reshape(-1, 3)
    sums = flat.sum(axis=0, dtype=np.uint64)
    r, g, b = (int(s) // len(flat) for s in sums)
    return r, g, b


def dominant_color(pixels: np.ndarray, max_colors: int = MEDIAN_CUT_BUCKETS) -> RGB:
    """Centroid of the most populous median-cut bucket.

    The region is quantised with Pillow's median-cut algorithm into at most
    *max_colors* buckets; ties between buckets go to the lowest palette index.
    """
    img = Image.fromarray(np.ascontiguousarray(_as_pixels(pixels), dtype=np.uint8))
    quantized = img.quantize(colors=max_colors, method=Image.Quantize.MEDIANCUT)
    counts = np.bincount(np.asarray(quantized).ravel())
    idx = int(np.argmax(counts))
    palette = quantized.getpalette()
    r, g, b = palette[idx * 3 : idx * 3 + 3]
    return r, g, b


COLOR_STRATEGIES: dict[str, ColorStrategy] = {
    "average": average_color,
    "median_cut": dominant_color,
}


def get_color_strategy(name: str) -> ColorStrategy:
    """Look up a colour extraction strategy by name."""
    strategy = COLOR_STRATEGIES.get(name)
    if strategy is None:
        available = ", ".join(sorted(COLOR_STRATEGIES))
        msg = f"Unknown colour strategy '{name}'. Available: {available}"
        raise ValueError(msg)
    return strategy


def rgb_to_lab(rgb: np.ndarray) -> np.ndarray:
    """Convert flat (N, 3) uint8 RGB → (N, 3) float64 CIELAB."""
    return rgb2lab(rgb.astype(np.float64).reshape(1, -1, 3) / 255.0).reshape(-1, 3)


@lru_cache(maxsize=1 << 16)
def _lab(color: RGB) -> tuple[float, float, float]:
    l_, a, b = rgb_to_lab(np.array([color], dtype=np.uint8))[0]
    return float(l_), float(a), float(b)


def _colors_to_lab(colors: np.ndarray) -> np.ndarray:
    # Converted one colour at a time so a colour maps to the same vector
    # whatever batch it arrives in
    return np.array(
        [_lab((int(r), int(g), int(b))) for r, g, b in colors], dtype=np.float64,
    ).reshape(-1, 3)


def _weights(metric: str) -> np.ndarray:
    weights = CHANNEL_WEIGHTS.get(metric)
    if weights is None:
        msg = f"Unknown metric '{metric}'. Available: {', '.join(METRICS)}"
        raise ValueError(msg)
    return np.asarray(weights, dtype=np.float64)


def color_distance(c1: RGB, c2: RGB, metric: str = "uniform") -> float:
    """Distance between two colours.

    For the weighted RGB metrics this is
    ``sqrt(sum((w_i * (c1_i - c2_i)) ** 2))``; ``"lab"`` is the Euclidean
    distance in CIELAB.
    """
    if metric == "lab":
        return float(compute_distance_matrix(np.array([c1]), np.array([c2]), "lab")[0, 0])
    w = _weights(metric)
    diff = w * (np.asarray(c1, dtype=np.float64) - np.asarray(c2, dtype=np.float64))
    return float(np.sqrt(np.sum(diff ** 2)))


def compute_distance_matrix(
    colors: np.ndarray,
    candidates: np.ndarray,
    metric: str = "uniform",
) -> np.ndarray:
    """Pairwise distances between query colours and candidate colours.

    Args:
        colors:     (N, 3) uint8 RGB queries.
        candidates: (M, 3) uint8 RGB candidates.
        metric:     one of :data:`METRICS`.

    Returns:
        (N, M) float64 distance matrix.
    """
    colors = np.asarray(colors, dtype=np.uint8).reshape(-1, 3)
    candidates = np.asarray(candidates, dtype=np.uint8).reshape(-1, 3)
    if metric == "lab":
        return cdist(_colors_to_lab(colors), _colors_to_lab(candidates), "euclidean")
    # Squared terms stay exact integers in float64, so ties compare equal
    w = _weights(metric)
    sq = cdist(
        colors.astype(np.float64), candidates.astype(np.float64),
        "sqeuclidean", w=w ** 2,
    )
    return np.sqrt(sq)
