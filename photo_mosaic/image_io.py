"""Image decoding, thumbnail generation, contrast and saving."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image


def load_image(path: str | Path) -> np.ndarray:
    """Decode any Pillow-readable file into an RGB array.

    Alpha is dropped. Raises ``OSError`` (``UnidentifiedImageError``
    included) when the file is not a readable image.

    Returns:
        (H, W, 3) uint8 array.
    """
    with Image.open(path) as img:
        return np.array(img.convert("RGB"), dtype=np.uint8)


def adjust_contrast(array: np.ndarray, contrast: float) -> np.ndarray:
    """Stretch channel values away from mid-grey.

    *contrast* is a percentage: each value ``v`` becomes
    ``((v / 255 - 0.5) * ((100 + contrast) / 100) ** 2 + 0.5) * 255``,
    clipped to 0-255. Negative values reduce contrast.
    """
    if contrast == 0:
        return array
    factor = ((100.0 + contrast) / 100.0) ** 2
    out = ((array.astype(np.float64) / 255.0 - 0.5) * factor + 0.5) * 255.0
    return np.clip(out, 0, 255).astype(np.uint8)


def make_thumbnail(
    array: np.ndarray,
    size: tuple[int, int],
    contrast: float = 0.0,
) -> np.ndarray:
    """Resample an RGB array to *size* (w, h) and apply *contrast*."""
    img = Image.fromarray(array)
    if img.size != size:
        img = img.resize(size, Image.LANCZOS)
    return adjust_contrast(np.array(img, dtype=np.uint8), contrast)


def save_image(array: np.ndarray, path: str | Path) -> None:
    """Encode an RGB array; the format follows the file extension."""
    Image.fromarray(array.astype(np.uint8)).save(path)
