"""Catalogue of preprocessed pictures and its JSON persistence.

The catalogue lives next to the thumbnails as ``mosaic.json``::

    {
      "version": 1,
      "thumbnail_size": 64,
      "color_strategy": "average",
      "pictures": [
        {"path": "beach.jpg", "color_rgb": [112, 140, 171],
         "ratio_width": 4, "ratio_height": 3}
      ]
    }

Colours are stored per channel. Documents written before the format was
versioned carry no ``version`` key and are read as version 1.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from photo_mosaic.color_utils import RGB
from photo_mosaic.errors import MosaicError
from photo_mosaic.ratio import Ratio

logger = logging.getLogger(__name__)

CATALOGUE_VERSION = 1


class CatalogueFormatError(MosaicError, ValueError):
    """The catalogue document cannot be interpreted."""


@dataclass(frozen=True)
class CatalogueEntry:
    """One preprocessed picture: its thumbnail, colour and aspect ratio."""

    path: str
    color: RGB
    ratio: Ratio

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "color_rgb": list(self.color),
            "ratio_width": self.ratio.width,
            "ratio_height": self.ratio.height,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CatalogueEntry:
        if "color_rgb" not in data:
            if "color" in data:
                msg = (
                    f"Entry {data.get('path')!r} uses a packed 'color' integer; "
                    "only per-channel 'color_rgb' is supported"
                )
            else:
                msg = f"Entry {data.get('path')!r} has no 'color_rgb'"
            raise CatalogueFormatError(msg)
        try:
            r, g, b = (int(c) for c in data["color_rgb"])
            ratio = Ratio(int(data["ratio_width"]), int(data["ratio_height"]))
            path = str(data["path"])
        except (KeyError, TypeError, ValueError) as exc:
            msg = f"Malformed catalogue entry {data!r}: {exc}"
            raise CatalogueFormatError(msg) from exc
        if not all(0 <= c <= 255 for c in (r, g, b)):
            msg = f"Entry {path!r} has an out-of-range colour {(r, g, b)}"
            raise CatalogueFormatError(msg)
        if ratio.width <= 0 or ratio.height <= 0:
            msg = f"Entry {path!r} has an invalid ratio {ratio}"
            raise CatalogueFormatError(msg)
        if math.gcd(*ratio) != 1:
            msg = f"Entry {path!r} has a ratio {ratio} not in lowest terms"
            raise CatalogueFormatError(msg)
        return cls(path=path, color=(r, g, b), ratio=ratio)


@dataclass
class Catalogue:
    """Ordered pictures plus the settings they were preprocessed with."""

    pictures: list[CatalogueEntry] = field(default_factory=list)
    thumbnail_size: int = 64
    color_strategy: str = "average"

    def __len__(self) -> int:
        return len(self.pictures)

    def with_ratio(self, ratio: Ratio) -> list[CatalogueEntry]:
        """Entries whose ratio equals *ratio*, in catalogue order."""
        return [p for p in self.pictures if p.ratio == ratio]

    def ratios(self) -> dict[Ratio, int]:
        """Number of entries per ratio, in first-seen order."""
        counts: dict[Ratio, int] = {}
        for p in self.pictures:
            counts[p.ratio] = counts.get(p.ratio, 0) + 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": CATALOGUE_VERSION,
            "thumbnail_size": self.thumbnail_size,
            "color_strategy": self.color_strategy,
            "pictures": [p.to_dict() for p in self.pictures],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Catalogue:
        if not isinstance(data, dict) or not isinstance(data.get("pictures"), list):
            msg = "Catalogue must be an object with a 'pictures' list"
            raise CatalogueFormatError(msg)
        version = data.get("version", CATALOGUE_VERSION)
        if version != CATALOGUE_VERSION:
            msg = f"Unsupported catalogue version {version!r} (expected {CATALOGUE_VERSION})"
            raise CatalogueFormatError(msg)
        return cls(
            pictures=[CatalogueEntry.from_dict(p) for p in data["pictures"]],
            thumbnail_size=int(data.get("thumbnail_size", 64)),
            color_strategy=str(data.get("color_strategy", "average")),
        )


def save_catalogue(
    catalogue: Catalogue,
    folder: str | Path,
    filename: str = "mosaic.json",
) -> Path:
    """Write *catalogue* as pretty-printed JSON into *folder*."""
    path = Path(folder) / filename
    with path.open("w", encoding="utf-8") as f:
        json.dump(catalogue.to_dict(), f, indent=2)
    logger.debug("Catalogue with %d pictures written to %s", len(catalogue), path)
    return path


def load_catalogue(folder: str | Path, filename: str = "mosaic.json") -> Catalogue:
    """Read the catalogue stored in *folder*.

    Raises:
        FileNotFoundError: if the catalogue file does not exist.
        CatalogueFormatError: if the document is not a valid catalogue.
    """
    path = Path(folder) / filename
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            msg = f"{path} is not valid JSON: {exc}"
            raise CatalogueFormatError(msg) from exc
    catalogue = Catalogue.from_dict(data)
    logger.debug("Loaded %d pictures from %s", len(catalogue), path)
    return catalogue
