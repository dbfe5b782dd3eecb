"""
Photo Mosaic Generator
======================

Rebuild a model image from a gallery of photographs. Two stages:

- **preprocess** - thumbnail, representative colour and aspect ratio of
  every picture, stored as a JSON catalogue
- **create** - cut the model into chunks of its own ratio and replace each
  chunk by the thumbnail of closest colour
"""

__version__ = "1.0.0"

from photo_mosaic.catalogue import Catalogue, CatalogueEntry, load_catalogue, save_catalogue
from photo_mosaic.color_utils import average_color, color_distance, dominant_color
from photo_mosaic.compositor import MissingTileError, create_mosaic
from photo_mosaic.config import MosaicConfig
from photo_mosaic.errors import MosaicError
from photo_mosaic.matcher import EmptyCatalogueError, find_closest, match_colors
from photo_mosaic.partition import chunk_colors
from photo_mosaic.preprocess import PreprocessReport, preprocess_pictures
from photo_mosaic.ratio import Ratio, dimensions_for, reduce_ratio

__all__ = [
    "Catalogue",
    "CatalogueEntry",
    "EmptyCatalogueError",
    "MissingTileError",
    "MosaicConfig",
    "MosaicError",
    "PreprocessReport",
    "Ratio",
    "average_color",
    "chunk_colors",
    "color_distance",
    "create_mosaic",
    "dimensions_for",
    "dominant_color",
    "find_closest",
    "load_catalogue",
    "match_colors",
    "preprocess_pictures",
    "reduce_ratio",
    "save_catalogue",
]
