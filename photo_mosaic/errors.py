"""Exception hierarchy shared by the preprocessing and mosaic stages."""

from __future__ import annotations


class MosaicError(Exception):
    """Base class for every error raised by :mod:`photo_mosaic`."""
