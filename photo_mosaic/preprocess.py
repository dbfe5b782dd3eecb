"""Gallery preprocessing: thumbnail, colour and ratio for every picture."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from photo_mosaic.catalogue import Catalogue, CatalogueEntry
from photo_mosaic.color_utils import get_color_strategy
from photo_mosaic.config import MosaicConfig
from photo_mosaic.image_io import load_image, make_thumbnail, save_image
from photo_mosaic.ratio import dimensions_for, reduce_ratio

logger = logging.getLogger(__name__)


@dataclass
class PreprocessReport:
    """Successfully processed entries plus the files that were skipped."""

    entries: list[CatalogueEntry] = field(default_factory=list)
    failures: list[tuple[Path, str]] = field(default_factory=list)

    def to_catalogue(self, cfg: MosaicConfig) -> Catalogue:
        return Catalogue(
            pictures=list(self.entries),
            thumbnail_size=cfg.thumbnail_size,
            color_strategy=cfg.color_strategy,
        )


def _thumbnail_names(files: Sequence[Path]) -> list[str]:
    """Output names keyed on base name, suffixed when a name repeats."""
    used: set[str] = set()
    names = []
    for path in files:
        name = path.name
        n = 1
        while name.lower() in used:
            name = f"{path.stem}-{n}{path.suffix}"
            n += 1
        used.add(name.lower())
        names.append(name)
    return names


def process_picture(
    path: Path,
    thumb_path: Path,
    cfg: MosaicConfig,
) -> CatalogueEntry | str:
    """Process one picture.

    Returns:
        The new entry, or a short reason string when the file is skipped.
    """
    try:
        pixels = load_image(path)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        return f"cannot decode: {exc}"

    h, w = pixels.shape[:2]
    try:
        ratio = reduce_ratio(w, h)
    except ValueError as exc:
        return str(exc)

    thumb = make_thumbnail(
        pixels, dimensions_for(ratio, cfg.thumbnail_size), cfg.contrast,
    )
    try:
        save_image(thumb, thumb_path)
    except (OSError, ValueError, KeyError) as exc:
        # Pillow raises KeyError/ValueError for extensions it cannot write
        thumb_path.unlink(missing_ok=True)
        return f"cannot save thumbnail: {exc}"

    color = get_color_strategy(cfg.color_strategy)(pixels)
    return CatalogueEntry(path=thumb_path.name, color=color, ratio=ratio)


def preprocess_pictures(
    files: Sequence[str | Path],
    output_dir: str | Path,
    cfg: MosaicConfig | None = None,
) -> PreprocessReport:
    """Build catalogue entries for *files*, writing thumbnails to *output_dir*.

    Unreadable files and thumbnails that cannot be written are reported in
    :attr:`PreprocessReport.failures`; they never abort the batch. Entries
    keep the order of *files* even when ``cfg.workers > 1``.
    """
    cfg = (cfg or MosaicConfig()).validate()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    paths = [Path(f) for f in files]
    thumb_paths = [output_dir / name for name in _thumbnail_names(paths)]
    total = len(paths)

    def work(i: int) -> CatalogueEntry | str:
        return process_picture(paths[i], thumb_paths[i], cfg)

    report = PreprocessReport()
    if cfg.workers > 1:
        with ThreadPoolExecutor(max_workers=cfg.workers) as ex:
            # map() yields in submission order
            _collect(report, paths, ex.map(work, range(total)))
    else:
        _collect(report, paths, map(work, range(total)))
    return report


def _collect(
    report: PreprocessReport,
    paths: list[Path],
    results: Iterable[CatalogueEntry | str],
) -> None:
    total = len(paths)
    for i, (path, result) in enumerate(zip(paths, results, strict=True), 1):
        if isinstance(result, CatalogueEntry):
            r, g, b = result.color
            logger.info("[%d/%d] %s rgb: (%d, %d, %d)", i, total, path, r, g, b)
            report.entries.append(result)
        else:
            logger.warning("[%d/%d] %s skip (%s)", i, total, path, result)
            report.failures.append((path, result))
