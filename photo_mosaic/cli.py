"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from photo_mosaic.catalogue import Catalogue, load_catalogue, save_catalogue
from photo_mosaic.compositor import MissingTileError, create_mosaic
from photo_mosaic.config import MosaicConfig
from photo_mosaic.image_io import load_image
from photo_mosaic.matcher import EmptyCatalogueError
from photo_mosaic.preprocess import preprocess_pictures

app = typer.Typer(
    name="photo-mosaic",
    help="Build photo mosaics from a gallery of pictures.",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _collect_files(folder: Path, exclude: Path | None = None) -> list[Path]:
    """Regular files under *folder*, recursively, in sorted order."""
    if not folder.is_dir():
        return []
    excluded = exclude.resolve() if exclude is not None else None
    return sorted(
        f for f in folder.rglob("*")
        if f.is_file()
        and (excluded is None or excluded not in f.resolve().parents)
    )


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- preprocess command ------------------------------------------------

@app.command()
def preprocess(
    gallery_folder: Path = typer.Argument(..., help="Path of your gallery"),
    output_folder: Path = typer.Argument(
        ..., help="Output folder for the processed images",
    ),
    thumb_size: int = typer.Option(
        _DEFAULTS.thumbnail_size, "--thumb-size", "-t",
        help="Longest side of each thumbnail",
    ),
    contrast: float = typer.Option(
        _DEFAULTS.contrast, "--contrast", help="Thumbnail contrast boost (0 = off)",
    ),
    color_strategy: str = typer.Option(
        _DEFAULTS.color_strategy, "--color-strategy",
        help="'average' or 'median_cut'",
    ),
    workers: int = typer.Option(
        _DEFAULTS.workers, "--workers", "-w", help="Parallel worker threads",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Recursively traverse GALLERY_FOLDER and preprocess every image file."""
    _setup_logging(verbose)

    try:
        cfg = MosaicConfig(
            thumbnail_size=thumb_size,
            contrast=contrast,
            color_strategy=color_strategy,
            workers=workers,
        ).validate()
    except ValueError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    files = _collect_files(gallery_folder, exclude=output_folder)
    if not files:
        output_folder.mkdir(parents=True, exist_ok=True)
        path = save_catalogue(
            Catalogue(thumbnail_size=cfg.thumbnail_size, color_strategy=cfg.color_strategy),
            output_folder, cfg.metadata_filename,
        )
        console.print(f"\n[yellow]No files found in {gallery_folder}/[/yellow]")
        console.print(f"Empty catalogue written to {path}\n")
        raise typer.Exit(0)

    console.print(Panel.fit(
        f"[bold]PHOTO MOSAIC - PREPROCESS[/bold]\n"
        f"Files: {len(files)}  |  Thumbnail: {cfg.thumbnail_size}px\n"
        f"Colour: {cfg.color_strategy}  |  Contrast: {cfg.contrast:+.0f}"
        f"  |  Workers: {cfg.workers}",
        border_style="cyan",
    ))

    t0 = time.perf_counter()
    report = preprocess_pictures(files, output_folder, cfg)
    catalogue = report.to_catalogue(cfg)
    path = save_catalogue(catalogue, output_folder, cfg.metadata_filename)
    elapsed = time.perf_counter() - t0

    ratios = ", ".join(
        f"{ratio}: {count}" for ratio, count in catalogue.ratios().items()
    )
    console.print(Panel.fit(
        f"[bold green]DONE[/bold green] - {len(report.entries)} pictures "
        f"catalogued in [bold]{path}[/bold]  [dim]time={elapsed:.1f}s[/dim]\n"
        f"Ratios: {ratios or '-'}\n"
        f"Skipped: {len(report.failures)}",
        border_style="green",
    ))
    for failed, reason in report.failures:
        console.print(f"  [yellow]skipped[/yellow] {failed} [dim]{reason}[/dim]")


# -- create command ----------------------------------------------------

@app.command()
def create(
    preprocessed_folder: Path = typer.Argument(
        ..., help="Folder with the preprocessed pictures",
    ),
    model: Path = typer.Argument(..., help="Path of the model image"),
    output_image: Path = typer.Argument(..., help="Output path of the mosaic"),
    chunk_size: int = typer.Option(
        _DEFAULTS.chunk_size, "--chunk-size", "-c",
        help="Longest side of a model chunk replaced by one thumbnail",
    ),
    metric: str = typer.Option(
        _DEFAULTS.metric, "--metric", help="'uniform', 'perceptual' or 'lab'",
    ),
    edge_policy: str = typer.Option(
        _DEFAULTS.edge_policy, "--edge-policy",
        help="'drop' or 'clamp' partial chunks at the model edges",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Create a photo mosaic from a preprocessed gallery and a model image."""
    _setup_logging(verbose)

    try:
        cfg = MosaicConfig(
            chunk_size=chunk_size, metric=metric, edge_policy=edge_policy,
        ).validate()
        catalogue = load_catalogue(preprocessed_folder, cfg.metadata_filename)
        target = load_image(model)
    except (OSError, ValueError) as exc:
        # CatalogueFormatError is a ValueError too
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    t0 = time.perf_counter()
    try:
        mosaic = create_mosaic(target, catalogue, preprocessed_folder, cfg)
    except EmptyCatalogueError as exc:
        err_console.print(str(exc), markup=False, highlight=False)
        raise typer.Exit(1) from exc
    except MissingTileError as exc:
        err_console.print(
            f"[bold red]Catalogue inconsistency:[/bold red] {escape(str(exc))}",
        )
        raise typer.Exit(2) from exc
    except ValueError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc

    output_image.parent.mkdir(parents=True, exist_ok=True)
    mosaic.save(output_image)
    elapsed = time.perf_counter() - t0

    console.print(
        f"[green]✓[/green] Saved to {output_image}  "
        f"[dim]{mosaic.width}x{mosaic.height} px  time={elapsed:.1f}s[/dim]"
    )


if __name__ == "__main__":
    app()
