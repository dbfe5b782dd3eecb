"""Tests for the photo_mosaic building blocks."""

from __future__ import annotations

import json
import math
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from photo_mosaic.catalogue import (
    Catalogue,
    CatalogueEntry,
    CatalogueFormatError,
    load_catalogue,
    save_catalogue,
)
from photo_mosaic.color_utils import (
    average_color,
    color_distance,
    compute_distance_matrix,
    dominant_color,
    get_color_strategy,
)
from photo_mosaic.config import MosaicConfig
from photo_mosaic.image_io import adjust_contrast, load_image, make_thumbnail
from photo_mosaic.matcher import EmptyCatalogueError, find_closest, match_colors
from photo_mosaic.partition import chunk_boxes, chunk_colors, grid_shape
from photo_mosaic.preprocess import _thumbnail_names, preprocess_pictures
from photo_mosaic.ratio import Ratio, dimensions_for, reduce_ratio

STRATEGIES = ["average", "median_cut"]
METRICS = ["uniform", "perceptual", "lab"]
RGB_METRICS = ["uniform", "perceptual"]

# -- Fixtures ----------------------------------------------------------


def _solid(w: int, h: int, color: tuple[int, int, int]) -> np.ndarray:
    arr = np.empty((h, w, 3), dtype=np.uint8)
    arr[:] = color
    return arr


def _entry(path: str, color: tuple[int, int, int], ratio=Ratio(1, 1)) -> CatalogueEntry:
    return CatalogueEntry(path=path, color=color, ratio=ratio)


@pytest.fixture
def random_entries() -> list[CatalogueEntry]:
    rng = np.random.default_rng(7)
    colors = rng.integers(0, 256, size=(40, 3))
    return [_entry(f"p{i}.png", tuple(int(c) for c in col)) for i, col in enumerate(colors)]


@pytest.fixture
def gallery(tmp_path: Path) -> list[Path]:
    """Three small PNGs: two landscape 4:3, one portrait 9:16."""
    folder = tmp_path / "gallery"
    folder.mkdir()
    specs = [("a.png", 40, 30, (200, 10, 10)), ("b.png", 18, 32, (10, 200, 10)),
             ("c.png", 80, 60, (10, 10, 200))]
    paths = []
    for name, w, h, color in specs:
        p = folder / name
        Image.fromarray(_solid(w, h, color)).save(p)
        paths.append(p)
    return paths


# -- Config ------------------------------------------------------------

class TestConfig:
    def test_defaults(self) -> None:
        cfg = MosaicConfig()
        assert cfg.thumbnail_size == 64
        assert cfg.chunk_size == 8
        assert cfg.metadata_filename == "mosaic.json"

    def test_frozen(self) -> None:
        cfg = MosaicConfig()
        with pytest.raises(AttributeError):
            cfg.chunk_size = 16  # type: ignore[misc]

    @pytest.mark.parametrize("kwargs", [
        {"color_strategy": "mode"},
        {"metric": "manhattan"},
        {"edge_policy": "wrap"},
        {"chunk_size": 0},
        {"workers": 0},
    ])
    def test_validate_rejects(self, kwargs: dict) -> None:
        with pytest.raises(ValueError):
            MosaicConfig(**kwargs).validate()


# -- Ratio -------------------------------------------------------------

class TestRatio:
    @pytest.mark.parametrize(("w", "h", "expected"), [
        (1920, 1080, (16, 9)),
        (1024, 768, (4, 3)),
        (500, 500, (1, 1)),
        (1080, 1920, (9, 16)),
        (7, 3, (7, 3)),
    ])
    def test_reduce(self, w: int, h: int, expected: tuple[int, int]) -> None:
        assert reduce_ratio(w, h) == expected

    def test_reduced_and_idempotent(self) -> None:
        for w in range(1, 60, 7):
            for h in range(1, 60, 5):
                r = reduce_ratio(w, h)
                assert math.gcd(r.width, r.height) == 1
                assert reduce_ratio(*r) == r

    @pytest.mark.parametrize(("w", "h"), [(0, 10), (10, 0), (0, 0), (-4, 3)])
    def test_zero_area(self, w: int, h: int) -> None:
        with pytest.raises(ValueError):
            reduce_ratio(w, h)

    def test_str(self) -> None:
        assert str(Ratio(4, 3)) == "4/3"

    def test_landscape(self) -> None:
        assert dimensions_for(Ratio(16, 9), 64) == (64, 36)

    def test_portrait(self) -> None:
        assert dimensions_for(Ratio(3, 4), 8) == (6, 8)

    def test_square(self) -> None:
        assert dimensions_for(Ratio(1, 1), 64) == (64, 64)

    def test_minimum_one(self) -> None:
        assert dimensions_for(Ratio(1000, 1), 8) == (8, 1)

    @pytest.mark.parametrize("size", [1, 8, 64, 100])
    def test_longest_side_is_size(self, size: int) -> None:
        for rw in range(1, 20):
            for rh in range(1, 20):
                w, h = dimensions_for(reduce_ratio(rw, rh), size)
                assert max(w, h) == size
                assert min(w, h) <= size


# -- Colour extraction -------------------------------------------------

class TestColorExtraction:
    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_solid(self, strategy: str) -> None:
        extract = get_color_strategy(strategy)
        assert extract(_solid(9, 5, (12, 200, 77))) == (12, 200, 77)

    def test_average_truncates(self) -> None:
        arr = np.array([[[0, 0, 0], [1, 2, 255]]], dtype=np.uint8)
        assert average_color(arr) == (0, 1, 127)

    def test_average_of_region(self) -> None:
        arr = _solid(4, 4, (0, 0, 0))
        arr[:2, 2:] = (100, 50, 25)
        assert average_color(arr[:2, 2:]) == (100, 50, 25)
        assert average_color(arr) == (25, 12, 6)

    def test_dominant_picks_most_populous(self) -> None:
        arr = _solid(8, 8, (250, 0, 0))
        arr[:2] = (0, 0, 250)  # a quarter blue
        assert dominant_color(arr) == (250, 0, 0)

    def test_empty_region(self) -> None:
        with pytest.raises(ValueError):
            average_color(np.empty((0, 4, 3), dtype=np.uint8))

    def test_unknown_strategy(self) -> None:
        with pytest.raises(ValueError, match="Available"):
            get_color_strategy("kmeans")


# -- Colour distance ---------------------------------------------------

class TestColorDistance:
    @pytest.mark.parametrize("metric", METRICS)
    def test_symmetric(self, metric: str) -> None:
        a, b = (10, 200, 30), (90, 15, 240)
        assert color_distance(a, b, metric) == pytest.approx(color_distance(b, a, metric))

    @pytest.mark.parametrize("metric", METRICS)
    def test_zero_iff_equal(self, metric: str) -> None:
        assert color_distance((5, 6, 7), (5, 6, 7), metric) == 0
        assert color_distance((5, 6, 7), (5, 6, 8), metric) > 0

    def test_uniform(self) -> None:
        assert color_distance((3, 4, 0), (0, 0, 0)) == 5.0

    def test_perceptual_weights_channel_order(self) -> None:
        assert color_distance((10, 0, 0), (0, 0, 0), "perceptual") == 220.0
        assert color_distance((0, 10, 0), (0, 0, 0), "perceptual") == 430.0
        assert color_distance((0, 0, 10), (0, 0, 0), "perceptual") == 340.0

    @pytest.mark.parametrize("metric", RGB_METRICS)
    def test_matrix_matches_pairwise(self, metric: str) -> None:
        rng = np.random.default_rng(3)
        a = rng.integers(0, 256, size=(5, 3), dtype=np.uint8)
        b = rng.integers(0, 256, size=(4, 3), dtype=np.uint8)
        d = compute_distance_matrix(a, b, metric)
        assert d.shape == (5, 4)
        for i in range(5):
            for j in range(4):
                expected = color_distance(tuple(a[i]), tuple(b[j]), metric)
                assert d[i, j] == expected


# -- Partitioning ------------------------------------------------------

class TestPartition:
    @pytest.mark.parametrize(("w", "h", "cw", "ch"), [
        (16, 16, 8, 8), (17, 23, 8, 6), (64, 48, 8, 6), (7, 7, 8, 8), (100, 3, 3, 1),
    ])
    def test_drop_count_and_bounds(self, w: int, h: int, cw: int, ch: int) -> None:
        boxes = chunk_boxes(w, h, cw, ch, "drop")
        assert len(boxes) == (w // cw) * (h // ch)
        for left, top, right, bottom in boxes:
            assert 0 <= left < right <= w
            assert 0 <= top < bottom <= h
            assert (right - left, bottom - top) == (cw, ch)

    def test_clamp_count(self) -> None:
        assert grid_shape(17, 23, 8, 6, "clamp") == (3, 4)
        boxes = chunk_boxes(17, 23, 8, 6, "clamp")
        assert len(boxes) == 12
        assert boxes[-1] == (16, 18, 17, 23)

    def test_unknown_policy(self) -> None:
        with pytest.raises(ValueError):
            grid_shape(10, 10, 2, 2, "wrap")

    def test_row_major_order(self) -> None:
        model = np.zeros((4, 6, 3), dtype=np.uint8)
        for i, (left, top, right, bottom) in enumerate(chunk_boxes(6, 4, 2, 2)):
            model[top:bottom, left:right] = (i * 10, 0, 0)
        colors = chunk_colors(model, 2, 2)
        assert colors.shape == (6, 3)
        assert list(colors[:, 0]) == [0, 10, 20, 30, 40, 50]

    @pytest.mark.parametrize("strategy", STRATEGIES)
    def test_quadrants(self, strategy: str) -> None:
        model = _solid(16, 16, (255, 255, 255))
        model[:8, :8] = (255, 0, 0)
        model[:8, 8:] = (0, 255, 0)
        model[8:, :8] = (0, 0, 255)
        colors = chunk_colors(model, 8, 8, get_color_strategy(strategy))
        assert [tuple(int(v) for v in c) for c in colors] == [
            (255, 0, 0), (0, 255, 0), (0, 0, 255), (255, 255, 255),
        ]

    def test_drop_ignores_partial_edge(self) -> None:
        model = _solid(10, 8, (0, 0, 0))
        model[:, 8:] = (255, 255, 255)
        assert chunk_colors(model, 4, 4, edge_policy="drop").max() == 0
        assert chunk_colors(model, 4, 4, edge_policy="clamp").shape == (6, 3)


# -- Matching ----------------------------------------------------------

class TestMatcher:
    def test_empty(self) -> None:
        with pytest.raises(EmptyCatalogueError):
            find_closest([], (0, 0, 0))
        with pytest.raises(EmptyCatalogueError):
            match_colors([], np.zeros((1, 3), dtype=np.uint8))

    def test_empty_message_names_ratio(self) -> None:
        assert "4/3" in str(EmptyCatalogueError(Ratio(4, 3)))

    @pytest.mark.parametrize("metric", METRICS)
    def test_exact_match_wins(
        self, random_entries: list[CatalogueEntry], metric: str,
    ) -> None:
        target = random_entries[17].color
        entries = [*random_entries, _entry("dup.png", target)]
        assert find_closest(entries, target, metric).path == "p17.png"
        assert match_colors(entries, np.array([target]), metric) == [17]

    def test_tie_goes_to_first(self) -> None:
        entries = [_entry("far.png", (0, 0, 0)), _entry("a.png", (110, 100, 100)),
                   _entry("b.png", (90, 100, 100))]
        assert find_closest(entries, (100, 100, 100)).path == "a.png"
        assert match_colors(entries, np.array([[100, 100, 100]])) == [1]

    def test_closest(self) -> None:
        entries = [_entry("red.png", (250, 5, 5)), _entry("blue.png", (5, 5, 250))]
        assert find_closest(entries, (200, 40, 60)).path == "red.png"

    @pytest.mark.parametrize("metric", METRICS)
    def test_batch_equals_scan(
        self, random_entries: list[CatalogueEntry], metric: str,
    ) -> None:
        rng = np.random.default_rng(11)
        colors = rng.integers(0, 256, size=(200, 3), dtype=np.uint8)
        batch = match_colors(random_entries, colors, metric, batch_size=64)
        scan = [
            random_entries.index(find_closest(random_entries, tuple(int(v) for v in c), metric))
            for c in colors
        ]
        assert batch == scan

    def test_deterministic(self, random_entries: list[CatalogueEntry]) -> None:
        picks = {find_closest(random_entries, (12, 34, 56), "perceptual").path
                 for _ in range(5)}
        assert len(picks) == 1


# -- Catalogue ---------------------------------------------------------

class TestCatalogue:
    def test_save_and_load(self, tmp_path: Path) -> None:
        cat = Catalogue(
            pictures=[_entry("a.jpg", (1, 2, 3), Ratio(4, 3)),
                      _entry("b.jpg", (4, 5, 6), Ratio(1, 1))],
            thumbnail_size=32,
            color_strategy="median_cut",
        )
        path = save_catalogue(cat, tmp_path)
        data = json.loads(path.read_text())
        assert data["version"] == 1
        assert data["pictures"][0] == {
            "path": "a.jpg", "color_rgb": [1, 2, 3], "ratio_width": 4, "ratio_height": 3,
        }
        assert load_catalogue(tmp_path) == cat

    def test_unversioned_document(self, tmp_path: Path) -> None:
        (tmp_path / "mosaic.json").write_text(json.dumps({"pictures": [
            {"path": "x.jpg", "color_rgb": [9, 9, 9], "ratio_width": 16, "ratio_height": 9},
        ]}))
        cat = load_catalogue(tmp_path)
        assert cat.pictures == [_entry("x.jpg", (9, 9, 9), Ratio(16, 9))]
        assert cat.thumbnail_size == 64

    @pytest.mark.parametrize("doc", [
        {"version": 2, "pictures": []},
        {"pictures": [{"path": "x", "color": 0xFF0000, "ratio_width": 1, "ratio_height": 1}]},
        {"pictures": [{"path": "x", "color_rgb": [1, 2, 3], "ratio_width": 8, "ratio_height": 6}]},
        {"pictures": [{"path": "x", "color_rgb": [1, 2, 300], "ratio_width": 1, "ratio_height": 1}]},
        {"pictures": [{"path": "x", "color_rgb": [1, 2, 3]}]},
        {"photos": []},
    ])
    def test_rejects(self, tmp_path: Path, doc: dict) -> None:
        (tmp_path / "mosaic.json").write_text(json.dumps(doc))
        with pytest.raises(CatalogueFormatError):
            load_catalogue(tmp_path)

    def test_not_json(self, tmp_path: Path) -> None:
        (tmp_path / "mosaic.json").write_text("{not json")
        with pytest.raises(CatalogueFormatError):
            load_catalogue(tmp_path)

    def test_with_ratio_keeps_order(self) -> None:
        cat = Catalogue(pictures=[
            _entry("a", (0, 0, 0), Ratio(4, 3)),
            _entry("b", (0, 0, 0), Ratio(16, 9)),
            _entry("c", (0, 0, 0), Ratio(4, 3)),
        ])
        assert [p.path for p in cat.with_ratio(Ratio(4, 3))] == ["a", "c"]
        assert cat.ratios() == {Ratio(4, 3): 2, Ratio(16, 9): 1}


# -- Image I/O ---------------------------------------------------------

class TestImageIO:
    def test_contrast_zero_is_identity(self) -> None:
        arr = np.arange(0, 256, dtype=np.uint8).reshape(16, 16, 1).repeat(3, axis=2)
        np.testing.assert_array_equal(adjust_contrast(arr, 0), arr)

    def test_contrast_stretches(self) -> None:
        arr = np.array([[[0, 100, 255]]], dtype=np.uint8)
        out = adjust_contrast(arr, 20.0)
        assert out[0, 0, 0] == 0
        assert out[0, 0, 1] < 100
        assert out[0, 0, 2] == 255

    def test_thumbnail_size(self) -> None:
        thumb = make_thumbnail(_solid(160, 90, (1, 2, 3)), (64, 36))
        assert thumb.shape == (36, 64, 3)

    def test_load_drops_alpha(self, tmp_path: Path) -> None:
        p = tmp_path / "rgba.png"
        Image.new("RGBA", (5, 3), (10, 20, 30, 0)).save(p)
        arr = load_image(p)
        assert arr.shape == (3, 5, 3)
        assert tuple(arr[0, 0]) == (10, 20, 30)


# -- Preprocessing -----------------------------------------------------

class TestPreprocess:
    def test_entries(self, gallery: list[Path], tmp_path: Path) -> None:
        out = tmp_path / "out"
        report = preprocess_pictures(gallery, out, MosaicConfig(thumbnail_size=16))
        assert report.failures == []
        assert [e.path for e in report.entries] == ["a.png", "b.png", "c.png"]
        assert [e.ratio for e in report.entries] == [Ratio(4, 3), Ratio(9, 16), Ratio(4, 3)]
        assert report.entries[0].color == (200, 10, 10)
        assert Image.open(out / "a.png").size == (16, 12)
        assert Image.open(out / "b.png").size == (9, 16)

    def test_color_from_original_not_thumbnail(self, tmp_path: Path) -> None:
        src = tmp_path / "grey.png"
        Image.fromarray(_solid(8, 8, (100, 100, 100))).save(src)
        report = preprocess_pictures([src], tmp_path / "out", MosaicConfig(contrast=80))
        assert report.entries[0].color == (100, 100, 100)
        thumb = np.array(Image.open(tmp_path / "out" / "grey.png"))
        assert tuple(thumb[0, 0]) != (100, 100, 100)

    def test_workers_keep_order(self, gallery: list[Path], tmp_path: Path) -> None:
        files = gallery * 3
        seq = preprocess_pictures(files, tmp_path / "seq", MosaicConfig(thumbnail_size=8))
        par = preprocess_pictures(
            files, tmp_path / "par", MosaicConfig(thumbnail_size=8, workers=4),
        )
        assert seq.entries == par.entries
        assert len(par.entries) == 9

    def test_duplicate_names(self) -> None:
        names = _thumbnail_names([Path("x/a.jpg"), Path("y/a.jpg"), Path("z/A.jpg")])
        assert names == ["a.jpg", "a-1.jpg", "A-2.jpg"]

    def test_unwritable_extension_is_skipped(self, tmp_path: Path) -> None:
        src = tmp_path / "pic.unknownext"
        Image.fromarray(_solid(4, 4, (1, 1, 1))).save(src, format="PNG")
        report = preprocess_pictures([src], tmp_path / "out")
        assert report.entries == []
        assert report.failures[0][0] == src
        assert not (tmp_path / "out" / "pic.unknownext").exists()

    def test_oversized_picture_is_skipped(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        big = tmp_path / "big.png"
        Image.fromarray(_solid(100, 100, (1, 2, 3))).save(big)
        good = tmp_path / "good.png"
        Image.fromarray(_solid(20, 20, (4, 5, 6))).save(good)

        report = preprocess_pictures([big, good], tmp_path / "out")
        assert [e.path for e in report.entries] == ["good.png"]
        assert [f for f, _ in report.failures] == [big]
