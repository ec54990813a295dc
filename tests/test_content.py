"""
Tests for world content drawing, footer rendering, and assets.
"""

import logging

import pytest
from PIL import Image

from blastprint.print_layout.assets import (
    load_image_asset,
    place_asset,
    render_north_arrow,
    render_qr_code,
    render_xyz_gizmo,
)
from blastprint.print_layout.backends import VectorBackend
from blastprint.print_layout.content import (
    BackgroundImage,
    HoleRecord,
    PointEntity,
    PolylineEntity,
    TextEntity,
    collar_radius,
    draw_world_content,
    entity_points,
    split_background,
)
from blastprint.print_layout.errors import AssetError
from blastprint.print_layout.footer import FooterInfo, FooterRenderer
from blastprint.print_layout.rect import PageSize, ResolvedRect
from blastprint.print_layout.templates import builtin_catalog
from blastprint.print_layout.transform import WorldBounds, fit_world_bounds
from blastprint.print_layout.zones import resolve_layout

A4_LANDSCAPE = PageSize(297.0, 210.0)


@pytest.fixture
def backend():
    backend = VectorBackend()
    backend.reset(A4_LANDSCAPE)
    return backend


@pytest.fixture
def transform():
    """1 mm per metre over a 200 x 100 m site."""
    return fit_world_bounds(WorldBounds(0, 200, 0, 100), ResolvedRect(10, 10, 200, 100))


# =============================================================================
# WORLD CONTENT
# =============================================================================


class TestHoles:
    """Tests for HoleRecord and its glyphs."""

    def test_collar_radius(self):
        """Collar radius scales with diameter, with a 0.5 mm minimum."""
        assert collar_radius(115, 1.0) == pytest.approx(0.5)
        assert collar_radius(200, 20.0) == pytest.approx(2.0)

    def test_vertical_hole(self, backend, transform):
        """A vertical hole is a toe circle, a collar, and a label."""
        hole = HoleRecord("A1", collar=(50, 50, 400), toe=(50, 50, 390))
        draw_world_content(backend, transform, [hole])
        svg = "\n".join(backend.elements)
        assert svg.count("<circle") == 2
        assert "<line" not in svg
        assert ">A1</text>" in svg

    def test_angled_hole_with_subdrill(self, backend, transform):
        """Angled holes get a track line; subdrill is drawn in red."""
        hole = HoleRecord(
            "B2",
            collar=[50, 50, 400],
            grade=[55, 50, 390],
            toe=[56, 50, 389],
        )
        assert hole.is_angled
        assert hole.has_subdrill
        draw_world_content(backend, transform, [hole])
        lines = [e for e in backend.elements if e.startswith("<line")]
        assert len(lines) == 2
        assert 'stroke="#ff0000"' in lines[1]

    def test_collar_placed_by_transform(self, backend, transform):
        """The collar circle centre is world_to_output(collar)."""
        hole = HoleRecord("", collar=(120, 30, 0), toe=(120, 30, -10))
        draw_world_content(backend, transform, [hole])
        cx, cy = transform.world_to_output(120, 30)
        assert f'cx="{cx:g}" cy="{cy:g}"' in backend.elements[-1]


class TestEntities:
    """Tests for the other entity types."""

    def test_draws_every_kind(self, backend, transform):
        entities = [
            PolylineEntity(points=[[0, 0], [100, 50], [200, 0]], closed=True),
            PointEntity(10, 10),
            TextEntity(20, 20, "Crest"),
        ]
        assert draw_world_content(backend, transform, entities) == 3
        assert backend.elements[0].startswith("<polygon")
        assert backend.elements[1].startswith("<circle")
        assert ">Crest</text>" in backend.elements[2]

    def test_unsupported_entity_is_skipped(self, backend, transform, caplog):
        with caplog.at_level(logging.WARNING, logger="blastprint"):
            assert draw_world_content(backend, transform, [object()]) == 0
        assert "unsupported entity" in caplog.text

    def test_background_image(self, backend, transform):
        """Backgrounds are placed at the output rectangle of their bounds."""
        background = BackgroundImage(Image.new("RGB", (2, 2)), {"min_x": 0, "max_x": 100, "min_y": 0, "max_y": 50})
        draw_world_content(backend, transform, [background])
        assert '<image x="10" y="60" width="100" height="50"' in backend.elements[0]

    def test_entity_points_and_split(self):
        entities = [
            PointEntity(1, 2),
            HoleRecord("H", collar=(3, 4, 0), toe=(5, 6, 0)),
            BackgroundImage(Image.new("RGB", (1, 1)), WorldBounds(0, 1, 0, 1)),
        ]
        assert list(entity_points(entities)) == [(1, 2), (3, 4), (5, 6), (0, 0), (1, 1)]
        backgrounds, data = split_background(entities)
        assert len(backgrounds) == 1
        assert len(data) == 2


# =============================================================================
# ASSETS
# =============================================================================


class TestAssets:
    """Tests for asset bitmaps and placement."""

    def test_generated_assets(self):
        assert render_north_arrow(128).size == (128, 128)
        assert render_xyz_gizmo(128).mode == "RGBA"
        assert render_qr_code("https://example.com").size == (110, 110)

    def test_place_asset_square(self, backend):
        """The image is a centred square at 80% of the short side."""
        placed = place_asset(backend, ResolvedRect(0, 0, 40, 20), Image.new("RGB", (4, 4)), "N")
        assert placed
        assert '<image x="12" y="2" width="16" height="16"' in backend.elements[0]

    def test_missing_asset_draws_fallback(self, backend, caplog):
        """A missing image is logged and replaced by centred text."""
        with caplog.at_level(logging.WARNING, logger="blastprint"):
            placed = place_asset(backend, ResolvedRect(0, 0, 40, 20), None, "XYZ")
        assert not placed
        assert ">XYZ</text>" in backend.elements[0]
        assert 'text-anchor="middle"' in backend.elements[0]
        assert "No image" in caplog.text

    def test_load_image_asset(self, tmp_path):
        path = tmp_path / "logo.png"
        Image.new("RGB", (3, 2), "blue").save(path)
        assert load_image_asset(path).size == (3, 2)
        with pytest.raises(AssetError):
            load_image_asset(tmp_path / "missing.png")


# =============================================================================
# FOOTER
# =============================================================================


class TestFooter:
    """Tests for FooterRenderer."""

    @pytest.fixture
    def layout(self):
        return resolve_layout(builtin_catalog().get("2D", "landscape"), A4_LANDSCAPE)

    def test_footer_info_date_default(self):
        assert FooterInfo().date

    def test_renders_cells(self, backend, layout):
        """Footer text, statistics, scale, and designer are drawn."""
        renderer = FooterRenderer(
            info=FooterInfo(blast_name="Bench 410", designer="J. Smith", date="2026-10-19"),
            statistics={"connectorCount": ["17ms: 12"], "blastStatsData": ["Holes: 42"]},
            scale_text="1:500",
            nav_image=render_north_arrow(64),
        )
        renderer.render(backend, layout)
        svg = "\n".join(backend.elements)
        for text in ("Bench 410", "Designer: J. Smith", "Scale: 1:500", "2026-10-19",
                     "CONNECTOR COUNT", "17ms: 12", "Holes: 42", "BLAST"):
            assert text in svg
        # Navigation image placed, QR missing so fallback text
        assert svg.count("<image") == 1
        assert ">QR</text>" in svg

    def test_missing_nav_image_falls_back(self, backend):
        layout = resolve_layout(builtin_catalog().get("3D", "landscape"), A4_LANDSCAPE)
        FooterRenderer().render(backend, layout)
        assert ">XYZ</text>" in "\n".join(backend.elements)
