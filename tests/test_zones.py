"""
Tests for zone, row, and cell resolution.
"""

import logging
import math

import pytest

from blastprint.print_layout.rect import PageSize, ResolvedRect
from blastprint.print_layout.settings import page_size_for
from blastprint.print_layout.templates import Template, builtin_catalog
from blastprint.print_layout.zones import (
    ResolvedZone,
    cell_by_id,
    describe_layout,
    footer_rect,
    resolve_cell,
    resolve_layout,
    resolve_map_safe_area,
    resolve_zone,
    row_cells,
    scale_ratio_text,
)

A4_LANDSCAPE = PageSize(297.0, 210.0)


def auto_map_template(**map_overrides) -> Template:
    """Template with an auto-height map zone."""
    map_zone = {"x": 0.02, "y": 0.02, "width": 0.60, "height": "auto", "print_safe_margin": 0.05}
    map_zone.update(map_overrides)
    return Template(
        name="AUTO",
        render_mode="2D",
        orientation="landscape",
        zones={
            "map": map_zone,
            "legend": {"x": 0.65, "y": 0.02, "width": 0.3, "height": "auto"},
        },
    )


# =============================================================================
# ZONES
# =============================================================================


class TestResolveZone:
    """Tests for resolve_zone."""

    def test_auto_height_map_zone(self):
        """Auto height mirrors the top margin at the bottom."""
        zone = resolve_zone(auto_map_template(), "map", A4_LANDSCAPE)
        assert zone.x == pytest.approx(5.94)
        assert zone.y == pytest.approx(4.2)
        assert zone.width == pytest.approx(178.2)
        assert zone.height == pytest.approx(201.6)
        assert zone.bottom == pytest.approx(210.0 - 4.2)

    def test_auto_height_other_zone(self):
        """Auto height on any other zone is 90% of the page height."""
        zone = resolve_zone(auto_map_template(), "legend", A4_LANDSCAPE)
        assert zone.height == pytest.approx(0.9 * 210.0)

    def test_auto_fill_zone_is_configurable(self):
        """The mirrored rule follows auto_fill_zone, not the zone name."""
        template = Template(
            name="LEGEND_FILL",
            render_mode="2D",
            orientation="landscape",
            auto_fill_zone="legend",
            zones=auto_map_template().zones,
        )
        legend = resolve_zone(template, "legend", A4_LANDSCAPE)
        map_zone = resolve_zone(template, "map", A4_LANDSCAPE)
        assert legend.height == pytest.approx(201.6)
        assert map_zone.height == pytest.approx(0.9 * 210.0)

    def test_metadata(self):
        """Resolved zones carry their name and safe margin."""
        zone = resolve_zone(auto_map_template(), "map", A4_LANDSCAPE)
        assert isinstance(zone, ResolvedZone)
        assert zone.name == "map"
        assert zone.print_safe_margin == 0.05

    def test_unknown_zone(self, caplog):
        """Unknown zones return None with a warning."""
        with caplog.at_level(logging.WARNING, logger="blastprint"):
            assert resolve_zone(auto_map_template(), "sidebar", A4_LANDSCAPE) is None
        assert "Zone not found" in caplog.text

    def test_negative_and_literal_dimensions(self):
        """Negative values anchor to the far edge; literals are mm."""
        template = Template(
            name="EDGES",
            render_mode="2D",
            orientation="landscape",
            zones={"map": {"x": 10, "y": 10, "width": -20, "height": "50%"}},
        )
        zone = resolve_zone(template, "map", A4_LANDSCAPE)
        assert (zone.x, zone.y, zone.width, zone.height) == pytest.approx((10, 10, 277, 105))

    def test_builtin_map_zone_a4_landscape(self):
        """Built-in landscape 2D map zone on A4."""
        template = builtin_catalog().get("2D", "landscape")
        zone = resolve_zone(template, "map", A4_LANDSCAPE)
        assert zone.x == pytest.approx(5.94)
        assert zone.y == pytest.approx(4.2)
        assert zone.width == pytest.approx(285.12)
        assert zone.height == pytest.approx(157.5)


# =============================================================================
# CELLS
# =============================================================================


class TestCells:
    """Tests for resolve_cell, row_cells, and cell_by_id."""

    @pytest.fixture
    def template(self):
        return builtin_catalog().get("2D", "landscape")

    def test_cells_tile_each_row(self, template):
        """Adjacent cells share edges and the row spans the footer width."""
        footer = footer_rect(template, A4_LANDSCAPE)
        for row_name in template.footer_zone.sections:
            cells = row_cells(template, "footer", row_name, A4_LANDSCAPE)
            assert cells[0].x == pytest.approx(footer.x)
            for left, right in zip(cells, cells[1:]):
                assert right.x == pytest.approx(left.right)
            assert cells[-1].right == pytest.approx(footer.right)

    def test_cell_geometry(self, template):
        """Cell y/height come from the section fractions of the zone height."""
        footer = footer_rect(template, A4_LANDSCAPE)
        cell = resolve_cell(template, "footer", "row2", 1, A4_LANDSCAPE)
        assert cell.id == "connectorData"
        assert cell.x == pytest.approx(footer.x + footer.width * 0.12)
        assert cell.y == pytest.approx(footer.y + footer.height * 0.5)
        assert cell.width == pytest.approx(footer.width * 0.20)
        assert cell.height == pytest.approx(footer.height * 0.25)
        assert cell.section == "row2"

    def test_cell_by_id_searches_all_rows(self, template):
        """cell_by_id finds cells in any row, with labels."""
        cell = cell_by_id(template, "footer", "designer", A4_LANDSCAPE)
        assert cell.section == "row3"
        assert cell.label == "Designer:"
        assert cell.content == "dialog"

    def test_unknowns_return_none_or_empty(self, template):
        """Unknown rows, indexes, and ids never raise."""
        assert resolve_cell(template, "footer", "row9", 0, A4_LANDSCAPE) is None
        assert resolve_cell(template, "footer", "row1", 99, A4_LANDSCAPE) is None
        assert resolve_cell(template, "nowhere", "row1", 0, A4_LANDSCAPE) is None
        assert row_cells(template, "footer", "row9", A4_LANDSCAPE) == []
        assert cell_by_id(template, "footer", "missing", A4_LANDSCAPE) is None

    def test_footer_falls_back_to_info_panel(self):
        """Templates with only a legacy infoPanel still have a footer rect."""
        template = Template(
            name="LEGACY",
            render_mode="2D",
            orientation="landscape",
            zones={
                "map": {"x": 0.02, "y": 0.02, "width": 0.96, "height": 0.75},
                "infoPanel": {"x": 0.02, "y": 0.8, "width": 0.96, "height": 0.18},
            },
        )
        panel = footer_rect(template, A4_LANDSCAPE)
        assert panel.name == "infoPanel"
        assert panel.y == pytest.approx(0.8 * 210)


# =============================================================================
# SAFE AREA AND CONTAINMENT
# =============================================================================


class TestSafeArea:
    """Tests for resolve_map_safe_area."""

    def test_margin_from_zone_width(self):
        """The inset is zone width * print_safe_margin on every side."""
        zone = resolve_zone(auto_map_template(), "map", A4_LANDSCAPE)
        safe = resolve_map_safe_area(zone)
        assert safe.margin == pytest.approx(178.2 * 0.05)
        assert safe.inner.x == pytest.approx(zone.x + safe.margin)
        assert safe.inner.y == pytest.approx(zone.y + safe.margin)
        assert safe.inner.width == pytest.approx(zone.width - 2 * safe.margin)
        assert safe.inner.height == pytest.approx(zone.height - 2 * safe.margin)

    def test_no_clamping(self):
        """A margin of 0.5 or more yields a degenerate inner rectangle."""
        zone = ResolvedZone(0, 0, 100, 50, name="map", print_safe_margin=0.6)
        safe = resolve_map_safe_area(zone)
        assert safe.inner.width < 0
        assert safe.inner.height < 0

    @pytest.mark.parametrize("paper", ["A4", "A3", "A2", "A1", "A0", "LETTER"])
    @pytest.mark.parametrize("orientation", ["landscape", "portrait"])
    @pytest.mark.parametrize("mode", ["2D", "3D"])
    def test_containment(self, paper, orientation, mode):
        """Inner area inside the map; map and footer inside the page; cells inside the footer."""
        template = builtin_catalog().get(mode, orientation)
        page_size = page_size_for(paper, orientation)
        layout = resolve_layout(template, page_size)
        page = ResolvedRect(0, 0, page_size.width, page_size.height)

        assert layout.map.contains(layout.map_inner)
        assert page.contains(layout.map)
        assert page.contains(layout.footer)
        for cell in layout.cells:
            assert layout.footer.contains(cell, tolerance=1e-6)

    @pytest.mark.parametrize("margin, usable", [(0.0, True), (0.1, True), (0.25, False), (0.3, False)])
    def test_wide_map_zone(self, caplog, margin, usable):
        """On a wide, short map zone the width-based inset can consume the height."""
        template = Template(
            name="WIDE",
            render_mode="2D",
            orientation="landscape",
            zones={"map": {"x": 0.02, "y": 0.02, "width": 0.96, "height": 0.3, "print_safe_margin": margin}},
        )
        with caplog.at_level(logging.WARNING):
            layout = resolve_layout(template, A4_LANDSCAPE)

        if usable:
            assert layout.map_inner.height > 0
            assert layout.map.contains(layout.map_inner)
        else:
            assert layout.safe_area is None
            assert layout.map_inner is None
            assert "leaves no room" in caplog.text


# =============================================================================
# LAYOUT SUMMARY
# =============================================================================


class TestLayout:
    """Tests for resolve_layout and the text helpers."""

    def test_resolve_layout(self):
        """The layout holds every zone, row, cell, and row strip."""
        layout = resolve_layout(builtin_catalog().get("2D", "portrait"), page_size_for("A4", "portrait"))
        assert set(layout.zones) == {"map", "footer"}
        assert list(layout.rows) == ["row1", "row2", "row3"]
        assert len(layout.cells) == 11
        assert layout.cell("scale").label == "Scale:"
        strip = layout.row_strips["row3"]
        assert strip.width == pytest.approx(layout.footer.width)
        assert strip.bottom == pytest.approx(layout.footer.bottom)

    def test_describe_layout(self):
        """describe_layout lists the page, zones, and every cell."""
        layout = resolve_layout(builtin_catalog().get("2D", "landscape"), A4_LANDSCAPE)
        lines = describe_layout(layout)
        assert lines[0].startswith("=== Layout: LAND_2D")
        assert "Page: 297mm x 210mm" in lines
        assert any(line.strip().startswith("navigationIndicator:") for line in lines)

    @pytest.mark.parametrize(
        "print_scale, expected",
        [(1.0, "1:1000"), (2.0, "1:500"), (0.4, "1:2500"), (0, "1:1000"), (-3, "1:1000"), (None, "1:1000"),
         (math.nan, "1:1000")],
    )
    def test_scale_ratio_text(self, print_scale, expected):
        """Scale ratio from paper mm per world metre."""
        assert scale_ratio_text(print_scale) == expected
