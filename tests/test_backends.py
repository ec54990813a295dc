"""
Tests for the raster and vector backends.

These tests cover:
- Placement parity: both backends put a world point where the shared
  transform says
- Raster size limits and canvas reuse
- SVG output, clipping, and PDF export
"""

import re

import pytest
from PIL import Image

from blastprint.print_layout.backends import RasterBackend, VectorBackend, create_backend
from blastprint.print_layout.errors import OutputError, ResourceLimitError
from blastprint.print_layout.rect import CanvasSize, PageSize, ResolvedRect
from blastprint.print_layout.settings import page_size_for
from blastprint.print_layout.transform import ViewState, derive_export_transform

A4_LANDSCAPE = PageSize(297.0, 210.0)


@pytest.fixture
def transform():
    """One committed transform shared by both backends."""
    return derive_export_transform(
        ResolvedRect(100, 80, 800, 500),
        ViewState(scale=4.0, centroid_x=1000, centroid_y=2000),
        CanvasSize(1000, 700),
        ResolvedRect(20, 15, 250, 140),
    )


# =============================================================================
# PARITY
# =============================================================================


class TestParity:
    """Both backends draw a world point at the same page position."""

    WORLD_POINTS = [(1000, 2000), (950, 2040), (1080, 1960)]

    def test_same_placement(self, transform):
        """The raster pixel and the SVG circle sit at world_to_output(P)."""
        raster = RasterBackend(dpi=100)
        vector = VectorBackend()
        raster.reset(A4_LANDSCAPE)
        vector.reset(A4_LANDSCAPE)

        for wx, wy in self.WORLD_POINTS:
            center = transform.world_to_output(wx, wy)
            raster.draw_circle(center, 1.0, stroke=None, fill="#000000")
            vector.draw_circle(center, 1.0, stroke=None, fill="#000000")

        svg_centers = [
            (float(cx), float(cy))
            for cx, cy in re.findall(r'<circle cx="([-\d.]+)" cy="([-\d.]+)"', vector.to_svg())
        ]
        for (wx, wy), svg_center in zip(self.WORLD_POINTS, svg_centers):
            expected = transform.world_to_output(wx, wy)
            assert svg_center == pytest.approx(expected, abs=1e-4)
            assert raster.pixel_at(expected) == (0, 0, 0)

    def test_rect_placement(self):
        """A filled rectangle covers the same page area in both backends."""
        rect = ResolvedRect(50, 40, 30, 20)
        raster = RasterBackend(dpi=100)
        raster.reset(A4_LANDSCAPE)
        raster.draw_rect(rect, stroke=None, fill="#ff0000")
        assert raster.pixel_at(rect.center) == (255, 0, 0)
        assert raster.pixel_at((rect.right + 2, rect.center_y)) == (255, 255, 255)

        vector = VectorBackend()
        vector.reset(A4_LANDSCAPE)
        vector.draw_rect(rect, stroke=None, fill="#ff0000")
        assert '<rect x="50" y="40" width="30" height="20" fill="#ff0000"' in vector.to_svg()


# =============================================================================
# RASTER
# =============================================================================


class TestRasterBackend:
    """Tests for RasterBackend."""

    def test_device_size(self):
        """Page mm convert to device pixels at the backend dpi."""
        backend = RasterBackend(dpi=254)
        backend.reset(PageSize(100, 50))
        assert backend.image.size == (1000, 500)

    def test_resource_limit_names_paper_size(self):
        """Oversized rasters are refused before any drawing."""
        backend = RasterBackend(dpi=400)
        with pytest.raises(ResourceLimitError, match=r"paper size \(A0\)"):
            backend.reset(page_size_for("A0", "landscape"), paper_name="A0")
        assert backend.image is None

    def test_a1_fits_at_300_dpi(self):
        """A1 at 300 dpi is under the limit."""
        width, height = RasterBackend(dpi=300).check_page_size(page_size_for("A1", "landscape"))
        assert max(width, height) <= 16384

    def test_reset_reuses_and_clears(self):
        """Reset keeps the canvas for the same size and fills it white."""
        backend = RasterBackend(dpi=50)
        backend.reset(A4_LANDSCAPE)
        image = backend.image
        backend.draw_rect(ResolvedRect(10, 10, 50, 50), stroke=None, fill="#000000")
        backend.reset(A4_LANDSCAPE)
        assert backend.image is image
        assert backend.pixel_at((20, 20)) == (255, 255, 255)

        backend.reset(page_size_for("A3", "landscape"))
        assert backend.image is not image

    def test_clip(self):
        """Drawing inside clip() is limited to the clip rectangle."""
        backend = RasterBackend(dpi=100)
        backend.reset(A4_LANDSCAPE)
        with backend.clip(ResolvedRect(50, 50, 50, 50)):
            backend.draw_rect(ResolvedRect(0, 0, 297, 210), stroke=None, fill="#000000")
        assert backend.pixel_at((75, 75)) == (0, 0, 0)
        assert backend.pixel_at((20, 20)) == (255, 255, 255)
        assert backend.pixel_at((150, 150)) == (255, 255, 255)

    def test_place_image(self):
        """Images are stretched into their rectangle."""
        backend = RasterBackend(dpi=100)
        backend.reset(A4_LANDSCAPE)
        backend.place_image(Image.new("RGB", (4, 4), "#00ff00"), ResolvedRect(100, 100, 20, 20))
        assert backend.pixel_at((110, 110)) == (0, 255, 0)

    def test_dashed_line(self):
        """Dashed lines leave gaps."""
        backend = RasterBackend(dpi=100)
        backend.reset(A4_LANDSCAPE)
        backend.draw_line((10, 100), (110, 100), stroke="#000000", stroke_width=1.0, dash=(10, 5))
        assert backend.pixel_at((15, 100)) == (0, 0, 0)
        assert backend.pixel_at((22.5, 100)) == (255, 255, 255)

    def test_text_and_outputs(self, tmp_path):
        """PNG and PDF files are written."""
        backend = RasterBackend(dpi=72)
        backend.reset(A4_LANDSCAPE)
        backend.draw_text((20, 20), "Blast 42", size=5, anchor="start", bold=True)
        backend.save_png(tmp_path / "page.png")
        backend.save_pdf(tmp_path / "page.pdf")
        assert (tmp_path / "page.png").stat().st_size > 0
        assert (tmp_path / "page.pdf").read_bytes().startswith(b"%PDF")

    def test_drawing_before_reset(self):
        with pytest.raises(RuntimeError, match="reset"):
            RasterBackend().draw_circle((0, 0), 1)


# =============================================================================
# VECTOR
# =============================================================================


class TestVectorBackend:
    """Tests for VectorBackend."""

    def test_svg_document(self):
        """The SVG uses page millimetres as its user unit."""
        backend = VectorBackend()
        backend.reset(A4_LANDSCAPE)
        svg = backend.to_svg()
        assert 'width="297mm" height="210mm"' in svg
        assert 'viewBox="0 0 297 210"' in svg
        assert svg.endswith("</svg>")

    def test_text_is_escaped(self):
        backend = VectorBackend()
        backend.reset(A4_LANDSCAPE)
        backend.draw_text((10, 10), "Pit <3> & Co", size=3, anchor="middle")
        assert "Pit &lt;3&gt; &amp; Co" in backend.to_svg()
        assert 'text-anchor="middle"' in backend.to_svg()

    def test_clip_group(self):
        """clip() wraps content in a clip-path group."""
        backend = VectorBackend()
        backend.reset(A4_LANDSCAPE)
        with backend.clip(ResolvedRect(10, 10, 100, 50)):
            backend.draw_line((0, 0), (297, 210))
        svg = backend.to_svg()
        assert '<clipPath id="clip1">' in svg
        assert '<g clip-path="url(#clip1)">' in svg
        assert svg.count("<g ") == svg.count("</g>")

    def test_image_embedded_as_png(self):
        backend = VectorBackend()
        backend.reset(A4_LANDSCAPE)
        backend.place_image(Image.new("RGBA", (8, 8), "red"), ResolvedRect(1, 2, 3, 4))
        assert 'xlink:href="data:image/png;base64,' in backend.to_svg()

    def test_polyline_and_polygon(self):
        backend = VectorBackend()
        backend.reset(A4_LANDSCAPE)
        backend.draw_polyline([(0, 0), (10, 5), (20, 0)])
        backend.draw_polyline([(0, 0), (10, 5), (20, 0)], closed=True, fill="#cccccc")
        backend.draw_polyline([(0, 0)])
        assert backend.elements[0].startswith('<polyline points="0,0 10,5 20,0"')
        assert backend.elements[1].startswith("<polygon")
        assert len(backend.elements) == 2

    def test_save_svg_and_pdf(self, tmp_path):
        """SVG and PDF files are written."""
        backend = VectorBackend()
        backend.reset(A4_LANDSCAPE)
        backend.draw_rect(ResolvedRect(10, 10, 100, 50))
        backend.draw_text((20, 30), "Blast", size=4)
        backend.save_svg(tmp_path / "page.svg")
        backend.save_pdf(tmp_path / "page.pdf")
        assert (tmp_path / "page.svg").read_text(encoding="utf-8").startswith("<svg")
        assert (tmp_path / "page.pdf").read_bytes().startswith(b"%PDF")

    def test_pdf_conversion_failure(self, tmp_path, monkeypatch):
        """An SVG that svglib cannot convert raises OutputError and writes nothing."""
        monkeypatch.setattr("blastprint.print_layout.backends.vector.svg2rlg", lambda path: None)
        backend = VectorBackend()
        backend.reset(A4_LANDSCAPE)
        with pytest.raises(OutputError, match="Failed to convert"):
            backend.save_pdf(tmp_path / "page.pdf")
        assert not (tmp_path / "page.pdf").exists()


def test_create_backend():
    """Backends can be created by name."""
    assert isinstance(create_backend("raster", dpi=150), RasterBackend)
    assert isinstance(create_backend("vector"), VectorBackend)
    with pytest.raises(ValueError, match="Unknown backend"):
        create_backend("plotter")
