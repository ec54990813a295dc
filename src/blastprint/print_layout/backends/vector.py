"""
Vector backend emitting SVG, with PDF output through svglib and reportlab.

The SVG user unit is the page millimetre (``viewBox="0 0 W H"`` on a
``W mm x H mm`` document), so coordinates are written exactly as received.
"""

from __future__ import annotations

import base64
import io
import logging
import tempfile
from collections.abc import Sequence
from pathlib import Path
from xml.sax.saxutils import escape

from PIL import Image
from reportlab.graphics import renderPDF
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from svglib.svglib import svg2rlg

from ..constants import BORDER_COLOR, BORDER_WIDTH, FONT_FAMILY
from ..errors import OutputError
from ..rect import PageSize, ResolvedRect
from .base import Dash, Point, RenderBackend

logger = logging.getLogger(__name__)


def _num(value: float) -> str:
    """Compact decimal for SVG attributes."""
    if value != value:
        return "0"
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def _stroke_attrs(stroke: str | None, stroke_width: float, dash: Dash = None) -> str:
    if stroke is None:
        return 'stroke="none"'
    attrs = f'stroke="{stroke}" stroke-width="{_num(stroke_width)}"'
    if dash is not None:
        attrs += f' stroke-dasharray="{_num(dash[0])},{_num(dash[1])}"'
    return attrs


def image_data_uri(image: Image.Image) -> str:
    """PNG data URI for embedding a bitmap in SVG."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


class VectorBackend(RenderBackend):
    """
    Page recorded as a list of SVG elements.

    Attributes:
        background: Page background colour
        elements: SVG element strings in drawing order
    """

    name = "vector"

    def __init__(self):
        super().__init__()
        self.background = "#ffffff"
        self.elements: list[str] = []
        self._clip_count = 0
        self._open_groups = 0

    def reset(self, page_size: PageSize, background: str = "#ffffff", paper_name: str | None = None) -> None:
        self.page_size = page_size
        self.background = background
        self.elements = []
        self._clip_count = 0
        self._open_groups = 0

    def _add(self, element: str) -> None:
        self._require_page()
        self.elements.append(element)

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def draw_rect(
        self,
        rect: ResolvedRect,
        stroke: str | None = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        fill: str | None = None,
        dash: Dash = None,
    ) -> None:
        if rect.width < 0 or rect.height < 0:
            return
        self._add(
            f'<rect x="{_num(rect.x)}" y="{_num(rect.y)}" '
            f'width="{_num(rect.width)}" height="{_num(rect.height)}" '
            f'fill="{fill or "none"}" {_stroke_attrs(stroke, stroke_width, dash)}/>'
        )

    def draw_line(
        self,
        start: Point,
        end: Point,
        stroke: str = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        dash: Dash = None,
    ) -> None:
        self._add(
            f'<line x1="{_num(start[0])}" y1="{_num(start[1])}" '
            f'x2="{_num(end[0])}" y2="{_num(end[1])}" '
            f'{_stroke_attrs(stroke, stroke_width, dash)}/>'
        )

    def draw_polyline(
        self,
        points: Sequence[Point],
        stroke: str = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        closed: bool = False,
        fill: str | None = None,
    ) -> None:
        if len(points) < 2:
            return
        tag = "polygon" if closed else "polyline"
        coords = " ".join(f"{_num(x)},{_num(y)}" for x, y in points)
        self._add(
            f'<{tag} points="{coords}" fill="{fill or "none"}" '
            f'{_stroke_attrs(stroke, stroke_width)} stroke-linejoin="round"/>'
        )

    def draw_circle(
        self,
        center: Point,
        radius: float,
        stroke: str | None = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        fill: str | None = None,
    ) -> None:
        self._add(
            f'<circle cx="{_num(center[0])}" cy="{_num(center[1])}" r="{_num(radius)}" '
            f'fill="{fill or "none"}" {_stroke_attrs(stroke, stroke_width)}/>'
        )

    def draw_text(
        self,
        position: Point,
        text: str,
        size: float,
        color: str = BORDER_COLOR,
        anchor: str = "start",
        bold: bool = False,
    ) -> None:
        weight = ' font-weight="bold"' if bold else ""
        self._add(
            f'<text x="{_num(position[0])}" y="{_num(position[1])}" '
            f'font-family="{FONT_FAMILY}" font-size="{_num(size)}"{weight} '
            f'text-anchor="{anchor}" fill="{color}">{escape(text)}</text>'
        )

    def place_image(self, image: Image.Image, rect: ResolvedRect) -> None:
        if rect.width <= 0 or rect.height <= 0:
            return
        self._add(
            f'<image x="{_num(rect.x)}" y="{_num(rect.y)}" '
            f'width="{_num(rect.width)}" height="{_num(rect.height)}" '
            f'preserveAspectRatio="none" xlink:href="{image_data_uri(image)}"/>'
        )

    # -------------------------------------------------------------------------
    # Clipping
    # -------------------------------------------------------------------------

    def _push_clip(self, rect: ResolvedRect) -> None:
        self._clip_count += 1
        clip_id = f"clip{self._clip_count}"
        self._add(
            f'<clipPath id="{clip_id}"><rect x="{_num(rect.x)}" y="{_num(rect.y)}" '
            f'width="{_num(rect.width)}" height="{_num(rect.height)}"/></clipPath>'
        )
        self._add(f'<g clip-path="url(#{clip_id})">')
        self._open_groups += 1

    def _pop_clip(self) -> None:
        self._add("</g>")
        self._open_groups -= 1

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def to_svg(self) -> str:
        """Complete SVG document for the current page."""
        page = self._require_page()
        parts = [
            '<svg xmlns="http://www.w3.org/2000/svg" '
            'xmlns:xlink="http://www.w3.org/1999/xlink" '
            f'width="{_num(page.width)}mm" height="{_num(page.height)}mm" '
            f'viewBox="0 0 {_num(page.width)} {_num(page.height)}">',
            f'<rect x="0" y="0" width="{_num(page.width)}" height="{_num(page.height)}" '
            f'fill="{self.background}"/>',
        ]
        parts.extend(self.elements)
        parts.extend(["</g>"] * self._open_groups)
        parts.append("</svg>")
        return "\n".join(parts)

    def save_svg(self, output_path: str | Path) -> None:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.to_svg())

    def save_pdf(self, output_path: str | Path) -> None:
        """
        Convert the page SVG to a single-page PDF.

        Args:
            output_path: Output PDF file path
        """
        page = self._require_page()
        page_width = page.width * mm
        page_height = page.height * mm

        with tempfile.TemporaryDirectory() as tmp:
            svg_path = Path(tmp) / "page.svg"
            self.save_svg(svg_path)
            drawing = svg2rlg(str(svg_path))
            if drawing is None:
                raise OutputError(f"Failed to convert the page SVG for {output_path}")

        # Scale drawing to fit page
        scale = min(page_width / drawing.width, page_height / drawing.height)
        drawing.width *= scale
        drawing.height *= scale
        drawing.scale(scale, scale)

        c = canvas.Canvas(str(output_path), pagesize=(page_width, page_height))
        renderPDF.draw(drawing, c, 0, 0)
        c.showPage()
        c.save()
        logger.debug("Wrote vector PDF %s", output_path)
