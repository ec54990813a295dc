"""
Footer renderer for blast printouts.

Draws the footer zone of a resolved layout: cell borders, the navigation
indicator, QR code, title, date, scale, designer, and any statistics text
supplied by the caller (pre-formatted lines keyed by cell id).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from PIL import Image

from .assets import place_asset
from .constants import (
    BORDER_WIDTH,
    DEFAULT_SCALE_TEXT,
    FOOTER_HEADER_FONT_SIZE,
    FOOTER_LINE_SPACING,
    FOOTER_TEXT_FONT_SIZE,
    THIN_LINE_WIDTH,
)
from .rect import ResolvedRect
from .zones import ResolvedCell, ResolvedLayout

logger = logging.getLogger(__name__)

# Header text of cells whose body comes from the statistics mapping
CELL_HEADERS = {
    "connectorCount": "CONNECTOR COUNT",
    "blastStatistics": "BLAST STATISTICS",
}

NAV_FALLBACK_TEXT = {
    "northArrow": "N",
    "xyzGizmo": "XYZ",
}


@dataclass
class FooterInfo:
    """Information displayed in the footer."""
    title: str = "BLAST DESIGN"
    blast_name: str = "Untitled Blast"
    designer: str = ""
    date: str | None = None
    notes: str = ""
    qr_data: str = ""

    def __post_init__(self):
        if self.date is None:
            self.date = datetime.now().strftime("%Y-%m-%d %H:%M")


def draw_centered_lines(
    backend,
    rect: ResolvedRect,
    lines: Sequence[str],
    size: float = FOOTER_TEXT_FONT_SIZE,
    bold: bool = False,
) -> None:
    """Draw lines of text centred horizontally and vertically in ``rect``."""
    if not lines:
        return
    line_height = size * FOOTER_LINE_SPACING
    total_height = line_height * (len(lines) - 1) + size
    # Baseline of the first line; cap height is roughly 0.7 em
    y = rect.center_y - total_height / 2 + size * 0.85
    for line in lines:
        backend.draw_text((rect.center_x, y), line, size=size, anchor="middle", bold=bold)
        y += line_height


@dataclass
class FooterRenderer:
    """
    Draws every footer cell of a resolved layout.

    Attributes:
        info: Title, blast name, designer, date
        statistics: Text lines per cell id (e.g. {"connectorData": ["17ms: 12"]})
        scale_text: Scale ratio shown in the "calculated" cell
        nav_image: North arrow (2D) or XYZ gizmo (3D) bitmap
        qr_image: QR code bitmap
    """
    info: FooterInfo = field(default_factory=FooterInfo)
    statistics: Mapping[str, Sequence[str]] = field(default_factory=dict)
    scale_text: str = DEFAULT_SCALE_TEXT
    nav_image: Image.Image | None = None
    qr_image: Image.Image | None = None

    def render(self, backend, layout: ResolvedLayout) -> None:
        if layout.footer is None:
            logger.warning("Layout %s has no footer; skipping footer", layout.template.name)
            return

        backend.draw_rect(layout.footer, stroke_width=BORDER_WIDTH)
        for cell in layout.cells:
            if cell.content != "empty":
                backend.draw_rect(cell, stroke_width=THIN_LINE_WIDTH)
            self.render_cell(backend, cell)

    def render_cell(self, backend, cell: ResolvedCell) -> None:
        content = cell.content
        if content in NAV_FALLBACK_TEXT:
            place_asset(backend, cell, self.nav_image, NAV_FALLBACK_TEXT[content])
        elif content == "qrcode":
            place_asset(backend, cell, self.qr_image, "QR")
        elif content == "calculated":
            self._labelled(backend, cell, self.scale_text)
        elif content == "dialog":
            self._labelled(backend, cell, self.info.designer)
        elif content == "dynamic":
            self._dynamic(backend, cell)
        elif content == "empty":
            if cell.id == "emptyLeft" and self.info.notes:
                draw_centered_lines(backend, cell, self.info.notes.splitlines())
        else:
            logger.warning("Unknown cell content %r for cell %s", content, cell.id)

    def _labelled(self, backend, cell: ResolvedCell, value: str) -> None:
        text = f"{cell.label} {value}".strip()
        draw_centered_lines(backend, cell, [text], size=FOOTER_TEXT_FONT_SIZE)

    def _dynamic(self, backend, cell: ResolvedCell) -> None:
        if cell.id == "titleBlastName":
            header = self.info.title or cell.label or "TITLE"
            self._header_and_body(backend, cell, header, [self.info.blast_name])
        elif cell.id == "dateTime":
            self._header_and_body(backend, cell, cell.label or "DATE", [self.info.date])
        elif cell.id in CELL_HEADERS:
            lines = list(self.statistics.get(cell.id, ()))
            if lines:
                self._header_and_body(backend, cell, CELL_HEADERS[cell.id], lines)
            else:
                draw_centered_lines(backend, cell, CELL_HEADERS[cell.id].split(), bold=True)
        else:
            lines = list(self.statistics.get(cell.id, ()))
            draw_centered_lines(backend, cell, lines)

    def _header_and_body(self, backend, cell: ResolvedCell, header: str, lines: Sequence[str]) -> None:
        header_rect = ResolvedRect(cell.x, cell.y, cell.width, FOOTER_HEADER_FONT_SIZE * 1.8)
        body_rect = ResolvedRect(cell.x, header_rect.bottom, cell.width, cell.height - header_rect.height)
        draw_centered_lines(backend, header_rect, [header], size=FOOTER_HEADER_FONT_SIZE, bold=True)
        draw_centered_lines(backend, body_rect, lines)
