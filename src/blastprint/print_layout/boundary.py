"""
Print preview geometry on the interactive canvas.

The page is fitted into the canvas (less a fixed margin), centred, and every
template rectangle is mapped from page millimetres into canvas pixels. The
map zone of the preview is the *print boundary*: the on-screen frame that
the export reproduces on paper.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .constants import (
    OVERLAY_INNER_COLOR,
    OVERLAY_INNER_DASH,
    OVERLAY_INNER_WIDTH,
    OVERLAY_OUTER_COLOR,
    OVERLAY_OUTER_DASH,
    OVERLAY_OUTER_WIDTH,
    PREVIEW_CANVAS_MARGIN,
)
from .rect import CanvasSize, PageSize, ResolvedRect
from .settings import LayoutCache, PrintSettings
from .templates import Template
from .zones import ResolvedCell, ResolvedLayout, resolve_layout

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PrintBoundary:
    """
    On-screen print boundary in canvas pixels.

    Attributes:
        outer: Map zone of the previewed page
        inner: Print-safe area inside the map zone
        margin_percent: Inner inset as a fraction of the outer width
    """

    outer: ResolvedRect
    inner: ResolvedRect
    margin_percent: float


@dataclass(frozen=True)
class PreviewLayout:
    """
    All template rectangles mapped into canvas pixels.

    Attributes:
        page: The page outline
        map: Map zone
        map_inner: Print-safe area of the map zone
        footer_cells: Every footer cell, row by row
        title_rows: Full-width strip of each footer row
        scale_x, scale_y: Pixels per page millimetre
    """

    page: ResolvedRect
    map: ResolvedRect | None
    map_inner: ResolvedRect | None
    footer_cells: list[ResolvedCell] = field(default_factory=list)
    title_rows: list[ResolvedRect] = field(default_factory=list)
    scale_x: float = 1.0
    scale_y: float = 1.0


def fit_page_to_canvas(page_size: PageSize, canvas_size: CanvasSize, margin: float) -> ResolvedRect:
    """
    Largest page outline with the page's aspect ratio, centred in the canvas.

    A canvas with no room inside its margins gives a zero-size page at the
    canvas centre.
    """
    available_w = canvas_size.width - 2 * margin
    available_h = canvas_size.height - 2 * margin
    if available_w <= 0 or available_h <= 0:
        return ResolvedRect(canvas_size.width / 2, canvas_size.height / 2, 0.0, 0.0)

    page_aspect = page_size.aspect_ratio
    if available_w / available_h > page_aspect:
        # Canvas is proportionally wider: height limits
        height = available_h
        width = height * page_aspect
    else:
        width = available_w
        height = width / page_aspect

    return ResolvedRect(
        x=(canvas_size.width - width) / 2,
        y=(canvas_size.height - height) / 2,
        width=width,
        height=height,
    )


def preview_from_layout(layout: ResolvedLayout, canvas_size: CanvasSize, margin: float) -> PreviewLayout:
    """Map an already resolved layout into canvas pixels."""
    page = fit_page_to_canvas(layout.page_size, canvas_size, margin)
    scale_x = page.width / layout.page_size.width
    scale_y = page.height / layout.page_size.height

    def to_screen(rect: ResolvedRect) -> ResolvedRect:
        return rect.map_into(page.x, page.y, scale_x, scale_y)

    map_zone = layout.map
    return PreviewLayout(
        page=page,
        map=to_screen(map_zone) if map_zone is not None else None,
        map_inner=to_screen(layout.map_inner) if layout.map_inner is not None else None,
        footer_cells=[cell.with_rect(to_screen(cell)) for cell in layout.cells],
        title_rows=[to_screen(strip) for strip in layout.row_strips.values()],
        scale_x=scale_x,
        scale_y=scale_y,
    )


def compute_full_preview(
    template: Template,
    page_size: PageSize,
    canvas_size: CanvasSize,
    margin: float = PREVIEW_CANVAS_MARGIN,
) -> PreviewLayout:
    """
    Preview rectangles for a template on a page of ``page_size``.

    Args:
        template: Template to lay out
        page_size: Page dimensions in mm
        canvas_size: Interactive canvas size in px
        margin: Gap between the canvas edge and the page outline in px

    Returns:
        Page, map, safe area, footer cells, and footer row strips in px
    """
    return preview_from_layout(resolve_layout(template, page_size), canvas_size, margin)


class BoundaryService:
    """
    Print boundary for the current settings and canvas.

    Resolved layouts come from a LayoutCache, so repeated calls while the
    settings are unchanged do not re-resolve the template.
    """

    def __init__(self, cache: LayoutCache | None = None, margin: float = PREVIEW_CANVAS_MARGIN):
        self.cache = cache if cache is not None else LayoutCache()
        self.margin = margin

    def preview(self, settings: PrintSettings, canvas_size: CanvasSize) -> PreviewLayout:
        return preview_from_layout(self.cache.get(settings), canvas_size, self.margin)

    def get_print_boundary(self, settings: PrintSettings, canvas_size: CanvasSize) -> PrintBoundary | None:
        """
        The on-screen print boundary, or None when the preview is off.
        """
        if not settings.preview_active:
            return None

        preview = self.preview(settings, canvas_size)
        if preview.page.width <= 0 or preview.page.height <= 0:
            logger.warning("Canvas %gx%g px is too small to preview the page", canvas_size.width, canvas_size.height)
            return None
        if preview.map is None or preview.map_inner is None:
            logger.warning("Template for %s has no usable map zone", settings.layout_key)
            return None

        outer, inner = preview.map, preview.map_inner
        margin_percent = (inner.x - outer.x) / outer.width if outer.width else 0.0
        return PrintBoundary(outer=outer, inner=inner, margin_percent=margin_percent)


def get_print_boundary(settings: PrintSettings, canvas_size: CanvasSize) -> PrintBoundary | None:
    """Print boundary using the built-in template catalog."""
    return BoundaryService().get_print_boundary(settings, canvas_size)


def draw_boundary_overlay(backend, boundary: PrintBoundary | None) -> None:
    """
    Draw the print boundary over the interactive view.

    The outer frame is red with long dashes; the print-safe frame is blue with
    short dashes. ``backend`` works in canvas pixels here.
    """
    if boundary is None:
        return
    backend.draw_rect(
        boundary.outer,
        stroke=OVERLAY_OUTER_COLOR,
        stroke_width=OVERLAY_OUTER_WIDTH,
        dash=OVERLAY_OUTER_DASH,
    )
    backend.draw_rect(
        boundary.inner,
        stroke=OVERLAY_INNER_COLOR,
        stroke_width=OVERLAY_INNER_WIDTH,
        dash=OVERLAY_INNER_DASH,
    )
