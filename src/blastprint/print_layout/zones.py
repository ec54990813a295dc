"""
Zone resolver: template specs to absolute page rectangles.

Converts the declarative zones, rows, and cells of a Template into
millimetre rectangles for a given page size. Lookups of unknown zones,
sections, or cells return ``None`` (or an empty list) and log a warning so
the export can draw a fallback instead of failing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from .constants import AUTO_HEIGHT_FALLBACK, DEFAULT_SCALE_TEXT
from .rect import PageSize, ResolvedRect
from .templates import Template
from .values import AUTO, is_auto, resolve_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True, repr=False)
class ResolvedZone(ResolvedRect):
    """Zone rectangle in page mm, with its print-safe margin fraction."""

    name: str = ""
    print_safe_margin: float = 0.0


@dataclass(frozen=True, repr=False)
class ResolvedCell(ResolvedRect):
    """Cell rectangle in page mm, with the cell's template metadata."""

    id: str = ""
    content: str = ""
    label: str = ""
    width_percent: float = 0.0
    section: str = ""

    def with_rect(self, rect: ResolvedRect) -> ResolvedCell:
        """Same cell metadata placed at another rectangle (e.g. screen px)."""
        return ResolvedCell(
            x=rect.x, y=rect.y, width=rect.width, height=rect.height,
            id=self.id, content=self.content, label=self.label,
            width_percent=self.width_percent, section=self.section,
        )


@dataclass(frozen=True)
class SafeArea:
    """
    Map zone with its print-safe inner rectangle.

    Attributes:
        outer: Full zone rectangle
        inner: Zone inset by ``margin`` on all sides
        margin: Inset distance (zone width * print_safe_margin)
    """

    outer: ResolvedRect
    inner: ResolvedRect
    margin: float


@dataclass(frozen=True)
class ResolvedLayout:
    """
    Every rectangle of a template resolved for one page size.

    Attributes:
        template: Source template
        page_size: Page dimensions (mm)
        zones: Resolved zones by name
        safe_area: Map zone with its print-safe inner rectangle (None when
            the margin leaves no room inside the zone)
        footer: Footer zone (None if the template has none)
        rows: Cells of each footer row, by row name
        row_strips: Full-width rectangle of each footer row, by row name
    """

    template: Template
    page_size: PageSize
    zones: dict[str, ResolvedZone] = field(default_factory=dict)
    safe_area: SafeArea | None = None
    footer: ResolvedZone | None = None
    rows: dict[str, list[ResolvedCell]] = field(default_factory=dict)
    row_strips: dict[str, ResolvedRect] = field(default_factory=dict)

    @property
    def page(self) -> ResolvedRect:
        return ResolvedRect(0.0, 0.0, self.page_size.width, self.page_size.height)

    @property
    def map(self) -> ResolvedZone | None:
        return self.zones.get(self.template.map_zone_name)

    @property
    def map_inner(self) -> ResolvedRect | None:
        return self.safe_area.inner if self.safe_area else None

    @property
    def cells(self) -> list[ResolvedCell]:
        """All footer cells, row by row."""
        return [cell for row in self.rows.values() for cell in row]

    def cell(self, cell_id: str) -> ResolvedCell | None:
        for cell in self.cells:
            if cell.id == cell_id:
                return cell
        return None


def _auto_height(template: Template, zone_name: str, page_size: PageSize) -> float:
    """Height of a zone whose spec height is "auto"."""
    if zone_name != template.auto_fill_zone:
        return page_size.height * AUTO_HEIGHT_FALLBACK

    # The auto-fill zone is vertically centred: bottom margin mirrors the top
    top_margin = resolve_value(template.zones[zone_name].y, page_size.height)
    bottom_margin = top_margin
    return page_size.height - top_margin - bottom_margin


def resolve_zone(template: Template, zone_name: str, page_size: PageSize) -> ResolvedZone | None:
    """
    Resolve a named zone to page millimetres.

    Args:
        template: Template holding the zone
        zone_name: Zone name (e.g. "map", "footer")
        page_size: Page dimensions in mm

    Returns:
        The zone rectangle, or None if the template has no such zone
    """
    zone = template.zones.get(zone_name)
    if zone is None:
        logger.warning("Zone not found: %s (template %s)", zone_name, template.name)
        return None

    x = resolve_value(zone.x, page_size.width)
    y = resolve_value(zone.y, page_size.height)
    width = resolve_value(zone.width, page_size.width)

    if is_auto(zone.height):
        height = _auto_height(template, zone_name, page_size)
    else:
        height = resolve_value(zone.height, page_size.height)

    # Only height may be auto; anything else deferred is unusable here
    x, y, width, height = (math.nan if v is AUTO else v for v in (x, y, width, height))

    return ResolvedZone(
        x=x, y=y, width=width, height=height,
        name=zone_name,
        print_safe_margin=zone.print_safe_margin or 0.0,
    )


def footer_rect(template: Template, page_size: PageSize) -> ResolvedZone | None:
    """Footer zone, falling back to a legacy "infoPanel" zone."""
    if template.footer_zone_name in template.zones:
        return resolve_zone(template, template.footer_zone_name, page_size)
    for legacy_name in ("footer", "infoPanel"):
        if legacy_name in template.zones:
            return resolve_zone(template, legacy_name, page_size)
    logger.warning("Template %s has no footer zone", template.name)
    return None


def resolve_cell(
    template: Template,
    zone_name: str,
    section_name: str,
    cell_index: int,
    page_size: PageSize,
) -> ResolvedCell | None:
    """
    Resolve one cell of a zone row.

    Cells are laid left to right: each cell starts where the previous cells'
    widths (zone width * width_percent) end.

    Returns:
        The cell rectangle with its id/content/label, or None if the zone,
        section, or index does not exist
    """
    zone = resolve_zone(template, zone_name, page_size)
    if zone is None:
        return None

    section = template.zones[zone_name].sections.get(section_name)
    if section is None:
        logger.warning("Section not found: %s in zone: %s", section_name, zone_name)
        return None

    if not 0 <= cell_index < len(section.cells):
        logger.warning("Cell index out of bounds: %s in %s", cell_index, section_name)
        return None

    cell_x = zone.x
    for preceding in section.cells[:cell_index]:
        cell_x += zone.width * preceding.width_percent

    cell = section.cells[cell_index]
    return ResolvedCell(
        x=cell_x,
        y=zone.y + zone.height * section.y,
        width=zone.width * cell.width_percent,
        height=zone.height * section.height,
        id=cell.id,
        content=cell.content,
        label=cell.label or "",
        width_percent=cell.width_percent,
        section=section_name,
    )


def row_cells(template: Template, zone_name: str, section_name: str, page_size: PageSize) -> list[ResolvedCell]:
    """All cells of a row, left to right (empty if the row does not exist)."""
    zone = template.zones.get(zone_name)
    if zone is None or section_name not in zone.sections:
        return []

    cells = []
    for index in range(len(zone.sections[section_name].cells)):
        cell = resolve_cell(template, zone_name, section_name, index, page_size)
        if cell is not None:
            cells.append(cell)
    return cells


def cell_by_id(template: Template, zone_name: str, cell_id: str, page_size: PageSize) -> ResolvedCell | None:
    """Find a cell by id in any row of a zone."""
    zone = template.zones.get(zone_name)
    if zone is None:
        return None

    for section_name, section in zone.sections.items():
        for index, cell in enumerate(section.cells):
            if cell.id == cell_id:
                return resolve_cell(template, zone_name, section_name, index, page_size)
    return None


def resolve_map_safe_area(zone: ResolvedZone) -> SafeArea:
    """
    Inner print-safe rectangle of a zone.

    The margin is a fraction of the zone *width*, applied on all four sides.
    It is not clamped. Because the inset comes from the width, a wide zone
    can end up with no inner height; resolve_layout drops such a safe area.
    """
    outer = zone.as_rect()
    margin = outer.width * zone.print_safe_margin
    return SafeArea(outer=outer, inner=outer.inset(margin), margin=margin)


def resolve_layout(template: Template, page_size: PageSize) -> ResolvedLayout:
    """Resolve every zone, the map safe area, and all footer rows of a template."""
    zones = {}
    for name in template.zones:
        zone = resolve_zone(template, name, page_size)
        if zone is not None:
            zones[name] = zone

    map_zone = zones.get(template.map_zone_name)
    safe_area = resolve_map_safe_area(map_zone) if map_zone is not None else None
    if safe_area is not None and (safe_area.inner.width <= 0 or safe_area.inner.height <= 0):
        logger.warning(
            "Template %s: print-safe margin %.3f leaves no room inside the %s zone",
            template.name,
            map_zone.print_safe_margin,
            map_zone.name,
        )
        safe_area = None

    footer = footer_rect(template, page_size)
    rows: dict[str, list[ResolvedCell]] = {}
    row_strips: dict[str, ResolvedRect] = {}
    if footer is not None:
        for section_name, section in template.zones[footer.name].sections.items():
            rows[section_name] = row_cells(template, footer.name, section_name, page_size)
            row_strips[section_name] = ResolvedRect(
                x=footer.x,
                y=footer.y + footer.height * section.y,
                width=footer.width,
                height=footer.height * section.height,
            )

    return ResolvedLayout(
        template=template,
        page_size=page_size,
        zones=zones,
        safe_area=safe_area,
        footer=footer,
        rows=rows,
        row_strips=row_strips,
    )


def scale_ratio_text(print_scale: float | None) -> str:
    """
    Scale ratio text for a print scale in paper mm per world metre.

    1 mm on paper per metre is 1:1000.
    """
    if not print_scale or print_scale <= 0 or not math.isfinite(print_scale):
        return DEFAULT_SCALE_TEXT
    return f"1:{round(1000 / print_scale)}"


def describe_layout(layout: ResolvedLayout) -> list[str]:
    """Human-readable dump of a resolved layout, one line per rectangle."""
    template = layout.template
    lines = [
        f"=== Layout: {template.name} ({template.render_mode} {template.orientation}) ===",
        f"Page: {layout.page_size.width:g}mm x {layout.page_size.height:g}mm",
    ]
    if layout.safe_area is not None:
        lines.append(f"Map outer: {_fmt(layout.safe_area.outer)}")
        lines.append(f"Map inner (safe): {_fmt(layout.safe_area.inner)}")
    if layout.footer is not None:
        lines.append(f"Footer: {_fmt(layout.footer)}")
    for row_name, cells in layout.rows.items():
        lines.append(f"--- {layout.footer.name}.{row_name} ---")
        for cell in cells:
            lines.append(f"  {cell.id}: {_fmt(cell)} [{cell.content}]")
    return lines


def _fmt(rect: ResolvedRect) -> str:
    return f"x={rect.x:.1f} y={rect.y:.1f} w={rect.width:.1f} h={rect.height:.1f}"
