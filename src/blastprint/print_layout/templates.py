"""
Print template schema and catalog.

A template describes where the map and the footer sit on the page, as
fractions/percentages of the page, and how the footer is split into rows of
cells. Templates are keyed by (render mode, orientation) and are loaded once
from YAML::

    templates:
      - name: LAND_2D
        render_mode: 2D
        orientation: landscape
        zones:
          map: {x: 0.02, y: 0.02, width: 0.96, height: 0.75, print_safe_margin: 0.05}
          footer:
            x: 0.02
            y: 0.77
            width: 0.96
            height: 0.21
            sections:
              row1:
                y: 0
                height: 0.5
                cells:
                  - {id: navigationIndicator, content: northArrow, width_percent: 0.12}

The built-in catalog ships as ``templates.yaml`` next to this module.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml

from .constants import ORIENTATIONS, RENDER_MODES, WIDTH_SUM_TOLERANCE
from .errors import TemplateError
from .values import Dimension, is_auto

logger = logging.getLogger(__name__)

BUILTIN_TEMPLATES_PATH = Path(__file__).with_name("templates.yaml")

FooterLayout = Literal["rows", "panel"]

# Zone that holds the footer for each footer layout variant
FOOTER_ZONE_NAMES: dict[str, str] = {
    "rows": "footer",
    "panel": "infoPanel",
}


@dataclass(frozen=True)
class CellSpec:
    """
    Smallest addressable rectangle in a footer row.

    Attributes:
        id: Identifier a collaborator renders into (e.g. "scale")
        content: Content kind ("northArrow", "qrcode", "dynamic", ...)
        width_percent: Fraction of the zone width taken by this cell
        label: Optional caption drawn with the content
    """

    id: str
    content: str
    width_percent: float
    label: str = ""


@dataclass(frozen=True)
class SectionSpec:
    """
    Horizontal row inside a zone.

    Attributes:
        y: Top of the row as a fraction of the zone height
        height: Row height as a fraction of the zone height
        cells: Cells laid out left to right
    """

    y: float
    height: float
    cells: tuple[CellSpec, ...] = ()

    def __post_init__(self):
        # Accept lists of dicts (from YAML loading)
        object.__setattr__(self, "cells", tuple(
            CellSpec(**c) if isinstance(c, Mapping) else c for c in self.cells
        ))

    @property
    def width_sum(self) -> float:
        return sum(c.width_percent for c in self.cells)


@dataclass(frozen=True)
class ZoneSpec:
    """
    Named rectangular region of the page.

    Attributes:
        x, y, width: Dimensions resolved against the page (see values.py)
        height: Dimension, or "auto" to fill the remaining page height
        print_safe_margin: Inner margin as a fraction of the zone width
        sections: Ordered rows of cells, by row name
    """

    x: Dimension
    y: Dimension
    width: Dimension
    height: Dimension
    print_safe_margin: float = 0.0
    sections: Mapping[str, SectionSpec] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "sections", {
            name: SectionSpec(**s) if isinstance(s, Mapping) else s
            for name, s in dict(self.sections or {}).items()
        })


@dataclass(frozen=True)
class Template:
    """
    Complete page template for one render mode and orientation.

    Attributes:
        name: Template name (e.g. "LAND_2D")
        render_mode: "2D" or "3D"
        orientation: "landscape" or "portrait"
        zones: Zone specs by zone name
        auto_fill_zone: Zone whose "auto" height fills the page between
            mirrored top and bottom margins
        footer_layout: "rows" (multi-row footer) or "panel" (legacy info panel)
        reference_file: Reference printout the layout was taken from
    """

    name: str
    render_mode: str
    orientation: str
    zones: Mapping[str, ZoneSpec] = field(default_factory=dict)
    auto_fill_zone: str | None = "map"
    footer_layout: FooterLayout = "rows"
    reference_file: str = ""

    def __post_init__(self):
        object.__setattr__(self, "render_mode", str(self.render_mode).upper())
        object.__setattr__(self, "orientation", str(self.orientation).lower())
        object.__setattr__(self, "zones", {
            name: ZoneSpec(**z) if isinstance(z, Mapping) else z
            for name, z in dict(self.zones).items()
        })

    @property
    def key(self) -> tuple[str, str]:
        """Catalog identity: (render_mode, orientation)."""
        return (self.render_mode, self.orientation)

    @property
    def map_zone_name(self) -> str:
        return self.auto_fill_zone or "map"

    @property
    def footer_zone_name(self) -> str:
        return FOOTER_ZONE_NAMES.get(self.footer_layout, "footer")

    @property
    def map_zone(self) -> ZoneSpec | None:
        return self.zones.get(self.map_zone_name)

    @property
    def footer_zone(self) -> ZoneSpec | None:
        return self.zones.get(self.footer_zone_name)


def validate_template(template: Template) -> None:
    """
    Reject templates that would silently produce degenerate geometry.

    Raises:
        TemplateError: On unknown mode/orientation/layout, a print-safe margin
            outside [0, 0.5), non-positive cell widths, or a row whose cell
            widths sum to more than 1
    """
    where = f"template {template.name!r}"
    if template.render_mode not in RENDER_MODES:
        raise TemplateError(f"{where}: unknown render mode {template.render_mode!r}")
    if template.orientation not in ORIENTATIONS:
        raise TemplateError(f"{where}: unknown orientation {template.orientation!r}")
    if template.footer_layout not in FOOTER_ZONE_NAMES:
        raise TemplateError(f"{where}: unknown footer layout {template.footer_layout!r}")
    if not template.zones:
        raise TemplateError(f"{where}: no zones defined")
    if template.auto_fill_zone is not None and template.auto_fill_zone not in template.zones:
        raise TemplateError(f"{where}: auto-fill zone {template.auto_fill_zone!r} is not defined")

    for zone_name, zone in template.zones.items():
        if not 0 <= zone.print_safe_margin < 0.5:
            raise TemplateError(
                f"{where}: zone {zone_name!r} print_safe_margin "
                f"{zone.print_safe_margin} must be in [0, 0.5)"
            )
        for row_name, section in zone.sections.items():
            for cell in section.cells:
                if cell.width_percent <= 0:
                    raise TemplateError(
                        f"{where}: cell {cell.id!r} in {zone_name}.{row_name} "
                        f"has non-positive width_percent {cell.width_percent}"
                    )
            if section.width_sum > 1 + WIDTH_SUM_TOLERANCE:
                raise TemplateError(
                    f"{where}: cells in {zone_name}.{row_name} sum to "
                    f"{section.width_sum:.4f} of the zone width (max 1)"
                )
        if is_auto(zone.width) or is_auto(zone.x) or is_auto(zone.y):
            raise TemplateError(f"{where}: only zone height may be 'auto' ({zone_name!r})")


class TemplateCatalog:
    """
    Registry of templates keyed by (render mode, orientation).

    Templates are validated when they enter the catalog. Lookups of an
    unknown key fall back to the default template (landscape 2D) so an export
    can still proceed.
    """

    def __init__(self, templates: list[Template] | None = None, default_key: tuple[str, str] = ("2D", "landscape")):
        self._templates: dict[tuple[str, str], Template] = {}
        self.default_key = default_key
        for template in templates or []:
            self.register(template)

    def register(self, template: Template) -> None:
        """Validate and add a template, replacing any with the same key."""
        validate_template(template)
        if template.key in self._templates:
            logger.debug("Replacing template %s for %s", self._templates[template.key].name, template.key)
        self._templates[template.key] = template

    def get(self, render_mode: str, orientation: str) -> Template:
        """Template for a mode and orientation, or the default template."""
        key = (render_mode.upper(), orientation.lower())
        template = self._templates.get(key)
        if template is not None:
            return template

        logger.error("Template not found for mode: %s, orientation: %s", render_mode, orientation)
        fallback = self._templates.get(self.default_key)
        if fallback is None:
            raise TemplateError(f"No template for {key} and no default template {self.default_key}")
        return fallback

    def get_by_name(self, name: str) -> Template | None:
        for template in self._templates.values():
            if template.name == name:
                return template
        return None

    def names(self) -> list[str]:
        return [t.name for t in self._templates.values()]

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, key: object) -> bool:
        return key in self._templates

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TemplateCatalog:
        """Build a catalog from parsed YAML (``{"templates": [...]}``)."""
        entries = data.get("templates") or []
        if not isinstance(entries, list):
            raise TemplateError("'templates' must be a list")
        try:
            templates = [Template(**entry) for entry in entries]
        except TypeError as e:
            raise TemplateError(f"Malformed template definition: {e}") from e
        return cls(templates)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> TemplateCatalog:
        """Load a template catalog from a YAML file."""
        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)


_builtin_catalog: TemplateCatalog | None = None


def builtin_catalog() -> TemplateCatalog:
    """The catalog shipped with the package (loaded on first use)."""
    global _builtin_catalog
    if _builtin_catalog is None:
        _builtin_catalog = TemplateCatalog.from_yaml(BUILTIN_TEMPLATES_PATH)
    return _builtin_catalog
