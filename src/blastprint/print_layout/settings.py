"""
Print settings and the resolved-layout cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from .constants import (
    DEFAULT_ORIENTATION,
    DEFAULT_PAPER_SIZE,
    DEFAULT_RENDER_MODE,
    ORIENTATIONS,
    PAPER_SIZES_MM,
    RENDER_MODES,
)
from .errors import ConfigurationError
from .rect import PageSize
from .templates import TemplateCatalog, builtin_catalog
from .zones import ResolvedLayout, resolve_layout

logger = logging.getLogger(__name__)


def page_size_for(paper_size: str, orientation: str) -> PageSize:
    """
    Page dimensions in mm for a paper size and orientation.

    Raises:
        ConfigurationError: If the paper size or orientation is unknown
    """
    try:
        short_side, long_side = PAPER_SIZES_MM[paper_size.upper()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown paper size {paper_size!r} (expected one of {', '.join(PAPER_SIZES_MM)})"
        ) from None

    orientation = orientation.lower()
    if orientation == "landscape":
        return PageSize(long_side, short_side)
    if orientation == "portrait":
        return PageSize(short_side, long_side)
    raise ConfigurationError(f"Unknown orientation {orientation!r}")


@dataclass(frozen=True)
class PrintSettings:
    """
    Everything that selects a template and a page.

    Attributes:
        paper_size: Key into the paper-size table ("A4" ... "A0")
        orientation: "landscape" or "portrait"
        render_mode: "2D" or "3D"
        preview_active: Whether the on-screen print preview is shown
    """

    paper_size: str = DEFAULT_PAPER_SIZE
    orientation: str = DEFAULT_ORIENTATION
    render_mode: str = DEFAULT_RENDER_MODE
    preview_active: bool = True

    def __post_init__(self):
        object.__setattr__(self, "paper_size", self.paper_size.upper())
        object.__setattr__(self, "orientation", self.orientation.lower())
        object.__setattr__(self, "render_mode", self.render_mode.upper())

        if self.paper_size not in PAPER_SIZES_MM:
            raise ConfigurationError(f"Unknown paper size {self.paper_size!r}")
        if self.orientation not in ORIENTATIONS:
            raise ConfigurationError(f"Unknown orientation {self.orientation!r}")
        if self.render_mode not in RENDER_MODES:
            raise ConfigurationError(f"Unknown render mode {self.render_mode!r}")

    @property
    def page_size(self) -> PageSize:
        return page_size_for(self.paper_size, self.orientation)

    @property
    def layout_key(self) -> tuple[str, str, str]:
        """The fields a resolved layout depends on."""
        return (self.paper_size, self.orientation, self.render_mode)

    def with_changes(self, **changes) -> PrintSettings:
        return replace(self, **changes)


class LayoutCache:
    """
    Resolved layout for the most recent settings.

    The layout is recomputed only when paper size, orientation, or render
    mode changes. ``version`` increments on every recompute so dependants
    (e.g. a preview overlay) can tell when their cached geometry is stale.
    """

    def __init__(self, catalog: TemplateCatalog | None = None):
        self.catalog = catalog if catalog is not None else builtin_catalog()
        self.version = 0
        self._key: tuple[str, str, str] | None = None
        self._layout: ResolvedLayout | None = None

    def get(self, settings: PrintSettings) -> ResolvedLayout:
        if self._layout is None or settings.layout_key != self._key:
            template = self.catalog.get(settings.render_mode, settings.orientation)
            self._layout = resolve_layout(template, settings.page_size)
            self._key = settings.layout_key
            self.version += 1
            logger.debug("Resolved layout %s for %s (version %d)", template.name, self._key, self.version)
        return self._layout

    def invalidate(self) -> None:
        self._layout = None
        self._key = None
