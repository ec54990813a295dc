"""
Drawing sink interface shared by the raster and vector backends.

Every coordinate passed to a backend is already final: page millimetres for
exports (or canvas pixels for the preview overlay). Backends decide *how* a
rectangle, line, circle, glyph, or image is emitted, never *where*. World
content reaches a backend only through ExportTransform.world_to_output.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from ..constants import BORDER_COLOR, BORDER_WIDTH
from ..rect import PageSize, ResolvedRect

if TYPE_CHECKING:
    from PIL import Image

Point = tuple[float, float]
Dash = tuple[float, float] | None


class RenderBackend(ABC):
    """
    Abstract page renderer.

    Attributes:
        page_size: Current page dimensions in the backend's unit (mm)
    """

    name = "backend"

    def __init__(self):
        self.page_size: PageSize | None = None

    @abstractmethod
    def reset(self, page_size: PageSize, background: str = "#ffffff", paper_name: str | None = None) -> None:
        """Start a new page of ``page_size``, discarding all prior content."""

    @abstractmethod
    def draw_rect(
        self,
        rect: ResolvedRect,
        stroke: str | None = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        fill: str | None = None,
        dash: Dash = None,
    ) -> None:
        ...

    @abstractmethod
    def draw_line(
        self,
        start: Point,
        end: Point,
        stroke: str = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        dash: Dash = None,
    ) -> None:
        ...

    @abstractmethod
    def draw_polyline(
        self,
        points: Sequence[Point],
        stroke: str = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        closed: bool = False,
        fill: str | None = None,
    ) -> None:
        ...

    @abstractmethod
    def draw_circle(
        self,
        center: Point,
        radius: float,
        stroke: str | None = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        fill: str | None = None,
    ) -> None:
        ...

    @abstractmethod
    def draw_text(
        self,
        position: Point,
        text: str,
        size: float,
        color: str = BORDER_COLOR,
        anchor: str = "start",
        bold: bool = False,
    ) -> None:
        """
        Draw one line of text.

        Args:
            position: Baseline point of the text
            text: Text to draw
            size: Font size (em height) in backend units
            anchor: "start", "middle", or "end" horizontal alignment
        """

    @abstractmethod
    def place_image(self, image: Image.Image, rect: ResolvedRect) -> None:
        """Draw a bitmap stretched to ``rect``."""

    @abstractmethod
    def _push_clip(self, rect: ResolvedRect) -> None:
        ...

    @abstractmethod
    def _pop_clip(self) -> None:
        ...

    @contextmanager
    def clip(self, rect: ResolvedRect) -> Iterator[None]:
        """Restrict drawing inside the block to ``rect``."""
        self._push_clip(rect)
        try:
            yield
        finally:
            self._pop_clip()

    @abstractmethod
    def save_pdf(self, output_path: str | Path) -> None:
        """Write the current page as a single-page PDF."""

    def _require_page(self) -> PageSize:
        if self.page_size is None:
            raise RuntimeError(f"{type(self).__name__}.reset() must be called before drawing")
        return self.page_size
