"""
Bitmap backend built on Pillow.

Drawing calls take page millimetres. Conversion to device pixels happens
only here, at emission, with one uniform factor (dpi / 25.4), so placement
is identical to the vector backend.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from ..constants import BORDER_COLOR, BORDER_WIDTH, DEFAULT_DPI, MAX_RASTER_SIDE, MM_PER_INCH
from ..errors import ResourceLimitError
from ..rect import PageSize, ResolvedRect
from .base import Dash, Point, RenderBackend

logger = logging.getLogger(__name__)

_TEXT_ANCHORS = {"start": "ls", "middle": "ms", "end": "rs"}

_FONT_CANDIDATES = {
    False: [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/System/Library/Fonts/Helvetica.ttc",
        "C:\\Windows\\Fonts\\arial.ttf",
    ],
    True: [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/System/Library/Fonts/Helvetica.ttc",
        "C:\\Windows\\Fonts\\arialbd.ttf",
    ],
}


def load_font(size_px: int, bold: bool = False) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """A TrueType system font at ``size_px``, else Pillow's built-in font."""
    for font_path in _FONT_CANDIDATES[bold]:
        try:
            return ImageFont.truetype(font_path, size_px)
        except OSError:
            continue
    return ImageFont.load_default(size=size_px)


class RasterBackend(RenderBackend):
    """
    Page rendered to a Pillow RGB image.

    The image is reused between runs and reallocated only when the device
    size changes; every reset fills it with the background colour.

    Attributes:
        dpi: Device resolution
        max_side: Largest device size (px) either side may have
        image: Current page bitmap (None before the first reset)
    """

    name = "raster"

    def __init__(self, dpi: int = DEFAULT_DPI, max_side: int = MAX_RASTER_SIDE):
        super().__init__()
        self.dpi = dpi
        self.max_side = max_side
        self.image: Image.Image | None = None
        self._draw: ImageDraw.ImageDraw | None = None
        self._clip_stack: list[tuple[Image.Image, tuple[int, int, int, int]]] = []
        self._fonts: dict[tuple[int, bool], ImageFont.ImageFont] = {}

    @property
    def px_per_mm(self) -> float:
        return self.dpi / MM_PER_INCH

    def device_size(self, page_size: PageSize) -> tuple[int, int]:
        return (round(page_size.width * self.px_per_mm), round(page_size.height * self.px_per_mm))

    def check_page_size(self, page_size: PageSize, paper_name: str | None = None) -> tuple[int, int]:
        """
        Device size for a page, refusing pages over the raster limit.

        Raises:
            ResourceLimitError: If either side exceeds ``max_side`` pixels
        """
        width_px, height_px = self.device_size(page_size)
        if max(width_px, height_px) > self.max_side:
            label = paper_name or f"{page_size.width:g}x{page_size.height:g}mm"
            raise ResourceLimitError(
                f"The selected paper size ({label}) creates an image too large to export "
                f"({width_px}x{height_px} px at {self.dpi} dpi, limit {self.max_side} px). "
                f"Choose a smaller paper size or the vector output."
            )
        return width_px, height_px

    def reset(self, page_size: PageSize, background: str = "#ffffff", paper_name: str | None = None) -> None:
        size = self.check_page_size(page_size, paper_name)
        if self.image is None or self.image.size != size:
            self.image = Image.new("RGB", size, background)
        else:
            self.image.paste(background, (0, 0, *size))
        self._draw = ImageDraw.Draw(self.image)
        self._clip_stack.clear()
        self.page_size = page_size
        logger.debug("Raster page %dx%d px at %d dpi", size[0], size[1], self.dpi)

    # -------------------------------------------------------------------------
    # Unit conversion
    # -------------------------------------------------------------------------

    def to_px(self, value: float) -> float:
        return value * self.px_per_mm

    def point_px(self, point: Point) -> tuple[float, float]:
        return (point[0] * self.px_per_mm, point[1] * self.px_per_mm)

    def _width_px(self, width: float) -> int:
        return max(1, round(width * self.px_per_mm))

    def _box_px(self, rect: ResolvedRect) -> tuple[int, int, int, int]:
        left, top = self.point_px((rect.left, rect.top))
        right, bottom = self.point_px((rect.right, rect.bottom))
        return (round(left), round(top), round(right), round(bottom))

    def pixel_at(self, point: Point) -> tuple[int, int, int]:
        """Colour of the device pixel under a page point (mm)."""
        x, y = self.point_px(point)
        return self.image.getpixel((int(x), int(y)))

    # -------------------------------------------------------------------------
    # Primitives
    # -------------------------------------------------------------------------

    def _canvas(self) -> ImageDraw.ImageDraw:
        self._require_page()
        return self._draw

    def draw_rect(
        self,
        rect: ResolvedRect,
        stroke: str | None = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        fill: str | None = None,
        dash: Dash = None,
    ) -> None:
        draw = self._canvas()
        box = self._box_px(rect)
        if box[2] < box[0] or box[3] < box[1]:
            return
        if dash is None:
            draw.rectangle(box, fill=fill, outline=stroke, width=self._width_px(stroke_width) if stroke else 0)
            return

        if fill is not None:
            draw.rectangle(box, fill=fill)
        if stroke is not None:
            corners = [(rect.left, rect.top), (rect.right, rect.top),
                       (rect.right, rect.bottom), (rect.left, rect.bottom)]
            for start, end in zip(corners, corners[1:] + corners[:1]):
                self.draw_line(start, end, stroke, stroke_width, dash)

    def draw_line(
        self,
        start: Point,
        end: Point,
        stroke: str = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        dash: Dash = None,
    ) -> None:
        draw = self._canvas()
        width = self._width_px(stroke_width)
        p1, p2 = self.point_px(start), self.point_px(end)
        if dash is None:
            draw.line([p1, p2], fill=stroke, width=width)
            return

        on, off = self.to_px(dash[0]), self.to_px(dash[1])
        length = math.hypot(p2[0] - p1[0], p2[1] - p1[1])
        if length == 0 or on <= 0:
            return
        ux, uy = (p2[0] - p1[0]) / length, (p2[1] - p1[1]) / length
        pos = 0.0
        while pos < length:
            seg_end = min(pos + on, length)
            draw.line(
                [(p1[0] + ux * pos, p1[1] + uy * pos), (p1[0] + ux * seg_end, p1[1] + uy * seg_end)],
                fill=stroke,
                width=width,
            )
            pos = seg_end + off

    def draw_polyline(
        self,
        points: Sequence[Point],
        stroke: str = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        closed: bool = False,
        fill: str | None = None,
    ) -> None:
        draw = self._canvas()
        pts = [self.point_px(p) for p in points]
        if len(pts) < 2:
            return
        if closed:
            draw.polygon(pts, fill=fill, outline=stroke, width=self._width_px(stroke_width))
        else:
            draw.line(pts, fill=stroke, width=self._width_px(stroke_width), joint="curve")

    def draw_circle(
        self,
        center: Point,
        radius: float,
        stroke: str | None = BORDER_COLOR,
        stroke_width: float = BORDER_WIDTH,
        fill: str | None = None,
    ) -> None:
        draw = self._canvas()
        cx, cy = self.point_px(center)
        r = self.to_px(radius)
        draw.ellipse(
            [cx - r, cy - r, cx + r, cy + r],
            fill=fill,
            outline=stroke,
            width=self._width_px(stroke_width) if stroke else 0,
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
        draw = self._canvas()
        size_px = max(1, round(self.to_px(size)))
        key = (size_px, bold)
        if key not in self._fonts:
            self._fonts[key] = load_font(size_px, bold)
        draw.text(
            self.point_px(position),
            text,
            fill=color,
            font=self._fonts[key],
            anchor=_TEXT_ANCHORS.get(anchor, "ls"),
        )

    def place_image(self, image: Image.Image, rect: ResolvedRect) -> None:
        self._require_page()
        box = self._box_px(rect)
        size = (box[2] - box[0], box[3] - box[1])
        if size[0] <= 0 or size[1] <= 0:
            return
        resized = image.convert("RGBA").resize(size, Image.Resampling.LANCZOS)
        self.image.paste(resized, box[:2], resized)

    # -------------------------------------------------------------------------
    # Clipping
    # -------------------------------------------------------------------------

    def _push_clip(self, rect: ResolvedRect) -> None:
        # Drawing proceeds on the page; on pop, everything outside the clip box
        # is restored from this snapshot.
        self._require_page()
        self._clip_stack.append((self.image.copy(), self._box_px(rect)))

    def _pop_clip(self) -> None:
        snapshot, box = self._clip_stack.pop()
        inside = self.image.crop(box)
        self.image.paste(snapshot)
        self.image.paste(inside, box[:2])

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def save_png(self, output_path: str | Path) -> None:
        self._require_page()
        self.image.save(output_path, format="PNG", dpi=(self.dpi, self.dpi))

    def save_pdf(self, output_path: str | Path) -> None:
        """Place the bitmap full-page on a PDF page of the same size."""
        page = self._require_page()
        page_w, page_h = page.width * mm, page.height * mm
        c = canvas.Canvas(str(output_path), pagesize=(page_w, page_h))
        c.drawImage(ImageReader(self.image), 0, 0, width=page_w, height=page_h)
        c.showPage()
        c.save()
