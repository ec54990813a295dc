"""
Raster assets placed in footer cells.

The navigation indicator (north arrow in 2D, XYZ gizmo in 3D) and the QR
code are bitmaps. Both backends embed them as opaque images positioned by
rectangle only, so they look the same in raster and vector output.

A missing asset is never fatal: ``place_asset`` logs a warning and writes a
short fallback text centred in the cell instead.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from pathlib import Path

import qrcode
from PIL import Image, ImageDraw

from .constants import ASSET_FILL_FRACTION, BORDER_COLOR, FOOTER_HEADER_FONT_SIZE
from .errors import AssetError
from .rect import ResolvedRect

logger = logging.getLogger(__name__)

# Returns the captured bitmap, or None if nothing could be captured
CaptureProvider = Callable[[], "Image.Image | None"]

QR_CODE_SIZE_PX = 110

# Axis colours of the XYZ gizmo
AXIS_COLORS = {
    "X": "#CC0000",
    "Y": "#00AA00",
    "Z": "#0000CC",
}


def render_north_arrow(size_px: int = 256, rotation_degrees: float = 0.0, color: str = BORDER_COLOR) -> Image.Image:
    """
    North arrow bitmap.

    Args:
        size_px: Side of the square image
        rotation_degrees: Clockwise rotation of the view; the arrow turns the
            opposite way so it keeps pointing to grid north
        color: Arrow and label colour

    Returns:
        RGBA image with a transparent background
    """
    image = Image.new("RGBA", (size_px, size_px), (255, 255, 255, 0))
    draw = ImageDraw.Draw(image, "RGBA")
    cx = cy = size_px / 2
    length = size_px * 0.32
    half_width = size_px * 0.12

    angle = math.radians(90 - rotation_degrees)
    tip = (cx + length * math.cos(angle), cy - length * math.sin(angle))
    tail = (cx - length * math.cos(angle), cy + length * math.sin(angle))
    perp = angle + math.pi / 2
    left = (cx + half_width * math.cos(perp), cy - half_width * math.sin(perp))
    right = (cx - half_width * math.cos(perp), cy + half_width * math.sin(perp))

    # Filled half on one side, outlined half on the other
    draw.polygon([tip, left, tail], fill=color, outline=color)
    draw.polygon([tip, right, tail], outline=color, width=max(1, size_px // 64))

    label_dist = length + size_px * 0.1
    label_center = (cx + label_dist * math.cos(angle), cy - label_dist * math.sin(angle))
    draw.text(label_center, "N", fill=color, anchor="mm", font_size=max(10, size_px // 6))
    return image


def render_xyz_gizmo(size_px: int = 256) -> Image.Image:
    """
    Isometric XYZ axis bitmap.

    X (East) runs 30 degrees below horizontal to the right, Y (North) 30
    degrees above horizontal to the right, Z (Up) straight up.
    """
    image = Image.new("RGBA", (size_px, size_px), (255, 255, 255, 0))
    draw = ImageDraw.Draw(image, "RGBA")
    ox, oy = size_px * 0.35, size_px * 0.62
    length = size_px * 0.4
    arrow_len = length * 0.25
    line_w = max(1, size_px // 64)
    angle_30 = math.radians(30)

    directions = {
        "X": (math.cos(-angle_30), -math.sin(-angle_30)),
        "Y": (math.cos(angle_30), -math.sin(angle_30)),
        "Z": (0.0, -1.0),
    }

    for axis, (dx, dy) in directions.items():
        color = AXIS_COLORS[axis]
        tip = (ox + length * dx, oy + length * dy)
        draw.line([(ox, oy), tip], fill=color, width=line_w * 2)

        # Arrowhead: triangle back from the tip
        px, py = -dy, dx
        base = (tip[0] - arrow_len * dx, tip[1] - arrow_len * dy)
        head = [
            tip,
            (base[0] + arrow_len * 0.4 * px, base[1] + arrow_len * 0.4 * py),
            (base[0] - arrow_len * 0.4 * px, base[1] - arrow_len * 0.4 * py),
        ]
        draw.polygon(head, fill=color)

        label = (tip[0] + dx * size_px * 0.08, tip[1] + dy * size_px * 0.08)
        draw.text(label, axis, fill=color, anchor="mm", font_size=max(10, size_px // 8))

    r = max(2, size_px // 40)
    draw.ellipse([ox - r, oy - r, ox + r, oy + r], fill=BORDER_COLOR)
    return image


def render_qr_code(data: str, size_px: int = QR_CODE_SIZE_PX) -> Image.Image:
    """QR code bitmap for ``data`` (black on white)."""
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=1, box_size=10)
    qr.add_data(data)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white").get_image()
    return image.convert("RGB").resize((size_px, size_px), Image.Resampling.NEAREST)


def load_image_asset(path: str | Path) -> Image.Image:
    """
    Load a bitmap asset from disk.

    Raises:
        AssetError: If the file is missing or is not a readable image
    """
    try:
        with Image.open(path) as image:
            image.load()
            return image.copy()
    except (OSError, ValueError) as e:
        raise AssetError(f"Cannot load image asset {path}: {e}") from e


def capture(provider: CaptureProvider | None, name: str) -> Image.Image | None:
    """Run a capture provider, logging (not raising) on failure."""
    if provider is None:
        return None
    try:
        return provider()
    except AssetError as e:
        logger.warning("Failed to capture %s: %s", name, e)
        return None


def place_asset(
    backend,
    rect: ResolvedRect,
    image: Image.Image | None,
    fallback_text: str,
    fill_fraction: float = ASSET_FILL_FRACTION,
) -> bool:
    """
    Place a bitmap as a centred square inside a cell.

    Args:
        backend: RenderBackend to draw on
        rect: Cell rectangle
        image: Bitmap, or None if it could not be captured
        fallback_text: Text drawn centred in the cell when ``image`` is None
        fill_fraction: Square side as a fraction of the cell's short side

    Returns:
        True if the image was placed, False if the fallback text was drawn
    """
    if image is None:
        logger.warning("No image for cell at %r; drawing %r instead", rect, fallback_text)
        backend.draw_text(
            (rect.center_x, rect.center_y + FOOTER_HEADER_FONT_SIZE / 3),
            fallback_text,
            size=FOOTER_HEADER_FONT_SIZE,
            anchor="middle",
            bold=True,
        )
        return False

    backend.place_image(image, rect.fit_square(fill_fraction))
    return True
