"""
Rectangle types for page-space (mm) and screen-space (px) layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


class PageSize(NamedTuple):
    """Page dimensions in millimetres."""

    width: float
    height: float

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height


class CanvasSize(NamedTuple):
    """Interactive canvas dimensions in pixels."""

    width: float
    height: float


@dataclass(frozen=True)
class ResolvedRect:
    """
    Axis-aligned rectangle on the page or on the interactive canvas.

    The unit depends on the caller: millimetres for page space, pixels for
    screen space. ``y`` grows downward in both.

    Attributes:
        x: Left edge
        y: Top edge
        width: Width of the rectangle
        height: Height of the rectangle
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> tuple[float, float]:
        return (self.center_x, self.center_y)

    @property
    def size(self) -> tuple[float, float]:
        return (self.width, self.height)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Bounds as (left, top, right, bottom)."""
        return (self.left, self.top, self.right, self.bottom)

    def as_rect(self) -> ResolvedRect:
        """Plain rectangle without any subclass metadata."""
        return ResolvedRect(self.x, self.y, self.width, self.height)

    def inset(self, margin: float) -> ResolvedRect:
        """Return a rectangle inset by ``margin`` on all four sides.

        Negative results are not clamped: a margin larger than half the
        short side yields a degenerate rectangle.
        """
        return ResolvedRect(
            x=self.x + margin,
            y=self.y + margin,
            width=self.width - 2 * margin,
            height=self.height - 2 * margin,
        )

    def contains(self, other: ResolvedRect, tolerance: float = 1e-9) -> bool:
        """True if ``other`` lies entirely inside this rectangle."""
        return (
            other.left >= self.left - tolerance
            and other.top >= self.top - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )

    def contains_point(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def map_into(self, origin_x: float, origin_y: float, scale_x: float, scale_y: float) -> ResolvedRect:
        """Scale this rectangle into another space: ``origin + value * scale``."""
        return ResolvedRect(
            x=origin_x + self.x * scale_x,
            y=origin_y + self.y * scale_y,
            width=self.width * scale_x,
            height=self.height * scale_y,
        )

    def fit_square(self, fraction: float = 1.0) -> ResolvedRect:
        """Largest centred square covering ``fraction`` of the short side."""
        side = min(self.width, self.height) * fraction
        return ResolvedRect(
            x=self.x + (self.width - side) / 2,
            y=self.y + (self.height - side) / 2,
            width=side,
            height=side,
        )

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(x={self.x:.3f}, y={self.y:.3f}, "
                f"w={self.width:.3f}, h={self.height:.3f})")
