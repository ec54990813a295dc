"""
World-space content and its placement on the page.

Entities carry world coordinates only. Every position drawn here goes
through ``ExportTransform.world_to_output``; nothing in this module knows
the print scale or offset beyond what the transform reports.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Union

from PIL import Image

from .constants import (
    BORDER_COLOR,
    DATA_LINE_WIDTH,
    LABEL_FONT_SIZE,
    MIN_COLLAR_RADIUS,
    SUBDRILL_COLOR,
    TOE_RADIUS,
)
from .rect import ResolvedRect
from .transform import ExportTransform, WorldBounds

logger = logging.getLogger(__name__)


@dataclass
class PointEntity:
    """Single world point drawn as a small dot."""

    x: float
    y: float
    z: float = 0.0
    color: str = BORDER_COLOR
    radius: float = 0.5  # mm on paper


@dataclass
class PolylineEntity:
    """
    Open or closed line through world points.

    Attributes:
        points: World vertices as (x, y) or (x, y, z)
        closed: Join the last vertex back to the first
        color: Stroke colour
        line_width: Stroke width in paper mm
    """

    points: list[tuple[float, ...]] = field(default_factory=list)
    closed: bool = False
    color: str = BORDER_COLOR
    line_width: float = DATA_LINE_WIDTH * 2

    def __post_init__(self):
        self.points = [tuple(p) for p in self.points]


@dataclass
class TextEntity:
    """Text anchored at a world point."""

    x: float
    y: float
    text: str
    z: float = 0.0
    color: str = BORDER_COLOR
    size: float = LABEL_FONT_SIZE


@dataclass
class HoleRecord:
    """
    One blast hole.

    Attributes:
        hole_id: Label drawn beside the collar
        collar: Collar position (x, y, z)
        toe: Toe position (x, y, z)
        grade: Grade (floor) position (x, y, z); None if the hole has no subdrill
        diameter_mm: Hole diameter in millimetres
        color: Collar and track colour
    """

    hole_id: str
    collar: tuple[float, float, float]
    toe: tuple[float, float, float]
    grade: tuple[float, float, float] | None = None
    diameter_mm: float = 115.0
    color: str = BORDER_COLOR

    def __post_init__(self):
        self.collar = tuple(self.collar)
        self.toe = tuple(self.toe)
        if self.grade is not None:
            self.grade = tuple(self.grade)

    @property
    def is_angled(self) -> bool:
        """True if the toe is offset from the collar in plan."""
        return not (math.isclose(self.collar[0], self.toe[0]) and math.isclose(self.collar[1], self.toe[1]))

    @property
    def has_subdrill(self) -> bool:
        """True if the hole extends past grade (toe differs from grade)."""
        if self.grade is None:
            return False
        return not all(math.isclose(g, t) for g, t in zip(self.grade, self.toe))


@dataclass
class BackgroundImage:
    """
    Georeferenced bitmap drawn beneath the data.

    Attributes:
        image: The bitmap
        bounds: World rectangle the bitmap covers
    """

    image: Image.Image
    bounds: WorldBounds

    def __post_init__(self):
        if isinstance(self.bounds, Mapping):
            self.bounds = WorldBounds(**self.bounds)


Entity = Union[PointEntity, PolylineEntity, TextEntity, HoleRecord, BackgroundImage]


def collar_radius(diameter_mm: float, scale: float) -> float:
    """Collar circle radius in paper mm for a hole diameter at ``scale``."""
    return max(MIN_COLLAR_RADIUS, diameter_mm / 1000 * scale / 2)


def entity_points(entities: Iterable[Entity]) -> Iterator[tuple[float, float]]:
    """Every world (x, y) an entity occupies, for fit-to-data bounds."""
    for entity in entities:
        if isinstance(entity, (PointEntity, TextEntity)):
            yield (entity.x, entity.y)
        elif isinstance(entity, PolylineEntity):
            for p in entity.points:
                yield (p[0], p[1])
        elif isinstance(entity, HoleRecord):
            yield entity.collar[:2]
            yield entity.toe[:2]
            if entity.grade is not None:
                yield entity.grade[:2]
        elif isinstance(entity, BackgroundImage):
            yield (entity.bounds.min_x, entity.bounds.min_y)
            yield (entity.bounds.max_x, entity.bounds.max_y)


def split_background(entities: Iterable[Entity]) -> tuple[list[BackgroundImage], list[Entity]]:
    """Separate background images from the drawable data."""
    backgrounds, data = [], []
    for entity in entities:
        (backgrounds if isinstance(entity, BackgroundImage) else data).append(entity)
    return backgrounds, data


def _draw_hole(backend, transform: ExportTransform, hole: HoleRecord) -> None:
    collar = transform.world_to_output(*hole.collar[:2])
    toe = transform.world_to_output(*hole.toe[:2])

    if hole.is_angled:
        # Track: collar to grade (or toe when there is no subdrill)
        end = transform.world_to_output(*hole.grade[:2]) if hole.grade is not None else toe
        backend.draw_line(collar, end, stroke=hole.color, stroke_width=DATA_LINE_WIDTH)

    if hole.has_subdrill:
        grade = transform.world_to_output(*hole.grade[:2])
        backend.draw_line(grade, toe, stroke=SUBDRILL_COLOR, stroke_width=DATA_LINE_WIDTH)

    backend.draw_circle(toe, TOE_RADIUS, stroke=hole.color, stroke_width=DATA_LINE_WIDTH)
    radius = collar_radius(hole.diameter_mm, transform.scale)
    backend.draw_circle(collar, radius, stroke=hole.color, stroke_width=DATA_LINE_WIDTH, fill=hole.color)

    if hole.hole_id:
        backend.draw_text(
            (collar[0] + radius + 0.5, collar[1] - radius - 0.5),
            hole.hole_id,
            size=LABEL_FONT_SIZE,
            color=hole.color,
        )


def draw_background(backend, transform: ExportTransform, background: BackgroundImage) -> None:
    """Place a background bitmap at the output rectangle of its world bounds."""
    left, top = transform.world_to_output(background.bounds.min_x, background.bounds.max_y)
    right, bottom = transform.world_to_output(background.bounds.max_x, background.bounds.min_y)
    backend.place_image(background.image, ResolvedRect(left, top, right - left, bottom - top))


def draw_world_content(backend, transform: ExportTransform, entities: Iterable[Entity]) -> int:
    """
    Draw world entities onto a backend.

    Args:
        backend: RenderBackend receiving page-mm coordinates
        transform: The export's committed transform
        entities: Entities to draw, in order

    Returns:
        Number of entities drawn
    """
    count = 0
    for entity in entities:
        if isinstance(entity, BackgroundImage):
            draw_background(backend, transform, entity)
        elif isinstance(entity, HoleRecord):
            _draw_hole(backend, transform, entity)
        elif isinstance(entity, PolylineEntity):
            points = [transform.world_to_output(p[0], p[1]) for p in entity.points]
            backend.draw_polyline(points, stroke=entity.color, stroke_width=entity.line_width, closed=entity.closed)
        elif isinstance(entity, PointEntity):
            backend.draw_circle(
                transform.world_to_output(entity.x, entity.y),
                entity.radius,
                stroke=None,
                fill=entity.color,
            )
        elif isinstance(entity, TextEntity):
            backend.draw_text(
                transform.world_to_output(entity.x, entity.y),
                entity.text,
                size=entity.size,
                color=entity.color,
            )
        else:
            logger.warning("Skipping unsupported entity type: %s", type(entity).__name__)
            continue
        count += 1
    return count
