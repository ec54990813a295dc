"""
Coordinate transforms between world, interactive screen, and print output.

Three spaces are involved:

1. World: survey coordinates in metres, y increases northward (up)
2. Screen: interactive canvas pixels, y increases downward
3. Output: print-area millimetres (or device pixels), y increases downward

The export transform is derived from what is currently visible inside the
on-screen print boundary, so the exported map frames exactly what the
operator saw in the preview. Derivation is a pure function of its inputs:
the same boundary, view, canvas size, and output area always give equal
TransformParams, and every backend must draw with the one ExportTransform
produced for an export.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from .constants import DATA_PADDING_FRACTION
from .errors import DegenerateBoundsError
from .rect import CanvasSize, ResolvedRect


@dataclass(frozen=True)
class ViewState:
    """
    Interactive world-to-screen mapping.

    Attributes:
        scale: Screen pixels per world unit
        centroid_x, centroid_y: World point shown at the canvas centre
    """

    scale: float
    centroid_x: float = 0.0
    centroid_y: float = 0.0

    def world_to_screen(self, x: float, y: float, canvas_size: CanvasSize) -> tuple[float, float]:
        return (
            (x - self.centroid_x) * self.scale + canvas_size.width / 2,
            -(y - self.centroid_y) * self.scale + canvas_size.height / 2,
        )

    def screen_to_world(self, sx: float, sy: float, canvas_size: CanvasSize) -> tuple[float, float]:
        return (
            (sx - canvas_size.width / 2) / self.scale + self.centroid_x,
            -(sy - canvas_size.height / 2) / self.scale + self.centroid_y,
        )


@dataclass(frozen=True)
class WorldBounds:
    """Axis-aligned world rectangle."""

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def centroid(self) -> tuple[float, float]:
        return ((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def padded(self, fraction: float) -> WorldBounds:
        """Grow every side by ``fraction`` of the larger dimension."""
        pad = max(self.width, self.height) * fraction
        return WorldBounds(self.min_x - pad, self.max_x + pad, self.min_y - pad, self.max_y + pad)


@dataclass(frozen=True)
class TransformParams:
    """
    Parameters of a world-to-output mapping.

    Uniform scale, y-axis flip, then translate so that the centroid lands in
    the middle of the scaled data rectangle at ``offset``.

    Attributes:
        scale: Output units per world unit
        offset_x, offset_y: Top-left of the scaled data rectangle in output space
        centroid_x, centroid_y: World point mapped to the centre of that rectangle
    """

    scale: float
    offset_x: float
    offset_y: float
    centroid_x: float
    centroid_y: float


@dataclass(frozen=True)
class ExportTransform:
    """
    The committed world-to-output transform for one export.

    Attributes:
        params: Scale, offset, and centroid
        scaled_width, scaled_height: Size of the world rectangle in output units
        output_area: Destination rectangle the data was fitted into
        world_bounds: World rectangle that was fitted
    """

    params: TransformParams
    scaled_width: float
    scaled_height: float
    output_area: ResolvedRect
    world_bounds: WorldBounds

    @property
    def scale(self) -> float:
        return self.params.scale

    @property
    def data_rect(self) -> ResolvedRect:
        """Output rectangle actually covered by the world bounds."""
        return ResolvedRect(self.params.offset_x, self.params.offset_y, self.scaled_width, self.scaled_height)

    def world_to_output(self, x: float, y: float) -> tuple[float, float]:
        p = self.params
        return (
            (x - p.centroid_x) * p.scale + p.offset_x + self.scaled_width / 2,
            -(y - p.centroid_y) * p.scale + p.offset_y + self.scaled_height / 2,
        )

    def output_to_world(self, ox: float, oy: float) -> tuple[float, float]:
        p = self.params
        return (
            (ox - p.offset_x - self.scaled_width / 2) / p.scale + p.centroid_x,
            -(oy - p.offset_y - self.scaled_height / 2) / p.scale + p.centroid_y,
        )

    def world_to_output_array(self, points) -> np.ndarray:
        """
        Vectorised world_to_output.

        Args:
            points: Array-like of shape (N, 2) or (N, 3); z is ignored

        Returns:
            Array of shape (N, 2) in output units
        """
        p = self.params
        pts = np.atleast_2d(np.asarray(points, dtype=float))
        if pts.size == 0:
            return np.empty((0, 2))
        out = np.empty((len(pts), 2))
        out[:, 0] = (pts[:, 0] - p.centroid_x) * p.scale + p.offset_x + self.scaled_width / 2
        out[:, 1] = -(pts[:, 1] - p.centroid_y) * p.scale + p.offset_y + self.scaled_height / 2
        return out


def visible_world_bounds(boundary: ResolvedRect, view: ViewState, canvas_size: CanvasSize) -> WorldBounds:
    """
    World rectangle visible inside an on-screen rectangle.

    The top-left screen corner maps to (min_x, max_y) and the bottom-right to
    (max_x, min_y) because screen y points down and world y points up.
    """
    left, top = view.screen_to_world(boundary.left, boundary.top, canvas_size)
    right, bottom = view.screen_to_world(boundary.right, boundary.bottom, canvas_size)
    return WorldBounds(
        min_x=min(left, right),
        max_x=max(left, right),
        min_y=min(top, bottom),
        max_y=max(top, bottom),
    )


def fit_world_bounds(bounds: WorldBounds, output_area: ResolvedRect) -> ExportTransform:
    """
    Fit a world rectangle inside an output rectangle, centred, without distortion.

    Raises:
        DegenerateBoundsError: If the world rectangle has no area
    """
    data_w, data_h = bounds.width, bounds.height
    # "not >" also rejects NaN
    if not (data_w > 0 and data_h > 0):
        raise DegenerateBoundsError(
            f"Invalid data dimensions: {data_w} x {data_h} (nothing to export in the print area)"
        )
    if not (output_area.width > 0 and output_area.height > 0):
        raise DegenerateBoundsError(
            f"Invalid output area: {output_area.width} x {output_area.height}"
        )

    scale = min(output_area.width / data_w, output_area.height / data_h)
    scaled_w = data_w * scale
    scaled_h = data_h * scale
    centroid_x, centroid_y = bounds.centroid

    params = TransformParams(
        scale=scale,
        offset_x=output_area.x + (output_area.width - scaled_w) / 2,
        offset_y=output_area.y + (output_area.height - scaled_h) / 2,
        centroid_x=centroid_x,
        centroid_y=centroid_y,
    )
    return ExportTransform(
        params=params,
        scaled_width=scaled_w,
        scaled_height=scaled_h,
        output_area=output_area.as_rect(),
        world_bounds=bounds,
    )


def derive_export_transform(
    boundary: ResolvedRect,
    view: ViewState,
    canvas_size: CanvasSize,
    output_area: ResolvedRect,
) -> ExportTransform:
    """
    Export transform reproducing what is visible inside the print boundary.

    Args:
        boundary: Print-safe rectangle on screen (px)
        view: Current interactive view
        canvas_size: Interactive canvas size (px)
        output_area: Destination rectangle (mm or device px)

    Returns:
        The committed transform for this export

    Raises:
        DegenerateBoundsError: If the visible world rectangle has no area
    """
    if not (view.scale > 0 and math.isfinite(view.scale)):
        raise DegenerateBoundsError(f"Invalid view scale: {view.scale}")
    return fit_world_bounds(visible_world_bounds(boundary, view, canvas_size), output_area)


def world_bounds_of(points: Iterable, padding: float = DATA_PADDING_FRACTION) -> WorldBounds:
    """
    Extents of world points, padded by ``padding`` of the larger side.

    Args:
        points: Iterable of (x, y) or (x, y, z)
        padding: Fraction of max(width, height) added to every side

    Raises:
        DegenerateBoundsError: If there are no points
    """
    arr = np.asarray([tuple(p)[:2] for p in points], dtype=float)
    if arr.size == 0:
        raise DegenerateBoundsError("No data to fit: the scene has no world entities")

    min_x, min_y = arr.min(axis=0)
    max_x, max_y = arr.max(axis=0)
    bounds = WorldBounds(float(min_x), float(max_x), float(min_y), float(max_y))
    return bounds.padded(padding)
