"""
Scene files for command-line exports.

A scene captures what the interactive editor would hand to an export: the
print settings, the view at export time, the canvas size, footer texts, and
the world entities. Example::

    settings:
      paper_size: A3
      orientation: landscape
      render_mode: 2D
    view:
      scale: 4.0            # px per metre
      centroid: [1000, 2000]
    canvas: [1200, 800]
    footer:
      blast_name: "Pit 3 Bench 410"
      designer: "Operator"
    statistics:
      connectorData: ["17ms: 42", "25ms: 40"]
    holes:
      - {id: A1, collar: [990, 2010, 410], grade: [990, 2010, 400], toe: [990, 2010, 399], diameter_mm: 115}
    lines:
      - {points: [[980, 1990], [1020, 1990], [1020, 2030]], closed: true}

Relative image paths (backgrounds, scene_image) are resolved against the
scene file's directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .assets import load_image_asset
from .backends import RenderBackend
from .content import BackgroundImage, Entity, HoleRecord, PointEntity, PolylineEntity, TextEntity
from .errors import ConfigurationError
from .footer import FooterInfo
from .pipeline import ExportJob
from .rect import CanvasSize
from .settings import PrintSettings
from .transform import ViewState, WorldBounds


@dataclass
class ViewConfig:
    """Interactive view: scale in px per world unit, centroid in world units."""

    scale: float = 1.0
    centroid: tuple[float, float] = (0.0, 0.0)

    def __post_init__(self):
        if isinstance(self.centroid, list):
            self.centroid = (float(self.centroid[0]), float(self.centroid[1]))

    def to_view_state(self) -> ViewState:
        return ViewState(scale=float(self.scale), centroid_x=self.centroid[0], centroid_y=self.centroid[1])


@dataclass
class HoleConfig:
    """Hole as written in a scene file."""

    id: str
    collar: tuple[float, float, float]
    toe: tuple[float, float, float]
    grade: tuple[float, float, float] | None = None
    diameter_mm: float = 115.0
    color: str = "#000000"

    def to_entity(self) -> HoleRecord:
        return HoleRecord(
            hole_id=str(self.id),
            collar=self.collar,
            toe=self.toe,
            grade=self.grade,
            diameter_mm=self.diameter_mm,
            color=self.color,
        )


@dataclass
class BackgroundConfig:
    """Background bitmap file and the world rectangle it covers."""

    image: str
    bounds: WorldBounds

    def __post_init__(self):
        if isinstance(self.bounds, WorldBounds):
            return
        if not isinstance(self.bounds, dict):
            raise ConfigurationError(f"Background {self.image}: bounds must be a mapping, not {self.bounds!r}")
        try:
            self.bounds = WorldBounds(**{key: float(value) for key, value in self.bounds.items()})
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Background {self.image}: malformed bounds: {e}") from e


@dataclass
class Scene:
    """
    A complete export request loaded from YAML.

    Attributes:
        settings: Print settings
        view: Interactive view at export time
        canvas: Interactive canvas size in px
        fit_to_data: Frame the data extents instead of the view
        footer: Footer texts
        statistics: Footer statistics lines by cell id
        holes, lines, points, texts, backgrounds: World content
        scene_image: Captured 3D view bitmap (3D mode)
        base_dir: Directory relative image paths are resolved against
    """

    settings: PrintSettings = field(default_factory=PrintSettings)
    view: ViewConfig = field(default_factory=ViewConfig)
    canvas: tuple[float, float] = (1200.0, 800.0)
    fit_to_data: bool = False
    footer: FooterInfo = field(default_factory=FooterInfo)
    statistics: dict[str, list[str]] = field(default_factory=dict)
    holes: list[HoleConfig] = field(default_factory=list)
    lines: list[PolylineEntity] = field(default_factory=list)
    points: list[PointEntity] = field(default_factory=list)
    texts: list[TextEntity] = field(default_factory=list)
    backgrounds: list[BackgroundConfig] = field(default_factory=list)
    scene_image: str | None = None
    base_dir: Path = field(default_factory=Path.cwd)

    def __post_init__(self):
        # Convert dicts to dataclasses if needed (from YAML loading)
        if isinstance(self.settings, dict):
            self.settings = PrintSettings(**self.settings)
        if isinstance(self.view, dict):
            self.view = ViewConfig(**self.view)
        if isinstance(self.footer, dict):
            self.footer = FooterInfo(**self.footer)
        self.canvas = (float(self.canvas[0]), float(self.canvas[1]))
        self.holes = [HoleConfig(**h) if isinstance(h, dict) else h for h in self.holes]
        self.lines = [PolylineEntity(**ln) if isinstance(ln, dict) else ln for ln in self.lines]
        self.points = [PointEntity(**p) if isinstance(p, dict) else p for p in self.points]
        self.texts = [TextEntity(**t) if isinstance(t, dict) else t for t in self.texts]
        self.backgrounds = [BackgroundConfig(**b) if isinstance(b, dict) else b for b in self.backgrounds]
        self.statistics = {k: [str(line) for line in v] for k, v in self.statistics.items()}
        self.base_dir = Path(self.base_dir)

    @property
    def canvas_size(self) -> CanvasSize:
        return CanvasSize(*self.canvas)

    def _resolve(self, path: str) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.base_dir / p

    def entities(self) -> list[Entity]:
        """World entities in drawing order: backgrounds, lines, holes, points, texts."""
        entities: list[Entity] = []
        for background in self.backgrounds:
            entities.append(BackgroundImage(
                image=load_image_asset(self._resolve(background.image)),
                bounds=background.bounds,
            ))
        entities.extend(self.lines)
        entities.extend(h.to_entity() for h in self.holes)
        entities.extend(self.points)
        entities.extend(self.texts)
        return entities

    def to_job(self, backend: RenderBackend, output_path: str | Path | None = None) -> ExportJob:
        """Export job for this scene on ``backend``."""
        scene_capture = None
        if self.scene_image:
            image_path = self._resolve(self.scene_image)
            scene_capture = lambda: load_image_asset(image_path)  # noqa: E731

        return ExportJob(
            settings=self.settings,
            backend=backend,
            view=self.view.to_view_state(),
            canvas_size=self.canvas_size,
            entities=self.entities(),
            fit_to_data=self.fit_to_data,
            footer_info=self.footer,
            statistics=self.statistics,
            scene_capture=scene_capture,
            output_path=Path(output_path) if output_path is not None else None,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: str | Path | None = None) -> Scene:
        try:
            return cls(**data, base_dir=Path(base_dir) if base_dir is not None else Path.cwd())
        except TypeError as e:
            raise ConfigurationError(f"Malformed scene: {e}") from e

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> Scene:
        """Load a scene from a YAML file."""
        yaml_path = Path(yaml_path)
        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data, base_dir=yaml_path.parent)
