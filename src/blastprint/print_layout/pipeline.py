"""
Staged print export.

An export runs as a fixed sequence of named stages::

    layout -> transform -> background -> frame -> data -> finalize

``ExportPipeline.iter_run`` is a generator that runs one stage per step and
yields a ProgressEvent after each, so a host event loop can update a
progress indicator between stages. ``run`` drives it synchronously and
``arun`` yields to the asyncio loop between stages.

A stage failure aborts the remaining stages. PrintExporter is the outermost
orchestrator: it catches the failure (PrintError, or anything unexpected,
logged with its traceback), reports one terminal error event, and returns a
failed ExportResult.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from PIL import Image

from .assets import CaptureProvider, capture, render_north_arrow, render_qr_code, render_xyz_gizmo
from .backends import RasterBackend, RenderBackend, VectorBackend
from .boundary import BoundaryService, PrintBoundary
from .constants import BACKGROUND_COLOR, BORDER_WIDTH, DEFAULT_SCALE_TEXT
from .content import Entity, draw_world_content, entity_points, split_background
from .errors import ConfigurationError, OutputError, PreconditionError, PreviewInactiveError, PrintError
from .footer import FooterInfo, FooterRenderer
from .rect import CanvasSize, ResolvedRect
from .settings import LayoutCache, PrintSettings
from .transform import ExportTransform, ViewState, derive_export_transform, fit_world_bounds, world_bounds_of
from .zones import ResolvedLayout, scale_ratio_text

logger = logging.getLogger(__name__)

# (stage name, progress label)
STAGES: tuple[tuple[str, str], ...] = (
    ("layout", "Resolving page layout"),
    ("transform", "Computing print transform"),
    ("background", "Drawing background"),
    ("frame", "Drawing frame and footer"),
    ("data", "Drawing data"),
    ("finalize", "Writing output"),
)


@dataclass(frozen=True)
class ProgressEvent:
    """
    Progress of an export.

    Attributes:
        stage: Stage just completed ("error" for the terminal failure event)
        percent: Overall progress, 0-100
        label: Human-readable status
        failed: True only on the terminal failure event
    """

    stage: str
    percent: int
    label: str
    failed: bool = False


ProgressObserver = Callable[[ProgressEvent], None]


@dataclass
class ExportJob:
    """
    Everything one export needs.

    Attributes:
        settings: Paper size, orientation, render mode, preview state
        backend: Raster or vector backend to draw with
        view: Interactive view at export time (WYSIWYG exports)
        canvas_size: Interactive canvas size (WYSIWYG exports)
        entities: World content to draw
        fit_to_data: Frame the extents of ``entities`` instead of the view
        footer_info: Footer texts
        statistics: Footer statistics lines by cell id
        scene_capture: 3D view bitmap; in 3D mode it replaces drawn data
        nav_capture: Navigation indicator bitmap (default: generated)
        qr_capture: QR code bitmap (default: generated from footer_info.qr_data)
        output_path: Where to write the page (.pdf, .png, or .svg); None keeps it in memory
    """

    settings: PrintSettings
    backend: RenderBackend
    view: ViewState | None = None
    canvas_size: CanvasSize | None = None
    entities: Sequence[Entity] = field(default_factory=list)
    fit_to_data: bool = False
    footer_info: FooterInfo = field(default_factory=FooterInfo)
    statistics: dict[str, list[str]] = field(default_factory=dict)
    scene_capture: CaptureProvider | None = None
    nav_capture: CaptureProvider | None = None
    qr_capture: CaptureProvider | None = None
    output_path: Path | None = None

    def __post_init__(self):
        if self.output_path is not None:
            self.output_path = Path(self.output_path)
        if self.canvas_size is not None and not isinstance(self.canvas_size, CanvasSize):
            self.canvas_size = CanvasSize(*self.canvas_size)


@dataclass
class ExportContext:
    """Mutable state handed from stage to stage."""

    job: ExportJob
    layout: ResolvedLayout | None = None
    boundary: PrintBoundary | None = None
    transform: ExportTransform | None = None
    scene_image: Image.Image | None = None
    entities_drawn: int = 0
    output_path: Path | None = None

    @property
    def map_area(self) -> ResolvedRect:
        return self.layout.map_inner


@dataclass(frozen=True)
class ExportResult:
    """Outcome of PrintExporter.export."""

    ok: bool
    message: str
    output_path: Path | None = None
    context: ExportContext | None = None


def fit_image_rect(image: Image.Image, area: ResolvedRect) -> ResolvedRect:
    """Largest rectangle with the image's aspect ratio, centred in ``area``."""
    aspect = image.width / image.height
    if area.width / area.height > aspect:
        height = area.height
        width = height * aspect
    else:
        width = area.width
        height = width / aspect
    return ResolvedRect(
        x=area.x + (area.width - width) / 2,
        y=area.y + (area.height - height) / 2,
        width=width,
        height=height,
    )


class ExportPipeline:
    """
    The export stages, run in order against one ExportContext.

    Attributes:
        boundary_service: Source of the on-screen print boundary and layouts
    """

    def __init__(self, boundary_service: BoundaryService | None = None):
        self.boundary_service = boundary_service if boundary_service is not None else BoundaryService()
        self.last_context: ExportContext | None = None

    @property
    def cache(self) -> LayoutCache:
        return self.boundary_service.cache

    def iter_run(self, job: ExportJob) -> Iterator[ProgressEvent]:
        """Run the stages one per step, yielding progress after each."""
        context = ExportContext(job=job)
        self.last_context = context
        total = len(STAGES)
        for index, (name, label) in enumerate(STAGES, start=1):
            logger.debug("Export stage %s", name)
            getattr(self, f"_stage_{name}")(context)
            yield ProgressEvent(stage=name, percent=round(index / total * 100), label=label)

    def run(self, job: ExportJob, observer: ProgressObserver | None = None) -> ExportContext:
        for event in self.iter_run(job):
            if observer is not None:
                observer(event)
        return self.last_context

    async def arun(self, job: ExportJob, observer: ProgressObserver | None = None) -> ExportContext:
        for event in self.iter_run(job):
            if observer is not None:
                observer(event)
            await asyncio.sleep(0)
        return self.last_context

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _stage_layout(self, ctx: ExportContext) -> None:
        settings = ctx.job.settings
        ctx.layout = self.cache.get(settings)
        if ctx.layout.map_inner is None:
            raise ConfigurationError(f"Template {ctx.layout.template.name} has no usable map zone")
        # Allocating the page enforces the raster size limit before any drawing
        ctx.job.backend.reset(settings.page_size, BACKGROUND_COLOR, paper_name=settings.paper_size)

    def _stage_transform(self, ctx: ExportContext) -> None:
        job = ctx.job
        if job.settings.render_mode == "3D" and job.scene_capture is not None:
            ctx.scene_image = capture(job.scene_capture, "3D view")
            if ctx.scene_image is not None:
                logger.debug("Using captured 3D view; no world transform")
                return

        if job.fit_to_data:
            bounds = world_bounds_of(entity_points(job.entities))
            ctx.transform = fit_world_bounds(bounds, ctx.map_area)
        else:
            if not job.settings.preview_active:
                raise PreviewInactiveError()
            if job.view is None or job.canvas_size is None:
                raise PreconditionError("A WYSIWYG export needs the current view and canvas size")
            ctx.boundary = self.boundary_service.get_print_boundary(job.settings, job.canvas_size)
            if ctx.boundary is None:
                raise PreconditionError("No print boundary is available for the current settings")
            ctx.transform = derive_export_transform(ctx.boundary.inner, job.view, job.canvas_size, ctx.map_area)

        logger.info(
            "Print transform: scale %.4f mm/unit, %s",
            ctx.transform.scale,
            scale_ratio_text(ctx.transform.scale),
        )

    def _stage_background(self, ctx: ExportContext) -> None:
        if ctx.transform is None:
            return
        backgrounds, _ = split_background(ctx.job.entities)
        if backgrounds:
            with ctx.job.backend.clip(ctx.map_area):
                draw_world_content(ctx.job.backend, ctx.transform, backgrounds)

    def _stage_frame(self, ctx: ExportContext) -> None:
        job = ctx.job
        backend = job.backend
        backend.draw_rect(ctx.layout.map, stroke_width=BORDER_WIDTH)

        is_3d = job.settings.render_mode == "3D"
        nav_image = capture(job.nav_capture, "navigation indicator")
        if nav_image is None and job.nav_capture is None:
            nav_image = render_xyz_gizmo() if is_3d else render_north_arrow()

        qr_image = capture(job.qr_capture, "QR code")
        if qr_image is None and job.qr_capture is None and job.footer_info.qr_data:
            qr_image = render_qr_code(job.footer_info.qr_data)

        scale_text = DEFAULT_SCALE_TEXT
        if ctx.transform is not None and not is_3d:
            scale_text = scale_ratio_text(ctx.transform.scale)

        FooterRenderer(
            info=job.footer_info,
            statistics=job.statistics,
            scale_text=scale_text,
            nav_image=nav_image,
            qr_image=qr_image,
        ).render(backend, ctx.layout)

    def _stage_data(self, ctx: ExportContext) -> None:
        backend = ctx.job.backend
        with backend.clip(ctx.map_area):
            if ctx.scene_image is not None:
                backend.place_image(ctx.scene_image, fit_image_rect(ctx.scene_image, ctx.map_area))
                return
            _, data = split_background(ctx.job.entities)
            ctx.entities_drawn = draw_world_content(backend, ctx.transform, data)
        logger.debug("Drew %d entities", ctx.entities_drawn)

    def _stage_finalize(self, ctx: ExportContext) -> None:
        path = ctx.job.output_path
        if path is None:
            return

        backend = ctx.job.backend
        suffix = path.suffix.lower()
        if suffix == ".pdf":
            save = backend.save_pdf
        elif suffix == ".png" and isinstance(backend, RasterBackend):
            save = backend.save_png
        elif suffix == ".svg" and isinstance(backend, VectorBackend):
            save = backend.save_svg
        else:
            raise ConfigurationError(f"The {backend.name} backend cannot write {suffix or 'extensionless'} files")

        try:
            save(path)
        except OSError as e:
            raise OutputError(f"Cannot write {path}: {e}") from e
        ctx.output_path = path
        logger.info("Wrote %s", path)


class PrintExporter:
    """Runs export pipelines and reports a single outcome."""

    def __init__(self, pipeline: ExportPipeline | None = None):
        self.pipeline = pipeline if pipeline is not None else ExportPipeline()

    def export(self, job: ExportJob, observer: ProgressObserver | None = None) -> ExportResult:
        last_percent = 0
        try:
            for event in self.pipeline.iter_run(job):
                last_percent = event.percent
                if observer is not None:
                    observer(event)
        except PrintError as e:
            logger.error("Export failed: %s", e)
            return self._failed(str(e), last_percent, observer)
        except Exception as e:
            logger.exception("Export failed unexpectedly")
            return self._failed(f"Unexpected error: {e}", last_percent, observer)
        return self._succeeded()

    async def aexport(self, job: ExportJob, observer: ProgressObserver | None = None) -> ExportResult:
        last_percent = 0
        try:
            for event in self.pipeline.iter_run(job):
                last_percent = event.percent
                if observer is not None:
                    observer(event)
                await asyncio.sleep(0)
        except PrintError as e:
            logger.error("Export failed: %s", e)
            return self._failed(str(e), last_percent, observer)
        except Exception as e:
            logger.exception("Export failed unexpectedly")
            return self._failed(f"Unexpected error: {e}", last_percent, observer)
        return self._succeeded()

    def _succeeded(self) -> ExportResult:
        context = self.pipeline.last_context
        message = f"Exported to {context.output_path}" if context.output_path else "Export complete"
        return ExportResult(ok=True, message=message, output_path=context.output_path, context=context)

    def _failed(self, message: str, percent: int, observer: ProgressObserver | None) -> ExportResult:
        if observer is not None:
            observer(ProgressEvent(stage="error", percent=percent, label=message, failed=True))
        return ExportResult(ok=False, message=message, context=self.pipeline.last_context)
