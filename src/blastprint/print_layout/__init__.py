"""
Print Layout Module

Template-driven page layout and WYSIWYG export for blast-design printouts.

Features:
- Landscape/portrait templates for 2D and 3D views (A4 to A0)
- Map zone with print-safe area, multi-row footer of cells
- On-screen print boundary for the interactive preview
- Export transform derived from the live view (what you see is what prints)
- Raster (Pillow) and vector (SVG/PDF) backends with identical placement

Usage:
    from blastprint.print_layout import (
        ExportJob, PrintExporter, PrintSettings, VectorBackend, ViewState,
    )

    job = ExportJob(
        settings=PrintSettings(paper_size="A3", orientation="landscape"),
        backend=VectorBackend(),
        view=ViewState(scale=4.0, centroid_x=1000, centroid_y=2000),
        canvas_size=(1200, 800),
        entities=holes,
        output_path="blast.pdf",
    )
    result = PrintExporter().export(job)
"""

from .assets import load_image_asset, place_asset, render_north_arrow, render_qr_code, render_xyz_gizmo
from .backends import RasterBackend, RenderBackend, VectorBackend, create_backend
from .boundary import (
    BoundaryService,
    PreviewLayout,
    PrintBoundary,
    compute_full_preview,
    draw_boundary_overlay,
    get_print_boundary,
)
from .content import (
    BackgroundImage,
    HoleRecord,
    PointEntity,
    PolylineEntity,
    TextEntity,
    draw_world_content,
)
from .errors import (
    AssetError,
    ConfigurationError,
    DegenerateBoundsError,
    OutputError,
    PreconditionError,
    PreviewInactiveError,
    PrintError,
    ResourceLimitError,
    TemplateError,
)
from .footer import FooterInfo, FooterRenderer
from .pipeline import ExportJob, ExportPipeline, ExportResult, PrintExporter, ProgressEvent
from .rect import CanvasSize, PageSize, ResolvedRect
from .scene import Scene
from .settings import LayoutCache, PrintSettings, page_size_for
from .templates import CellSpec, SectionSpec, Template, TemplateCatalog, ZoneSpec, builtin_catalog
from .transform import (
    ExportTransform,
    TransformParams,
    ViewState,
    WorldBounds,
    derive_export_transform,
    fit_world_bounds,
    visible_world_bounds,
    world_bounds_of,
)
from .values import AUTO, is_auto, resolve_value
from .zones import (
    ResolvedCell,
    ResolvedLayout,
    ResolvedZone,
    SafeArea,
    cell_by_id,
    describe_layout,
    footer_rect,
    resolve_cell,
    resolve_layout,
    resolve_map_safe_area,
    resolve_zone,
    row_cells,
    scale_ratio_text,
)

__all__ = [
    # Settings and templates
    'PrintSettings',
    'LayoutCache',
    'page_size_for',
    'Template',
    'ZoneSpec',
    'SectionSpec',
    'CellSpec',
    'TemplateCatalog',
    'builtin_catalog',
    # Geometry
    'AUTO',
    'is_auto',
    'resolve_value',
    'PageSize',
    'CanvasSize',
    'ResolvedRect',
    'ResolvedZone',
    'ResolvedCell',
    'ResolvedLayout',
    'SafeArea',
    'resolve_zone',
    'resolve_cell',
    'row_cells',
    'cell_by_id',
    'footer_rect',
    'resolve_map_safe_area',
    'resolve_layout',
    'scale_ratio_text',
    'describe_layout',
    # Preview boundary
    'BoundaryService',
    'PreviewLayout',
    'PrintBoundary',
    'compute_full_preview',
    'get_print_boundary',
    'draw_boundary_overlay',
    # Transforms
    'ViewState',
    'WorldBounds',
    'TransformParams',
    'ExportTransform',
    'visible_world_bounds',
    'derive_export_transform',
    'fit_world_bounds',
    'world_bounds_of',
    # Rendering
    'RenderBackend',
    'RasterBackend',
    'VectorBackend',
    'create_backend',
    'PointEntity',
    'PolylineEntity',
    'TextEntity',
    'HoleRecord',
    'BackgroundImage',
    'draw_world_content',
    'FooterInfo',
    'FooterRenderer',
    'load_image_asset',
    'place_asset',
    'render_north_arrow',
    'render_xyz_gizmo',
    'render_qr_code',
    # Export
    'ExportJob',
    'ExportPipeline',
    'ExportResult',
    'PrintExporter',
    'ProgressEvent',
    'Scene',
    # Errors
    'PrintError',
    'ConfigurationError',
    'TemplateError',
    'PreconditionError',
    'PreviewInactiveError',
    'DegenerateBoundsError',
    'ResourceLimitError',
    'OutputError',
    'AssetError',
]
