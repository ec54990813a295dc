"""
Command-line interface for blastprint.

Commands:
- templates: List the print templates
- layout: Show every resolved rectangle of a layout
- boundary: Show the on-screen print boundary for a canvas size
- export: Export a scene file to PDF, PNG, or SVG

Usage:
    blastprint templates
    blastprint layout --paper A3 --orientation portrait --mode 3D
    blastprint boundary --paper A4 --canvas 1200x800
    blastprint export scene.yaml -o blast.pdf --backend vector
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from . import __version__
from .logging_config import setup_logging
from .print_layout.backends import BACKENDS, RasterBackend, VectorBackend
from .print_layout.boundary import BoundaryService
from .print_layout.constants import DEFAULT_DPI, ORIENTATIONS, PAPER_SIZES_MM, RENDER_MODES
from .print_layout.errors import PrintError
from .print_layout.pipeline import PrintExporter, ProgressEvent
from .print_layout.rect import CanvasSize
from .print_layout.scene import Scene
from .print_layout.settings import LayoutCache, PrintSettings
from .print_layout.templates import TemplateCatalog, builtin_catalog
from .print_layout.zones import describe_layout


def _load_catalog(catalog_path: Path | None) -> TemplateCatalog:
    if catalog_path is None:
        return builtin_catalog()
    try:
        return TemplateCatalog.from_yaml(catalog_path)
    except PrintError as e:
        click.echo(f"Error loading templates: {e}", err=True)
        raise SystemExit(1) from None


def _parse_canvas(value: str) -> CanvasSize:
    try:
        width, height = (float(v) for v in value.lower().split("x"))
    except ValueError:
        raise click.BadParameter(f"expected WIDTHxHEIGHT, got {value!r}") from None
    return CanvasSize(width, height)


def _format_rect(rect) -> str:
    return f"x={rect.x:.1f} y={rect.y:.1f} w={rect.width:.1f} h={rect.height:.1f}"


paper_option = click.option(
    "--paper", "paper_size",
    type=click.Choice(list(PAPER_SIZES_MM), case_sensitive=False),
    default="A4",
    help="Paper size (default: A4).",
)
orientation_option = click.option(
    "--orientation",
    type=click.Choice(ORIENTATIONS, case_sensitive=False),
    default="landscape",
    help="Page orientation (default: landscape).",
)
mode_option = click.option(
    "--mode", "render_mode",
    type=click.Choice(RENDER_MODES, case_sensitive=False),
    default="2D",
    help="Render mode (default: 2D).",
)
catalog_option = click.option(
    "--catalog", "catalog_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Template YAML file (default: built-in templates).",
)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.option("--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Also write logs to this file.")
def cli(verbose: bool, log_file: Path | None):
    """blastprint - print layouts and WYSIWYG exports for blast designs."""
    setup_logging(logging.DEBUG if verbose else logging.WARNING, log_file)


@cli.command()
@catalog_option
def templates(catalog_path: Path | None):
    """List the available print templates."""
    catalog = _load_catalog(catalog_path)
    for template in catalog:
        zones = ", ".join(template.zones)
        click.echo(f"{template.name:<10} {template.render_mode:<3} {template.orientation:<10} zones: {zones}")


@cli.command()
@paper_option
@orientation_option
@mode_option
@catalog_option
def layout(paper_size: str, orientation: str, render_mode: str, catalog_path: Path | None):
    """Show every resolved rectangle (mm) of a page layout."""
    settings = PrintSettings(paper_size=paper_size, orientation=orientation, render_mode=render_mode)
    resolved = LayoutCache(_load_catalog(catalog_path)).get(settings)
    for line in describe_layout(resolved):
        click.echo(line)


@cli.command()
@paper_option
@orientation_option
@mode_option
@click.option("--canvas", default="1200x800", help="Canvas size in px as WIDTHxHEIGHT (default: 1200x800).")
@catalog_option
def boundary(paper_size: str, orientation: str, render_mode: str, canvas: str, catalog_path: Path | None):
    """Show the on-screen print boundary (px) for a canvas size."""
    canvas_size = _parse_canvas(canvas)
    settings = PrintSettings(paper_size=paper_size, orientation=orientation, render_mode=render_mode)
    service = BoundaryService(LayoutCache(_load_catalog(catalog_path)))

    preview = service.preview(settings, canvas_size)
    print_boundary = service.get_print_boundary(settings, canvas_size)

    click.echo(f"Page:  {_format_rect(preview.page)}")
    click.echo(f"Outer: {_format_rect(print_boundary.outer)}")
    click.echo(f"Inner: {_format_rect(print_boundary.inner)}")
    click.echo(f"Margin: {print_boundary.margin_percent:.2%} of map width")


@cli.command()
@click.argument("scene_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    required=True,
    help="Output file (.pdf, .png for raster, .svg for vector).",
)
@click.option(
    "--backend", "backend_name",
    type=click.Choice(list(BACKENDS)),
    default="vector",
    help="Rendering backend (default: vector).",
)
@click.option("--dpi", type=int, default=DEFAULT_DPI, help=f"Raster resolution (default: {DEFAULT_DPI}).")
@click.option("--paper", "paper_size", type=click.Choice(list(PAPER_SIZES_MM), case_sensitive=False),
              default=None, help="Override the scene's paper size.")
@click.option("--orientation", type=click.Choice(ORIENTATIONS, case_sensitive=False),
              default=None, help="Override the scene's orientation.")
@click.option("--fit-to-data", is_flag=True, help="Frame the data extents instead of the saved view.")
def export(
    scene_file: Path,
    output: Path,
    backend_name: str,
    dpi: int,
    paper_size: str | None,
    orientation: str | None,
    fit_to_data: bool,
):
    """
    Export a scene file.

    \b
    Example:
        blastprint export scene.yaml -o blast.pdf --paper A3
    """
    try:
        scene = Scene.from_yaml(scene_file)
        changes = {k: v for k, v in (("paper_size", paper_size), ("orientation", orientation)) if v}
        if changes:
            scene.settings = scene.settings.with_changes(**changes)
        if fit_to_data:
            scene.fit_to_data = True

        backend = RasterBackend(dpi=dpi) if backend_name == "raster" else VectorBackend()
        job = scene.to_job(backend, output)
    except PrintError as e:
        click.echo(f"Error loading scene: {e}", err=True)
        raise SystemExit(1) from None

    def show_progress(event: ProgressEvent) -> None:
        if not event.failed:
            click.echo(f"[{event.percent:3d}%] {event.label}")

    result = PrintExporter().export(job, observer=show_progress)
    if not result.ok:
        click.echo(f"Export failed: {result.message}", err=True)
        raise SystemExit(1)
    click.echo(result.message)


if __name__ == "__main__":
    cli()
