"""
Print layout constants.

Paper sizes, resolutions, preview margins, and styling constants for
blast-design printouts.
"""

# =============================================================================
# PAPER SIZES
# =============================================================================

# Portrait dimensions (width, height) in mm. Landscape swaps the pair.
PAPER_SIZES_MM: dict[str, tuple[float, float]] = {
    "A4": (210.0, 297.0),
    "A3": (297.0, 420.0),
    "A2": (420.0, 594.0),
    "A1": (594.0, 841.0),
    "A0": (841.0, 1189.0),
    "LETTER": (215.9, 279.4),   # 8.5 x 11 inches
    "TABLOID": (279.4, 431.8),  # 11 x 17 inches (ANSI B)
}

DEFAULT_PAPER_SIZE = "A4"
DEFAULT_ORIENTATION = "landscape"
DEFAULT_RENDER_MODE = "2D"

ORIENTATIONS = ("landscape", "portrait")
RENDER_MODES = ("2D", "3D")


# =============================================================================
# RESOLUTION AND RESOURCE LIMITS
# =============================================================================

MM_PER_INCH = 25.4
DEFAULT_DPI = 300

# Largest raster side (device px) the export canvas may be allocated with
MAX_RASTER_SIDE = 16384


# =============================================================================
# PREVIEW AND LAYOUT
# =============================================================================

# Gap between the interactive canvas edge and the page outline (px)
PREVIEW_CANVAS_MARGIN = 30

# Height of an "auto" zone that is not the template's auto-fill zone
AUTO_HEIGHT_FALLBACK = 0.9

# Tolerance when checking that a row's cell widths sum to at most 1
WIDTH_SUM_TOLERANCE = 1e-9

# Padding added around data extents for fit-to-data exports
DATA_PADDING_FRACTION = 0.05

# Scale text used when no valid print scale exists
DEFAULT_SCALE_TEXT = "1:1000"


# =============================================================================
# STYLING
# =============================================================================

BORDER_COLOR = "#000000"
BORDER_WIDTH = 0.3          # mm
THIN_LINE_WIDTH = 0.2       # mm
DATA_LINE_WIDTH = 0.1       # mm
SUBDRILL_COLOR = "#ff0000"
BACKGROUND_COLOR = "#ffffff"

# On-screen print boundary overlay (px)
OVERLAY_OUTER_COLOR = "#ff0000"
OVERLAY_OUTER_WIDTH = 2
OVERLAY_OUTER_DASH = (10, 5)
OVERLAY_INNER_COLOR = "#0066cc"
OVERLAY_INNER_WIDTH = 1
OVERLAY_INNER_DASH = (5, 3)

# Hole glyphs (mm on paper)
MIN_COLLAR_RADIUS = 0.5
TOE_RADIUS = 1.0
LABEL_FONT_SIZE = 2.0       # mm

# Footer text (mm)
FOOTER_HEADER_FONT_SIZE = 3.2
FOOTER_TEXT_FONT_SIZE = 2.4
FOOTER_LINE_SPACING = 1.25
ASSET_FILL_FRACTION = 0.8

FONT_FAMILY = "Helvetica"
