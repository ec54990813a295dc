"""
Exceptions raised by the print layout and export pipeline.

Geometry helpers return ``None`` for recoverable conditions (unknown zone,
section, or cell). These exceptions are reserved for conditions that must
abort an export.
"""


class PrintError(Exception):
    """Base class for all print/export failures."""


class ConfigurationError(PrintError):
    """Invalid print settings (unknown paper size, orientation, or mode)."""


class TemplateError(ConfigurationError):
    """A template definition is malformed or fails validation."""


class PreconditionError(PrintError):
    """The export cannot start from the current interactive state."""


class PreviewInactiveError(PreconditionError):
    """Print preview is off, so there is no on-screen print boundary."""

    def __init__(self, message: str = "Print Preview Mode must be active to generate a WYSIWYG print."):
        super().__init__(message)


class DegenerateBoundsError(PreconditionError):
    """The visible world rectangle has zero (or negative) width or height."""


class ResourceLimitError(PrintError):
    """The requested output exceeds what the output target can allocate."""


class AssetError(PrintError):
    """A capture asset could not be produced or loaded."""


class OutputError(PrintError):
    """The finished page could not be written to its destination."""
