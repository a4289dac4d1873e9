"""
Error taxonomy for the colorization pipeline.

Errors fall into two scopes:

- **Global**: :class:`ConfigurationError` and :class:`ProjectLoadError` abort the
  run before any scan position is processed.
- **Per scan position**: every other error fails only the scan position that
  raised it. Sibling positions keep running and the failure is reported at the end.
"""

from pathlib import Path


class ColorizationError(Exception):
    """Base class for all errors raised by the colorization pipeline."""

    def __init__(
        self,
        message: str,
        *,
        scan_position: str | None = None,
        path: Path | None = None,
    ):
        self.message = message
        self.scan_position = scan_position
        self.path = path
        super().__init__(message)

    def __str__(self) -> str:
        context = []
        if self.scan_position:
            context.append(f"scan position {self.scan_position}")
        if self.path:
            context.append(f"path {self.path}")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class ConfigurationError(ColorizationError):
    """Raised when options are invalid, e.g. a degenerate domain or unknown scan position."""


class ProjectLoadError(ColorizationError):
    """Raised when the project metadata cannot be read or validated."""


class UnresolvedImageError(ColorizationError):
    """Raised when an image file cannot be matched to an image of the project."""


class NoThermalImagesError(ColorizationError):
    """Raised when a scan position has no thermal images and points without thermal data are not kept."""


class AmbiguousSourceError(ColorizationError):
    """Raised when scan position names are used for output but a position has several rxp sources."""


class StreamError(ColorizationError):
    """Raised when a point stream cannot be opened or read."""


class DecodeError(ColorizationError):
    """Raised when a thermal image cannot be decoded."""


class WriteError(ColorizationError):
    """Raised when colorized points cannot be written."""
