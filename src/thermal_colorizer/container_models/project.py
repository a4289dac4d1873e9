"""Project metadata: scan positions, their poses, images and point sources."""

from __future__ import annotations

from pathlib import Path

import numpy as np
from pydantic import Field

from .base import FrozenBaseModel, Matrix4x4
from .calibration import ImageRecord


def _identity() -> np.ndarray:
    return np.eye(4)


class ScanPosition(FrozenBaseModel):
    """
    A fixed location from which the scanner captured one or more rxp sources.

    Images are kept in declaration order, which is also the order in which they
    are tried when sampling a point.
    """

    name: str
    sop: Matrix4x4 = Field(default_factory=_identity)
    images: tuple[ImageRecord, ...] = ()
    rxp_paths: tuple[Path, ...] = ()

    def image(self, name: str) -> ImageRecord | None:
        """Return the registered image called `name`, if any."""
        return next((image for image in self.images if image.name == name), None)

    @property
    def image_names(self) -> tuple[str, ...]:
        return tuple(image.name for image in self.images)


class Project(FrozenBaseModel):
    """
    Read-only project metadata shared by all scan position tasks.

    `pop` maps project coordinates to global coordinates.
    """

    path: Path
    name: str
    pop: Matrix4x4 = Field(default_factory=_identity)
    scan_positions: dict[str, ScanPosition]

    @property
    def origin(self) -> tuple[float, float, float]:
        """Translation part of the project pose, used as output offset."""
        x, y, z = self.pop[:3, 3]
        return float(x), float(y), float(z)

    def scanner_to_global(self, scan_position: ScanPosition) -> np.ndarray:
        """Homogeneous transform from scanner-own coordinates to global coordinates."""
        return self.pop @ scan_position.sop
