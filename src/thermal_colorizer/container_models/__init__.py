"""
Immutable data containers for the colorization pipeline.

Project metadata is validated once at startup and shared read-only by all scan
position tasks. Arrays stored in these containers are read-only views, so a
task can never modify metadata another task is using.
"""

from .calibration import CameraCalibration, ImageRecord, MountCalibration
from .points import ColorizedBatch, ColorizedPoint, Point, PointBatch
from .project import Project, ScanPosition
from .thermal_image import ThermalImage

__all__ = [
    "CameraCalibration",
    "ColorizedBatch",
    "ColorizedPoint",
    "ImageRecord",
    "MountCalibration",
    "Point",
    "PointBatch",
    "Project",
    "ScanPosition",
    "ThermalImage",
]
