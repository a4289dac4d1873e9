from __future__ import annotations

from pathlib import Path

from .base import FrozenBaseModel, TemperatureData
from .calibration import ImageRecord


class ThermalImage(FrozenBaseModel):
    """
    A decoded thermal image bound to its project calibration.

    `data` holds one temperature in degrees Celsius per pixel, indexed as
    `data[row, column]`. When `rotated` is set, the file was exported rotated
    90° clockwise relative to the orientation the calibration assumes, so
    `data` is `camera.height` wide and `camera.width` high.
    """

    record: ImageRecord
    data: TemperatureData
    rotated: bool = False
    path: Path | None = None

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def width(self) -> int:
        """The buffer width in pixels."""
        return self.data.shape[1]

    @property
    def height(self) -> int:
        """The buffer height in pixels."""
        return self.data.shape[0]
