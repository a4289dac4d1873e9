"""
Point records flowing through a scan position task.

Point streams are read in chunks: a :class:`PointBatch` is a columnar slice of
the stream and iterating it yields single :class:`Point` records in stream order.
The same holds for :class:`ColorizedBatch` and :class:`ColorizedPoint`.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from typing import NamedTuple

import numpy as np
from pydantic import model_validator

from .base import (
    BoolArray1D,
    Coordinates,
    FloatArray1D,
    FrozenBaseModel,
    RGBArray,
    UInt16Array1D,
)


class Point(NamedTuple):
    """A single point in scanner-own coordinates."""

    x: float
    y: float
    z: float
    reflectance: float
    timestamp: float | None = None
    pps_synced: bool | None = None


class ColorizedPoint(NamedTuple):
    """
    A point in global coordinates with its derived output channels.

    `color` and `temperature` are `None` for points kept without thermal data.
    """

    x: float
    y: float
    z: float
    intensity: int
    color: tuple[int, int, int] | None
    temperature: float | None
    timestamp: float | None = None

    @property
    def has_thermal(self) -> bool:
        return self.temperature is not None


def _check_lengths(*arrays: np.ndarray) -> None:
    lengths = {len(array) for array in arrays}
    if len(lengths) > 1:
        raise ValueError(f"Batch columns differ in length: {sorted(lengths)}")


class PointBatch(FrozenBaseModel):
    """
    A chunk of a point stream.

    Absent timestamps are stored as NaN; `pps_synced` is `False` for points
    whose source does not report PPS synchronisation.
    """

    xyz: Coordinates
    reflectance: FloatArray1D
    timestamp: FloatArray1D
    pps_synced: BoolArray1D

    @model_validator(mode="after")
    def _check_columns(self) -> PointBatch:
        _check_lengths(self.xyz, self.reflectance, self.timestamp, self.pps_synced)
        return self

    @classmethod
    def from_points(cls, points: Sequence[Point]) -> PointBatch:
        """Build a batch from single point records."""
        return cls(
            xyz=np.array([(p.x, p.y, p.z) for p in points], dtype=np.float64).reshape(
                -1, 3
            ),
            reflectance=np.array([p.reflectance for p in points], dtype=np.float64),
            timestamp=np.array(
                [math.nan if p.timestamp is None else p.timestamp for p in points],
                dtype=np.float64,
            ),
            pps_synced=np.array([bool(p.pps_synced) for p in points], dtype=np.bool_),
        )

    def select(self, mask: np.ndarray) -> PointBatch:
        """Return the points where `mask` is set, keeping their order."""
        return PointBatch(
            xyz=self.xyz[mask],
            reflectance=self.reflectance[mask],
            timestamp=self.timestamp[mask],
            pps_synced=self.pps_synced[mask],
        )

    def __len__(self) -> int:
        return len(self.reflectance)

    def __iter__(self) -> Iterator[Point]:  # type: ignore[override]
        for (x, y, z), reflectance, timestamp, synced in zip(
            self.xyz.tolist(),
            self.reflectance.tolist(),
            self.timestamp.tolist(),
            self.pps_synced.tolist(),
        ):
            yield Point(
                x, y, z, reflectance, None if math.isnan(timestamp) else timestamp, synced
            )


class ColorizedBatch(FrozenBaseModel):
    """
    A chunk of colorized points in global coordinates.

    Points without thermal data have NaN temperature and zero colour; use
    :attr:`has_thermal` to tell them apart.
    """

    xyz: Coordinates
    intensity: UInt16Array1D
    rgb: RGBArray
    temperature: FloatArray1D
    timestamp: FloatArray1D

    @model_validator(mode="after")
    def _check_columns(self) -> ColorizedBatch:
        _check_lengths(
            self.xyz, self.intensity, self.rgb, self.temperature, self.timestamp
        )
        return self

    @property
    def has_thermal(self) -> np.ndarray:
        """Mask of the points that carry a sampled temperature."""
        return ~np.isnan(self.temperature)

    def __len__(self) -> int:
        return len(self.intensity)

    def __iter__(self) -> Iterator[ColorizedPoint]:  # type: ignore[override]
        for (x, y, z), intensity, rgb, temperature, timestamp in zip(
            self.xyz.tolist(),
            self.intensity.tolist(),
            self.rgb.tolist(),
            self.temperature.tolist(),
            self.timestamp.tolist(),
        ):
            has_thermal = not math.isnan(temperature)
            yield ColorizedPoint(
                x,
                y,
                z,
                intensity,
                tuple(rgb) if has_thermal else None,
                temperature if has_thermal else None,
                None if math.isnan(timestamp) else timestamp,
            )
