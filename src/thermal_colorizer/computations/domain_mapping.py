"""
Affine rescaling of physical measurements into output channels.

Two mappings are used per run: reflectance (dB) to the 16-bit LAS intensity
channel, and temperature (°C) to an index on the colour gradient. Values outside
the source domain are clamped to its nearest bound, never extrapolated.
"""

import math
from typing import Final, NamedTuple, overload

import numpy as np
from numpy.typing import NDArray

from ..exceptions import ConfigurationError

INTENSITY_MAX: Final[int] = np.iinfo(np.uint16).max


class GradientStop(NamedTuple):
    index: float
    red: float
    green: float
    blue: float


# Cold is blue, hot is red, linearly interpolated in RGB.
TEMPERATURE_GRADIENT: Final[tuple[GradientStop, ...]] = (
    GradientStop(0.0, 0.0, 0.0, 1.0),
    GradientStop(1.0, 1.0, 0.0, 0.0),
)
_GRADIENT_INDEX: Final = np.array([stop.index for stop in TEMPERATURE_GRADIENT])
_GRADIENT_RGB: Final = np.array([stop[1:] for stop in TEMPERATURE_GRADIENT])
_GRADIENT_INDEX.setflags(write=False)
_GRADIENT_RGB.setflags(write=False)


@overload
def map_domain(
    value: float, source_min: float, source_max: float, out_min: float, out_max: float
) -> float: ...


@overload
def map_domain(
    value: NDArray, source_min: float, source_max: float, out_min: float, out_max: float
) -> NDArray: ...


def map_domain(value, source_min, source_max, out_min, out_max):
    """
    Linearly rescale `value` from `[source_min, source_max]` to `[out_min, out_max]`.

    :param value: A scalar or an array of values in the source domain.
    :returns: The rescaled value(s), clamped to the output range.
    :raises ConfigurationError: If the source domain has no positive width.
    """
    if not source_min < source_max:
        raise ConfigurationError(
            f"The domain minimum ({source_min}) should be smaller than its maximum ({source_max})."
        )
    fraction = np.clip(
        (np.asarray(value, dtype=np.float64) - source_min) / (source_max - source_min),
        0.0,
        1.0,
    )
    mapped = out_min + fraction * (out_max - out_min)
    if np.ndim(mapped) == 0:
        return float(mapped)
    return mapped


class DomainMapping(NamedTuple):
    """A validated source domain, checked once when the run is configured."""

    source_min: float
    source_max: float

    @classmethod
    def create(cls, source_min: float, source_max: float) -> "DomainMapping":
        """
        Build a mapping, rejecting degenerate or non-finite domains.

        :raises ConfigurationError: If `source_min >= source_max` or a bound is not finite.
        """
        if not (math.isfinite(source_min) and math.isfinite(source_max)):
            raise ConfigurationError(
                f"Domain bounds should be finite, got [{source_min}, {source_max}]."
            )
        if source_min >= source_max:
            raise ConfigurationError(
                f"The domain minimum ({source_min}) should be smaller than its maximum ({source_max})."
            )
        return cls(float(source_min), float(source_max))

    def map(self, value, out_min: float, out_max: float):
        return map_domain(value, self.source_min, self.source_max, out_min, out_max)

    def to_intensity(self, values: NDArray) -> NDArray[np.uint16]:
        """Map values onto the full unsigned 16-bit range, rounding to the nearest integer."""
        return np.rint(self.map(values, 0.0, INTENSITY_MAX)).astype(np.uint16)

    def to_index(self, values: NDArray) -> NDArray[np.float64]:
        """Map values onto the `[0, 1]` colour gradient index."""
        return np.asarray(self.map(values, 0.0, 1.0), dtype=np.float64)


def index_to_rgb(index: NDArray) -> NDArray[np.uint16]:
    """
    Look up 16-bit RGB triples on :data:`TEMPERATURE_GRADIENT`.

    :param index: Gradient indices in `[0, 1]`; shape `(N,)`.
    :returns: Array of shape `(N, 3)` with 16-bit colour channels.
    """
    index = np.asarray(index, dtype=np.float64)
    channels = [
        np.interp(index, _GRADIENT_INDEX, _GRADIENT_RGB[:, channel])
        for channel in range(3)
    ]
    return np.rint(np.stack(channels, axis=-1) * INTENSITY_MAX).astype(np.uint16)
