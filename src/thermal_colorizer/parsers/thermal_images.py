"""
Thermal image decoders.

Decoders are registered per file suffix and return a 2D array of temperatures.
Radiometric calibration is expected to have happened upstream: pixel values are
temperatures, in degrees Celsius or Kelvin.

Register a decoder for another format with::

    @register_image_decoder(".irb")
    def decode_irb(path: Path) -> NDArray[np.float64]:
        ...
"""

from collections.abc import Callable
from enum import StrEnum
from pathlib import Path

import numpy as np
from numpy.typing import NDArray
from PIL import Image
from scipy.constants import zero_Celsius

from ..container_models import ImageRecord, ThermalImage
from ..exceptions import DecodeError

type ImageDecoder = Callable[[Path], NDArray[np.float64]]

_DECODERS: dict[str, ImageDecoder] = {}

# Single-band modes that carry measurement values rather than display colours.
_SCALAR_MODES = frozenset({"F", "I", "I;16", "I;16B", "I;16L", "L"})


class TemperatureUnit(StrEnum):
    CELSIUS = "celsius"
    KELVIN = "kelvin"


def register_image_decoder(*suffixes: str) -> Callable[[ImageDecoder], ImageDecoder]:
    def decorator(decoder: ImageDecoder) -> ImageDecoder:
        for suffix in suffixes:
            _DECODERS[suffix.lower()] = decoder
        return decoder

    return decorator


def image_suffixes() -> frozenset[str]:
    """The file suffixes a decoder is registered for."""
    return frozenset(_DECODERS)


@register_image_decoder(".tif", ".tiff")
def decode_tiff(path: Path) -> NDArray[np.float64]:
    with Image.open(path) as image:
        if image.mode not in _SCALAR_MODES:
            raise DecodeError(
                f"Expected a single-band temperature image, got mode {image.mode}",
                path=path,
            )
        return np.asarray(image, dtype=np.float64)


@register_image_decoder(".npy")
def decode_npy(path: Path) -> NDArray[np.float64]:
    return np.asarray(np.load(path, allow_pickle=False), dtype=np.float64)


def load_thermal_image(
    path: Path,
    record: ImageRecord,
    *,
    rotated: bool = False,
    unit: TemperatureUnit = TemperatureUnit.CELSIUS,
) -> ThermalImage:
    """
    Decode a thermal image file and bind it to its calibration.

    :param path: The image file.
    :param record: The project image the file belongs to.
    :param rotated: Whether the file is rotated 90° clockwise relative to the calibration.
    :param unit: The unit of the stored pixel values; Kelvin is converted to Celsius.
    :returns: The decoded image, in degrees Celsius.
    :raises DecodeError: If no decoder handles the file, decoding fails, or the
        buffer size does not match the calibration.
    """
    if (decoder := _DECODERS.get(path.suffix.lower())) is None:
        raise DecodeError(f"No decoder registered for {path.suffix} files", path=path)
    try:
        data = decoder(path)
    except (OSError, ValueError) as error:
        raise DecodeError(f"Cannot decode thermal image: {error}", path=path) from error

    camera = record.camera
    expected = (camera.width, camera.height) if rotated else (camera.height, camera.width)
    if data.shape != expected:
        raise DecodeError(
            f"Image has shape {data.shape}, but calibration {camera.name} expects {expected}",
            path=path,
        )
    if unit is TemperatureUnit.KELVIN:
        data = data - zero_Celsius
    return ThermalImage(record=record, data=data, rotated=rotated, path=path)
