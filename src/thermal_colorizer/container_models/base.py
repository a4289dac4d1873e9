from collections.abc import Sequence
from functools import partial
from typing import Annotated

import numpy as np
from numpy import bool_, float64, number, uint16
from numpy.typing import DTypeLike, NDArray
from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    PlainSerializer,
)


class FrozenBaseModel(BaseModel):
    """Base class for frozen Pydantic models holding numpy arrays."""

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )


def serialize_ndarray[T: number](array_: NDArray[T]) -> list[T]:
    """Serialize numpy array to a Python list for JSON serialization."""
    return array_.tolist()


def coerce_to_array[T: number](
    dtype: DTypeLike, value: Sequence[T] | NDArray[T] | None
) -> NDArray[T] | None:
    """
    Coerce input to dtype numpy array.

    Handles JSON deserialization where nested lists arrive instead of arrays.
    """
    if isinstance(value, Sequence):
        try:
            return np.array(value, dtype=dtype)
        except (OverflowError, ValueError) as error:
            raise ValueError(f"Cannot convert value to a {dtype} array") from error
    if isinstance(value, np.ndarray) and value.dtype != dtype:
        return value.astype(dtype)
    return value


def validate_shape(shape: tuple[int | None, ...], value: NDArray) -> NDArray:
    """Check the array against `shape`, where `None` matches any length."""
    if len(value.shape) != len(shape) or any(
        expected is not None and expected != actual
        for expected, actual in zip(shape, value.shape)
    ):
        raise ValueError(
            f"Array shape mismatch, expected {shape}, but got {value.shape}"
        )
    return value


def freeze_array(value: NDArray) -> NDArray:
    """Return a read-only view so validated containers stay immutable."""
    view = value.view()
    view.setflags(write=False)
    return view


def _array_type(dtype: DTypeLike, shape: tuple[int | None, ...]):
    return Annotated[
        NDArray,
        BeforeValidator(partial(coerce_to_array, dtype)),
        AfterValidator(partial(validate_shape, shape)),
        AfterValidator(freeze_array),
        PlainSerializer(serialize_ndarray),
    ]


type FloatArray1D = _array_type(float64, (None,))
type FloatArray2D = _array_type(float64, (None, None))
type BoolArray1D = _array_type(bool_, (None,))
type UInt16Array1D = _array_type(uint16, (None,))

type Matrix4x4 = _array_type(float64, (4, 4))  # Homogeneous rigid transform
type Coordinates = _array_type(float64, (None, 3))  # Shape: (N, 3)
type RGBArray = _array_type(uint16, (None, 3))  # Shape: (N, 3)
type TemperatureData = FloatArray2D  # Shape: (H, W), degrees Celsius
