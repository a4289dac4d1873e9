from __future__ import annotations

from functools import cached_property

import numpy as np
from pydantic import Field, model_validator

from .base import FrozenBaseModel, Matrix4x4


class CameraCalibration(FrozenBaseModel):
    """
    Intrinsic calibration of a thermal camera.

    Pinhole model with OpenCV-style distortion: radial terms `k1`..`k4` on
    even powers of the radius and tangential terms `p1`, `p2`.

    The optional tangent limits bound the calibrated field of view. Points
    beyond them are rejected before distortion, since the distortion
    polynomial is only meaningful inside the calibrated field.
    """

    name: str
    width: int = Field(..., gt=0, description="image width in pixels")
    height: int = Field(..., gt=0, description="image height in pixels")
    fx: float = Field(..., gt=0.0)
    fy: float = Field(..., gt=0.0)
    cx: float
    cy: float
    k1: float = 0.0
    k2: float = 0.0
    k3: float = 0.0
    k4: float = 0.0
    p1: float = 0.0
    p2: float = 0.0
    tan_max_horizontal: float | None = Field(default=None, gt=0.0)
    tan_max_vertical: float | None = Field(default=None, gt=0.0)


class MountCalibration(FrozenBaseModel):
    """Transform from the scanner's camera mount frame to the camera frame."""

    name: str
    matrix: Matrix4x4 = Field(default_factory=lambda: np.eye(4))


class ImageRecord(FrozenBaseModel):
    """
    An image registered in the project.

    `cop` is the camera orientation and position in scanner-own coordinates.
    """

    name: str
    cop: Matrix4x4
    camera: CameraCalibration
    mount: MountCalibration

    @model_validator(mode="after")
    def _check_cop_invertible(self) -> ImageRecord:
        if np.isclose(np.linalg.det(self.cop), 0.0):
            raise ValueError(f"Camera pose of image {self.name} is not invertible")
        return self

    @cached_property
    def scanner_to_camera(self) -> np.ndarray:
        """Homogeneous transform from scanner-own coordinates to camera coordinates."""
        transform = self.mount.matrix @ np.linalg.inv(self.cop)
        transform.setflags(write=False)
        return transform
