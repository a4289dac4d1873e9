"""
Projection of scanner points into thermal images.

Each point is transformed into the camera frame, projected with the pinhole
model and the calibrated distortion, and looked up in the temperature buffer.
This is O(1) per point, so arbitrarily long point streams can be sampled
without an index over the image.

Coordinate frames
-----------------
- scanner-own: the frame points are delivered in.
- camera: ``mount @ inv(cop) @ scanner``; the camera looks along +z.
- pixel: ``(u, v)`` with ``u`` along image columns and ``v`` along rows; the
  pixel ``(i, j)`` covers ``[i, i + 1) x [j, j + 1)``.
"""

from enum import StrEnum

import numpy as np
from numpy.typing import NDArray
from returns.maybe import Maybe, Nothing, Some
from scipy.ndimage import map_coordinates

from ..container_models import CameraCalibration, Point, ThermalImage
from ..container_models.base import Coordinates


class Interpolation(StrEnum):
    NEAREST = "nearest"
    BILINEAR = "bilinear"


def transform_points(xyz: Coordinates, transform: NDArray) -> NDArray:
    """Apply a homogeneous 4x4 transform to an `(N, 3)` array of points."""
    return xyz @ transform[:3, :3].T + transform[:3, 3]


def _distort(
    x: NDArray, y: NDArray, camera: CameraCalibration
) -> tuple[NDArray, NDArray]:
    r2 = x * x + y * y
    radial = 1.0 + r2 * (camera.k1 + r2 * (camera.k2 + r2 * (camera.k3 + r2 * camera.k4)))
    x_distorted = (
        x * radial + 2.0 * camera.p1 * x * y + camera.p2 * (r2 + 2.0 * x * x)
    )
    y_distorted = (
        y * radial + camera.p1 * (r2 + 2.0 * y * y) + 2.0 * camera.p2 * x * y
    )
    return x_distorted, y_distorted


def project_points(
    xyz: Coordinates, image: ThermalImage
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """
    Project scanner-own points to pixel coordinates of `image`.

    :param xyz: Points in scanner-own coordinates, shape `(N, 3)`.
    :param image: The thermal image with its calibration.
    :returns: A tuple of the `(N, 2)` pixel coordinates `(u, v)` in the image
        buffer and an `(N,)` mask that is set where the point lands on the image.
    """
    camera = image.record.camera
    camera_xyz = transform_points(np.asarray(xyz, dtype=np.float64), image.record.scanner_to_camera)
    depth = camera_xyz[:, 2]
    valid = depth > 0.0

    with np.errstate(divide="ignore", invalid="ignore"):
        x = np.where(valid, camera_xyz[:, 0] / depth, np.nan)
        y = np.where(valid, camera_xyz[:, 1] / depth, np.nan)

    if camera.tan_max_horizontal is not None:
        valid &= np.abs(x) <= camera.tan_max_horizontal
    if camera.tan_max_vertical is not None:
        valid &= np.abs(y) <= camera.tan_max_vertical

    x_distorted, y_distorted = _distort(x, y, camera)
    u = camera.fx * x_distorted + camera.cx
    v = camera.fy * y_distorted + camera.cy

    if image.rotated:
        # The file is rotated 90° clockwise relative to the calibration.
        u, v = camera.height - v, u

    with np.errstate(invalid="ignore"):
        valid &= (u >= 0.0) & (u < image.width) & (v >= 0.0) & (v < image.height)
    return np.stack([u, v], axis=-1), valid


def _lookup_nearest(image: ThermalImage, pixels: NDArray) -> NDArray:
    columns = np.floor(pixels[:, 0]).astype(np.intp)
    rows = np.floor(pixels[:, 1]).astype(np.intp)
    return image.data[rows, columns]


def _lookup_bilinear(image: ThermalImage, pixels: NDArray) -> NDArray:
    # Pixel centres sit at integer + 0.5 in pixel coordinates.
    return map_coordinates(
        image.data,
        [pixels[:, 1] - 0.5, pixels[:, 0] - 0.5],
        order=1,
        mode="nearest",
    )


def sample_batch(
    xyz: Coordinates,
    image: ThermalImage,
    interpolation: Interpolation = Interpolation.NEAREST,
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """
    Sample the temperature under each point.

    :returns: The sampled temperatures (NaN where there is no coverage) and the
        mask of points with coverage. Pixels holding NaN count as no coverage.
    """
    pixels, valid = project_points(xyz, image)
    values = np.full(len(valid), np.nan)
    if valid.any():
        lookup = (
            _lookup_bilinear
            if interpolation is Interpolation.BILINEAR
            else _lookup_nearest
        )
        values[valid] = lookup(image, pixels[valid])
    hit = valid & ~np.isnan(values)
    return values, hit


def sample_images(
    xyz: Coordinates,
    images: tuple[ThermalImage, ...],
    interpolation: Interpolation = Interpolation.NEAREST,
) -> tuple[NDArray[np.float64], NDArray[np.bool_]]:
    """
    Sample points against several images, the first image with coverage wins.

    Images are tried in the given order; a point already covered by an earlier
    image is never overwritten by a later one.
    """
    temperatures = np.full(len(xyz), np.nan)
    covered = np.zeros(len(xyz), dtype=np.bool_)
    for image in images:
        remaining = ~covered
        if not remaining.any():
            break
        values, hit = sample_batch(xyz[remaining], image, interpolation)
        indices = np.flatnonzero(remaining)[hit]
        temperatures[indices] = values[hit]
        covered[indices] = True
    return temperatures, covered


def sample(
    point: Point,
    image: ThermalImage,
    interpolation: Interpolation = Interpolation.NEAREST,
) -> Maybe[float]:
    """
    Sample a single point.

    :returns: `Some(temperature)` when the point lands on a valid pixel, `Nothing` otherwise.
    """
    values, hit = sample_batch(
        np.array([[point.x, point.y, point.z]], dtype=np.float64), image, interpolation
    )
    if hit[0]:
        return Some(float(values[0]))
    return Nothing
