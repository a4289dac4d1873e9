import math

import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st
from returns.maybe import Nothing, Some

from thermal_colorizer.computations import (
    Interpolation,
    project_points,
    sample,
    sample_batch,
    sample_images,
    transform_points,
)
from thermal_colorizer.container_models import (
    CameraCalibration,
    ImageRecord,
    MountCalibration,
    Point,
    ThermalImage,
)

from ..helper_functions import CAMERA, translation


def _image(
    data: np.ndarray,
    rotated: bool = False,
    cop: np.ndarray = np.eye(4),
    mount: np.ndarray = np.eye(4),
    **calibration,
) -> ThermalImage:
    record = ImageRecord(
        name="image",
        cop=cop,
        camera=CameraCalibration(**(CAMERA | calibration)),
        mount=MountCalibration(name="mount", matrix=mount),
    )
    return ThermalImage(record=record, data=data, rotated=rotated)


def test_transform_points_applies_rotation_and_translation():
    transform = np.array(translation(1.0, 2.0, 3.0))
    transform[:3, :3] = [[0.0, -1.0, 0.0], [1.0, 0.0, 0.0], [0.0, 0.0, 1.0]]

    result = transform_points(np.array([[1.0, 0.0, 0.0]]), transform)

    np.testing.assert_allclose(result, [[1.0, 3.0, 3.0]])


class TestSample:
    @pytest.mark.parametrize(
        "point",
        (
            pytest.param(Point(0.0, 0.0, 0.0, 0.0), id="optical centre"),
            pytest.param(Point(0.0, 0.0, -1.0, 0.0), id="behind camera"),
            pytest.param(Point(10.0, 0.0, 1.0, 0.0), id="right of image"),
            pytest.param(Point(0.0, -2.0, 1.0, 0.0), id="above image"),
            pytest.param(Point(2.0, 0.0, 1.0, 0.0), id="on the right edge"),
            pytest.param(Point(-2.01, 0.0, 1.0, 0.0), id="just left of image"),
        ),
    )
    def test_miss(self, point: Point, thermal_image: ThermalImage):
        assert sample(point, thermal_image) == Nothing

    @pytest.mark.parametrize(
        "point, expected",
        (
            pytest.param(Point(0.0, 0.0, 1.0, 0.0), 20.0, id="principal point"),
            pytest.param(Point(0.0, 0.0, 5.0, 0.0), 20.0, id="far away"),
            pytest.param(Point(-2.0, 0.0, 1.0, 0.0), 0.0, id="left edge"),
            pytest.param(Point(1.99, 1.49, 1.0, 0.0), 39.0, id="bottom right"),
            pytest.param(Point(0.15, 0.0, 1.0, 0.0), 21.0, id="truncated"),
        ),
    )
    def test_nearest_hit(self, point: Point, expected: float, column_image: ThermalImage):
        assert sample(point, column_image) == Some(expected)

    def test_hit_is_a_temperature(self, thermal_image: ThermalImage):
        assert sample(Point(0.0, 0.0, 1.0, 7.5), thermal_image) == Some(-30.0)

    @pytest.mark.parametrize(
        "x, expected",
        (
            pytest.param(0.05, 20.0, id="pixel centre"),
            pytest.param(0.1, 20.5, id="between centres"),
            pytest.param(-1.99, 0.0, id="clamped at border"),
        ),
    )
    def test_bilinear(self, x: float, expected: float, column_image: ThermalImage):
        result = sample(Point(x, 0.0, 1.0, 0.0), column_image, Interpolation.BILINEAR)

        assert result.unwrap() == pytest.approx(expected)

    def test_nan_pixel_is_a_miss(self):
        data = np.ones((30, 40))
        data[15, 20] = np.nan

        assert sample(Point(0.0, 0.0, 1.0, 0.0), _image(data)) == Nothing
        assert sample(Point(0.1, 0.0, 1.0, 0.0), _image(data)) == Some(1.0)

    @given(
        x=st.floats(min_value=-2.0, max_value=1.99),
        y=st.floats(min_value=-1.5, max_value=1.49),
    )
    def test_nearest_truncates_to_containing_pixel(
        self, x: float, y: float, column_image: ThermalImage
    ):
        result = sample(Point(x, y, 1.0, 0.0), column_image)

        assert result == Some(float(math.floor(10.0 * x + 20.0)))


class TestProjectPoints:
    def test_camera_pose_is_inverted(self, thermal_image: ThermalImage):
        # The camera sits one metre behind the scanner.
        image = _image(thermal_image.data, cop=np.array(translation(0.0, 0.0, -1.0)))

        pixels, valid = project_points(np.array([[0.0, 0.0, 0.0]]), image)

        assert valid.tolist() == [True]
        np.testing.assert_allclose(pixels, [[20.0, 15.0]])

    def test_mount_is_applied_after_pose(self, thermal_image: ThermalImage):
        image = _image(thermal_image.data, mount=np.array(translation(0.5, 0.0, 0.0)))

        pixels, valid = project_points(np.array([[0.0, 0.0, 1.0]]), image)

        assert valid.tolist() == [True]
        np.testing.assert_allclose(pixels, [[25.0, 15.0]])

    def test_radial_distortion(self, thermal_image: ThermalImage):
        image = _image(thermal_image.data, k1=0.1)

        pixels, _ = project_points(np.array([[1.0, 0.0, 1.0]]), image)

        np.testing.assert_allclose(pixels, [[31.0, 15.0]])

    def test_tangential_distortion(self, thermal_image: ThermalImage):
        image = _image(thermal_image.data, p1=0.1)

        pixels, _ = project_points(np.array([[1.0, 0.0, 1.0]]), image)

        # y_d = y + p1 * (r² + 2y²) = 0.1
        np.testing.assert_allclose(pixels, [[30.0, 16.0]])

    def test_field_of_view_limit(self, thermal_image: ThermalImage):
        image = _image(thermal_image.data, tan_max_horizontal=0.5, tan_max_vertical=0.5)

        _, valid = project_points(
            np.array([[0.4, 0.0, 1.0], [0.6, 0.0, 1.0], [0.0, -0.6, 1.0]]), image
        )

        assert valid.tolist() == [True, False, False]

    def test_rotated_image(self):
        # Rotated 90° clockwise: 30 wide, 40 high, pixel value 100 * row + column.
        rows, columns = np.mgrid[0:40, 0:30]
        image = _image((100 * rows + columns).astype(np.float64), rotated=True)

        pixels, valid = project_points(
            np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [0.0, 1.0, 1.0]]), image
        )

        assert valid.tolist() == [True, True, True]
        np.testing.assert_allclose(pixels, [[15.0, 20.0], [15.0, 30.0], [5.0, 20.0]])
        assert sample(Point(0.0, 0.0, 1.0, 0.0), image) == Some(2015.0)
        assert sample(Point(1.0, 0.0, 1.0, 0.0), image) == Some(3015.0)


class TestSampleImages:
    def test_first_image_with_coverage_wins(self):
        first = np.ones((30, 40))
        first[20, 25] = np.nan
        images = (_image(first), _image(np.full((30, 40), 2.0)))
        xyz = np.array([[0.0, 0.0, 1.0], [0.5, 0.5, 1.0], [0.0, 0.0, -1.0]])

        temperatures, covered = sample_images(xyz, images)

        assert covered.tolist() == [True, True, False]
        np.testing.assert_array_equal(temperatures, [1.0, 2.0, np.nan])

    def test_no_images(self):
        temperatures, covered = sample_images(np.array([[0.0, 0.0, 1.0]]), ())

        assert not covered.any()
        assert np.isnan(temperatures).all()

    def test_sample_batch_matches_single_point_sampling(self, column_image: ThermalImage):
        points = [
            Point(0.0, 0.0, 1.0, 0.0),
            Point(0.0, 0.0, -1.0, 0.0),
            Point(1.2, -0.3, 2.0, 0.0),
        ]

        values, hit = sample_batch(np.array([p[:3] for p in points]), column_image)

        for point, value, point_hit in zip(points, values, hit):
            expected = sample(point, column_image)
            assert (expected != Nothing) == point_hit
            if point_hit:
                assert expected == Some(value)
