import numpy as np
import pytest
from pydantic import ValidationError

from thermal_colorizer.container_models import (
    CameraCalibration,
    ImageRecord,
    MountCalibration,
    Project,
    ScanPosition,
)

from ..helper_functions import CAMERA, translation


class TestImageRecord:
    def test_scanner_to_camera(self, camera: CameraCalibration):
        cop = np.array(translation(1.0, 0.0, 0.0))
        mount = np.array(translation(0.0, 0.0, 2.0))
        record = ImageRecord(
            name="image", cop=cop, camera=camera, mount=MountCalibration(name="m", matrix=mount)
        )

        np.testing.assert_allclose(record.scanner_to_camera, mount @ np.linalg.inv(cop))
        assert not record.scanner_to_camera.flags.writeable

    def test_rejects_singular_pose(self, camera: CameraCalibration):
        with pytest.raises(ValidationError, match="not invertible"):
            ImageRecord(
                name="image",
                cop=np.zeros((4, 4)),
                camera=camera,
                mount=MountCalibration(name="m"),
            )

    def test_pose_from_nested_lists(self, camera: CameraCalibration):
        record = ImageRecord(
            name="image", cop=translation(0.0, 1.0, 0.0), camera=camera, mount=MountCalibration(name="m")
        )

        assert record.cop.shape == (4, 4)
        assert record.cop[1, 3] == 1.0

    @pytest.mark.parametrize(
        "override",
        (
            pytest.param({"width": 0}, id="zero width"),
            pytest.param({"fx": -1.0}, id="negative focal length"),
            pytest.param({"tan_max_horizontal": 0.0}, id="empty field of view"),
            pytest.param({"skew": 0.0}, id="unknown field"),
        ),
    )
    def test_invalid_camera_calibration(self, override: dict):
        with pytest.raises(ValidationError):
            CameraCalibration(**(CAMERA | override))

    def test_mount_defaults_to_identity(self):
        np.testing.assert_array_equal(MountCalibration(name="m").matrix, np.eye(4))


class TestProject:
    @pytest.fixture
    def project(self, image_record: ImageRecord) -> Project:
        return Project(
            path="project.json",
            name="test",
            pop=translation(1000.0, 2000.0, 30.0),
            scan_positions={
                "ScanPos001": ScanPosition(
                    name="ScanPos001",
                    sop=translation(5.0, 0.0, 0.0),
                    images=(image_record,),
                )
            },
        )

    def test_origin_is_pop_translation(self, project: Project):
        assert project.origin == (1000.0, 2000.0, 30.0)

    def test_scanner_to_global(self, project: Project):
        transform = project.scanner_to_global(project.scan_positions["ScanPos001"])

        np.testing.assert_allclose(transform[:3, 3], [1005.0, 2000.0, 30.0])

    def test_image_lookup(self, project: Project, image_record: ImageRecord):
        scan_position = project.scan_positions["ScanPos001"]

        assert scan_position.image("ScanPos001_0001") is image_record
        assert scan_position.image("ScanPos001_0002") is None
        assert scan_position.image_names == ("ScanPos001_0001",)

    def test_is_frozen(self, project: Project):
        with pytest.raises(ValidationError):
            project.name = "other"
