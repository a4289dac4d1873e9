import logging
from collections.abc import Callable
from pathlib import Path

import numpy as np
import pytest
from loguru import logger

from thermal_colorizer.container_models import (
    CameraCalibration,
    ImageRecord,
    MountCalibration,
    ThermalImage,
)
from thermal_colorizer.settings import Settings

from .helper_functions import (
    CAMERA,
    IMAGE_TEMPERATURE,
    SCAN_POINTS,
    scan_position_entry,
    translation,
    write_image,
    write_points,
    write_project,
)


class PropagateHandler(logging.Handler):
    """Handler that propagates loguru records to standard logging."""

    def emit(self, record: logging.LogRecord) -> None:
        logging.getLogger(record.name).handle(record)


@pytest.fixture
def caplog(caplog):
    """Fixture to enable caplog to capture loguru logs."""
    handler_id = logger.add(PropagateHandler(), format="{message}")
    yield caplog
    logger.remove(handler_id)


@pytest.fixture(scope="session")
def camera() -> CameraCalibration:
    return CameraCalibration(**CAMERA)


@pytest.fixture(scope="session")
def image_record(camera: CameraCalibration) -> ImageRecord:
    return ImageRecord(
        name="ScanPos001_0001",
        cop=np.eye(4),
        camera=camera,
        mount=MountCalibration(name="mount"),
    )


@pytest.fixture(scope="session")
def thermal_image(image_record: ImageRecord) -> ThermalImage:
    """An image with the same temperature everywhere."""
    return ThermalImage(record=image_record, data=np.full((30, 40), IMAGE_TEMPERATURE))


@pytest.fixture(scope="session")
def column_image(image_record: ImageRecord) -> ThermalImage:
    """An image whose pixels hold their column index."""
    data = np.tile(np.arange(40, dtype=np.float64), (30, 1))
    return ThermalImage(record=image_record, data=data)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """
    Build a project with two scan positions, each with one image and one point source.

    ScanPos002 is shifted by 100 m along x in project coordinates.
    """
    write_project(
        tmp_path / "project" / "project.json",
        {
            "ScanPos001": scan_position_entry(
                ["ScanPos001_0001"], ["scans/ScanPos001/170101_120000.npy"]
            ),
            "ScanPos002": scan_position_entry(
                ["ScanPos002_0001"],
                ["scans/ScanPos002/170101_130000.npy"],
                sop=translation(100.0, 0.0, 0.0),
            ),
        },
    )
    for name, source in (
        ("ScanPos001", "170101_120000"),
        ("ScanPos002", "170101_130000"),
    ):
        write_points(tmp_path / "project" / "scans" / name / f"{source}.npy", SCAN_POINTS)
        write_image(
            tmp_path / "images" / name / f"{name}_0001.npy",
            np.full((30, 40), IMAGE_TEMPERATURE),
        )
    (tmp_path / "las").mkdir()
    return tmp_path


@pytest.fixture
def settings_factory(project_dir: Path) -> Callable[..., Settings]:
    def factory(**overrides) -> Settings:
        options = {
            "project": project_dir / "project",
            "image_dir": project_dir / "images",
            "las_dir": project_dir / "las",
        }
        return Settings(**(options | overrides))

    return factory


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    return settings_factory()
