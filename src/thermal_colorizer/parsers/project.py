"""
Loader for the JSON project description.

Example layout::

    {
      "name": "facade",
      "pop": [[1, 0, 0, 1000], [0, 1, 0, 2000], [0, 0, 1, 30], [0, 0, 0, 1]],
      "camera_calibrations": [{"name": "InfraTec", "width": 640, "height": 480, ...}],
      "mount_calibrations": [{"name": "mount", "matrix": [[...]]}],
      "scan_positions": {
        "ScanPos001": {
          "sop": [[...]],
          "rxp_paths": ["SCANS/ScanPos001/SINGLESCANS/170101_120000.rxp"],
          "images": {
            "ScanPos001_0001": {"cop": [[...]], "camera_calibration": "InfraTec", "mount_calibration": "mount"}
          }
        }
      }
    }

Calibrations are referenced by name and resolved while loading; relative rxp
paths are resolved against the project directory.
"""

from pathlib import Path
from typing import Final

import numpy as np
from pydantic import Field, ValidationError
from returns.io import impure_safe

from ..container_models import (
    CameraCalibration,
    ImageRecord,
    MountCalibration,
    Project,
    ScanPosition,
)
from ..container_models.base import FrozenBaseModel, Matrix4x4
from ..exceptions import ProjectLoadError
from ..utils.logger import FailureLevel, log_railway_function

PROJECT_FILE_NAME: Final[str] = "project.json"
IDENTITY_MOUNT: Final[MountCalibration] = MountCalibration(
    name="identity", matrix=np.eye(4)
)


class _ImageEntry(FrozenBaseModel):
    cop: Matrix4x4
    camera_calibration: str
    mount_calibration: str | None = None


class _ScanPositionEntry(FrozenBaseModel):
    sop: Matrix4x4 = Field(default_factory=lambda: np.eye(4))
    rxp_paths: list[Path] = Field(default_factory=list)
    images: dict[str, _ImageEntry] = Field(default_factory=dict)


class ProjectFile(FrozenBaseModel):
    """The on-disk project description, before references are resolved."""

    name: str
    pop: Matrix4x4 = Field(default_factory=lambda: np.eye(4))
    camera_calibrations: list[CameraCalibration] = Field(default_factory=list)
    mount_calibrations: list[MountCalibration] = Field(default_factory=list)
    scan_positions: dict[str, _ScanPositionEntry]


def _resolve_image(
    name: str,
    entry: _ImageEntry,
    cameras: dict[str, CameraCalibration],
    mounts: dict[str, MountCalibration],
) -> ImageRecord:
    if (camera := cameras.get(entry.camera_calibration)) is None:
        raise ProjectLoadError(
            f"Image {name} references unknown camera calibration {entry.camera_calibration}"
        )
    mount = IDENTITY_MOUNT
    if entry.mount_calibration is not None:
        if (mount := mounts.get(entry.mount_calibration)) is None:  # type: ignore[assignment]
            raise ProjectLoadError(
                f"Image {name} references unknown mount calibration {entry.mount_calibration}"
            )
    return ImageRecord(name=name, cop=entry.cop, camera=camera, mount=mount)


def build_project(project_file: ProjectFile, path: Path) -> Project:
    """
    Resolve calibration references and source paths of a parsed project file.

    :param project_file: The parsed project description.
    :param path: Path of the project file; relative rxp paths are resolved against its directory.
    :returns: The read-only project metadata.
    """
    cameras = {camera.name: camera for camera in project_file.camera_calibrations}
    mounts = {mount.name: mount for mount in project_file.mount_calibrations}
    scan_positions = {
        name: ScanPosition(
            name=name,
            sop=entry.sop,
            images=tuple(
                _resolve_image(image_name, image, cameras, mounts)
                for image_name, image in entry.images.items()
            ),
            rxp_paths=tuple(path.parent / rxp_path for rxp_path in entry.rxp_paths),
        )
        for name, entry in project_file.scan_positions.items()
    }
    return Project(
        path=path,
        name=project_file.name,
        pop=project_file.pop,
        scan_positions=scan_positions,
    )


@log_railway_function(
    "Failed to load project",
    "Successfully loaded project",
    failure_level=FailureLevel.CRITICAL,
)
@impure_safe
def load_project(path: Path) -> Project:
    """
    Load project metadata from a JSON project file.

    :param path: The project file, or a directory containing `project.json`.
    :returns: An `IOResult` holding the project, or the `ProjectLoadError` that stopped loading.
    """
    if path.is_dir():
        path = path / PROJECT_FILE_NAME
    try:
        return build_project(ProjectFile.model_validate_json(path.read_bytes()), path)
    except OSError as error:
        raise ProjectLoadError("Cannot read project file", path=path) from error
    except ValidationError as error:
        raise ProjectLoadError(f"Invalid project file: {error}", path=path) from error
