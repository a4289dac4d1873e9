"""
Colorization of a single scan position.

A task moves through these states::

    PENDING -> IMAGES_RESOLVED -> STREAMING -> COMPLETED
        \\              \\               \\
         +--------------+---------------+--> FAILED

Each task owns its thermal images, point streams and output writers, and only
reads the slice of project metadata it was constructed with. Tasks share no
mutable state, so any number of them can run concurrently.
"""

from contextlib import ExitStack
from enum import StrEnum
from pathlib import Path
from typing import NamedTuple

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from returns.pipeline import is_successful
from returns.result import ResultE, safe

from ..computations import (
    DomainMapping,
    Interpolation,
    index_to_rgb,
    sample_images,
    transform_points,
)
from ..container_models import ColorizedBatch, PointBatch, ScanPosition, ThermalImage
from ..exceptions import AmbiguousSourceError, NoThermalImagesError
from ..exporters import LasPointWriter, create_las_header
from ..parsers import NameMap, load_thermal_image, open_point_stream
from ..settings import Settings
from ..utils.logger import log_railway_function
from .name_resolver import find_image_files, resolve_images


class TaskState(StrEnum):
    PENDING = "pending"
    IMAGES_RESOLVED = "images resolved"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"


class SourceReport(NamedTuple):
    source: Path
    output: Path
    points_read: int
    points_unsynced: int
    points_without_thermal: int
    points_written: int


class ScanPositionReport(NamedTuple):
    scan_position: str
    images: tuple[str, ...]
    sources: tuple[SourceReport, ...]

    @property
    def points_written(self) -> int:
        return sum(source.points_written for source in self.sources)


def colorize_batch(
    batch: PointBatch,
    images: tuple[ThermalImage, ...],
    *,
    scanner_to_global: NDArray,
    reflectance: DomainMapping,
    temperature: DomainMapping,
    keep_without_thermal: bool = False,
    interpolation: Interpolation = Interpolation.NEAREST,
) -> ColorizedBatch:
    """
    Sample, map and transform a chunk of points.

    Points without thermal coverage are dropped unless `keep_without_thermal`
    is set, in which case they keep their intensity but get no colour and a
    NaN temperature.

    :param batch: Points in scanner-own coordinates.
    :param images: The scan position's images, in the order they are tried.
    :param scanner_to_global: Transform from scanner-own to global coordinates.
    :returns: The colorized points, in global coordinates and stream order.
    """
    temperatures, covered = sample_images(batch.xyz, images, interpolation)
    if not keep_without_thermal:
        batch = batch.select(covered)
        temperatures = temperatures[covered]
        covered = covered[covered]

    rgb = np.zeros((len(batch), 3), dtype=np.uint16)
    rgb[covered] = index_to_rgb(temperature.to_index(temperatures[covered]))
    return ColorizedBatch(
        xyz=transform_points(batch.xyz, scanner_to_global),
        intensity=reflectance.to_intensity(batch.reflectance),
        rgb=rgb,
        temperature=temperatures,
        timestamp=batch.timestamp,
    )


class ScanPositionTask:
    """
    Colorize all point sources of one scan position.

    :param scan_position: The scan position to colorize.
    :param scanner_to_global: Transform from the scan position's scanner-own
        coordinates to global coordinates.
    :param origin: Offset of the output coordinates.
    :param settings: The run configuration.
    :param name_map: Optional map from image file names to project image names.
    """

    def __init__(
        self,
        scan_position: ScanPosition,
        *,
        scanner_to_global: NDArray,
        origin: tuple[float, float, float],
        settings: Settings,
        name_map: NameMap | None = None,
    ) -> None:
        self.scan_position = scan_position
        self.scanner_to_global = scanner_to_global
        self.origin = origin
        self.settings = settings
        self.name_map = name_map
        self.reflectance = settings.reflectance_domain
        self.temperature = settings.temperature_domain
        self.state = TaskState.PENDING

    @property
    def name(self) -> str:
        return self.scan_position.name

    def _transition(self, state: TaskState) -> None:
        logger.debug(f"{self.state} -> {state}")
        self.state = state

    def run(self) -> ResultE[ScanPositionReport]:
        """
        Run the task to completion.

        :returns: `Success` with a report of the written files, or `Failure`
            with the error that stopped the task.
        """
        with logger.contextualize(scan_position=self.name):
            logger.info(f"Colorizing scan position {self.name}")
            if is_successful(result := self._run()):
                self._transition(TaskState.COMPLETED)
                logger.info(
                    f"Completed with {result.unwrap().points_written} points written"
                )
            else:
                self._transition(TaskState.FAILED)
            return result

    @log_railway_function("Failed to colorize scan position")
    @safe
    def _run(self) -> ScanPositionReport:
        images = self._load_images()
        self._transition(TaskState.IMAGES_RESOLVED)
        sources = self._sources()
        self._transition(TaskState.STREAMING)
        # Outputs stay partial until every source of the position is written.
        with ExitStack() as stack:
            writers, reports = [], []
            for source in sources:
                writer = stack.enter_context(
                    LasPointWriter(self._output_path(source), create_las_header(self.origin))
                )
                reports.append(self._colorize_source(source, images, writer))
                writers.append(writer)
            for writer in writers:
                writer.finish()
            for writer in writers:
                writer.commit()
        return ScanPositionReport(
            scan_position=self.name,
            images=tuple(image.name for image in images),
            sources=tuple(reports),
        )

    def _load_images(self) -> tuple[ThermalImage, ...]:
        paths = find_image_files(self.settings.image_dir, self.scan_position)
        if not paths:
            if not self.settings.keep_without_thermal:
                raise NoThermalImagesError(
                    "No thermal images found",
                    scan_position=self.name,
                    path=self.settings.image_dir / self.name,
                )
            logger.warning("No thermal images, points are kept without thermal data")

        if not is_successful(resolved := resolve_images(paths, self.scan_position, self.name_map)):
            raise resolved.failure()

        order = self.scan_position.image_names
        images = tuple(
            load_thermal_image(
                path,
                self.scan_position.image(name),
                rotated=self.settings.rotate,
                unit=self.settings.temperature_unit,
            )
            for path, name in sorted(resolved.unwrap(), key=lambda pair: order.index(pair[1]))
        )
        for image in images:
            logger.info(f"Loaded image {image.name} from {image.path}")
        return images

    def _sources(self) -> tuple[Path, ...]:
        sources = self.scan_position.rxp_paths
        if self.settings.use_scanpos_names and len(sources) > 1:
            raise AmbiguousSourceError(
                f"Scan position names are used for output, but there are {len(sources)} rxp sources",
                scan_position=self.name,
            )
        if not sources:
            logger.warning("Scan position has no rxp sources")
        return sources

    def _output_path(self, source: Path) -> Path:
        stem = self.name if self.settings.use_scanpos_names else source.stem
        return self.settings.las_dir / f"{stem}.las"

    def _colorize_source(
        self, source: Path, images: tuple[ThermalImage, ...], writer: LasPointWriter
    ) -> SourceReport:
        points_read = points_unsynced = points_without_thermal = 0
        with (
            logger.contextualize(source=str(source)),
            open_point_stream(source, self.settings.chunk_size) as batches,
        ):
            logger.info(f"Opened point stream {source}")
            for batch in batches:
                points_read += len(batch)
                if self.settings.sync_to_pps:
                    synced = batch.select(batch.pps_synced)
                    points_unsynced += len(batch) - len(synced)
                    batch = synced
                colorized = colorize_batch(
                    batch,
                    images,
                    scanner_to_global=self.scanner_to_global,
                    reflectance=self.reflectance,
                    temperature=self.temperature,
                    keep_without_thermal=self.settings.keep_without_thermal,
                    interpolation=self.settings.interpolation,
                )
                points_without_thermal += len(batch) - int(colorized.has_thermal.sum())
                writer.write(colorized)
        return SourceReport(
            source=source,
            output=writer.path,
            points_read=points_read,
            points_unsynced=points_unsynced,
            points_without_thermal=points_without_thermal,
            points_written=writer.point_count,
        )
