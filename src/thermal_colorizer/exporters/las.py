"""
Streaming LAS output for colorized points.

Points are written to ``<name>.las.part`` while a scan position is processed.
:meth:`LasPointWriter.commit` renames the file to ``<name>.las``; closing a
writer that was never committed deletes the partial file, so a failed scan
position never leaves output that looks complete. A scan position with several
sources keeps all of its writers open and commits them together at the end.
"""

from pathlib import Path
from types import TracebackType
from typing import Final, Self

import laspy
import numpy as np
from loguru import logger

from ..container_models import ColorizedBatch
from ..exceptions import WriteError

POINT_FORMAT: Final[int] = 3
LAS_VERSION: Final[str] = "1.4"
COORDINATE_SCALE: Final[float] = 0.001
TEMPERATURE_DIMENSION: Final[str] = "temperature"
PARTIAL_SUFFIX: Final[str] = ".part"


def create_las_header(origin: tuple[float, float, float]) -> laspy.LasHeader:
    """
    Build the header shared by all output files of a project.

    :param origin: The project origin, used as coordinate offset.
    :returns: A LAS 1.4 point format 3 header with millimetre resolution and a
        `temperature` extra dimension.
    """
    header = laspy.LasHeader(point_format=POINT_FORMAT, version=LAS_VERSION)
    header.offsets = np.array(origin, dtype=np.float64)
    header.scales = np.full(3, COORDINATE_SCALE)
    header.add_extra_dim(
        laspy.ExtraBytesParams(
            name=TEMPERATURE_DIMENSION,
            type=np.float64,
            description="Temperature in degC",
        )
    )
    return header


class LasPointWriter:
    """Write colorized batches, in arrival order, to a single LAS file."""

    def __init__(self, path: Path, header: laspy.LasHeader):
        self.path = path
        self.partial_path = path.with_name(path.name + PARTIAL_SUFFIX)
        self.point_count = 0
        self._committed = False
        self._writer_closed = False
        try:
            self._writer = laspy.open(self.partial_path, mode="w", header=header)
        except (OSError, laspy.LaspyException) as error:
            raise WriteError(f"Cannot create output file: {error}", path=path) from error

    def write(self, batch: ColorizedBatch) -> None:
        if not len(batch):
            return
        record = laspy.ScaleAwarePointRecord.zeros(len(batch), header=self._writer.header)
        record.x = batch.xyz[:, 0]
        record.y = batch.xyz[:, 1]
        record.z = batch.xyz[:, 2]
        record.intensity = batch.intensity
        record.red = batch.rgb[:, 0]
        record.green = batch.rgb[:, 1]
        record.blue = batch.rgb[:, 2]
        record.gps_time = np.nan_to_num(batch.timestamp, nan=0.0)
        record[TEMPERATURE_DIMENSION] = batch.temperature
        try:
            self._writer.write_points(record)
        except (OSError, ValueError, laspy.LaspyException) as error:
            raise WriteError(f"Cannot write points: {error}", path=self.path) from error
        self.point_count += len(batch)

    def _close_writer(self) -> None:
        if not self._writer_closed:
            self._writer_closed = True
            self._writer.close()

    def finish(self) -> None:
        """Flush and close the partial file without giving it its final name."""
        try:
            self._close_writer()
        except (OSError, laspy.LaspyException) as error:
            raise WriteError(f"Cannot finalize output file: {error}", path=self.path) from error

    def commit(self) -> Path:
        """Finalize the file and move it to its final name."""
        self.finish()
        try:
            self.partial_path.replace(self.path)
        except OSError as error:
            raise WriteError(f"Cannot rename output file: {error}", path=self.path) from error
        self._committed = True
        logger.info(f"Wrote {self.point_count} points to {self.path}")
        return self.path

    def close(self) -> None:
        """Release the file; an uncommitted file is discarded."""
        if self._committed:
            return
        try:
            self._close_writer()
        finally:
            self.partial_path.unlink(missing_ok=True)
            logger.warning(f"Discarded incomplete output {self.partial_path}")

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
