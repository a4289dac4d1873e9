"""
Point stream readers.

A reader opens a point source and yields it lazily as :class:`PointBatch`
chunks of at most `chunk_size` points. Streams are finite and forward-only.
Readers never filter on PPS synchronisation; the scan position task does that.

Built-in readers:

- ``.npy``: a structured array with fields ``x``, ``y``, ``z``, ``reflectance``
  and optionally ``time`` and ``pps``, memory-mapped.
- ``.las`` / ``.laz``: via laspy. Reflectance comes from an extra dimension
  called ``reflectance`` when present, else from the intensity channel.

There is no open decoder for RIEGL ``.rxp`` captures; register one with
:func:`register_point_reader` to process them directly.
"""

from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, ExitStack, contextmanager
from pathlib import Path
from typing import Final

import laspy
import numpy as np
from numpy.typing import NDArray

from ..container_models import PointBatch
from ..exceptions import StreamError

type PointReader = Callable[[Path, int], AbstractContextManager[Iterator[PointBatch]]]

DEFAULT_CHUNK_SIZE: Final[int] = 100_000
REQUIRED_FIELDS: Final[tuple[str, ...]] = ("x", "y", "z", "reflectance")

_READERS: dict[str, PointReader] = {}


def register_point_reader(*suffixes: str) -> Callable[[PointReader], PointReader]:
    def decorator(reader: PointReader) -> PointReader:
        for suffix in suffixes:
            _READERS[suffix.lower()] = reader
        return reader

    return decorator


def _npy_batches(data: NDArray, chunk_size: int) -> Iterator[PointBatch]:
    fields = data.dtype.names or ()
    for start in range(0, len(data), chunk_size):
        chunk = data[start : start + chunk_size]
        yield PointBatch(
            xyz=np.column_stack([chunk["x"], chunk["y"], chunk["z"]]).astype(np.float64),
            reflectance=np.asarray(chunk["reflectance"], dtype=np.float64),
            timestamp=(
                np.asarray(chunk["time"], dtype=np.float64)
                if "time" in fields
                else np.full(len(chunk), np.nan)
            ),
            pps_synced=(
                np.asarray(chunk["pps"], dtype=np.bool_)
                if "pps" in fields
                else np.zeros(len(chunk), dtype=np.bool_)
            ),
        )


@register_point_reader(".npy")
@contextmanager
def read_npy(path: Path, chunk_size: int) -> Iterator[Iterator[PointBatch]]:
    data = np.load(path, mmap_mode="r", allow_pickle=False)
    missing = [name for name in REQUIRED_FIELDS if name not in (data.dtype.names or ())]
    if missing:
        raise StreamError(f"Point array lacks fields {missing}", path=path)
    try:
        yield _npy_batches(data, chunk_size)
    finally:
        del data


def _las_batches(reader: laspy.LasReader, chunk_size: int) -> Iterator[PointBatch]:
    dimensions = set(reader.header.point_format.dimension_names)
    for chunk in reader.chunk_iterator(chunk_size):
        count = len(chunk)
        yield PointBatch(
            xyz=np.column_stack(
                [np.asarray(chunk.x), np.asarray(chunk.y), np.asarray(chunk.z)]
            ).astype(np.float64),
            reflectance=np.asarray(
                chunk["reflectance"] if "reflectance" in dimensions else chunk.intensity,
                dtype=np.float64,
            ),
            timestamp=(
                np.asarray(chunk.gps_time, dtype=np.float64)
                if "gps_time" in dimensions
                else np.full(count, np.nan)
            ),
            pps_synced=(
                np.asarray(chunk["pps"], dtype=np.bool_)
                if "pps" in dimensions
                else np.zeros(count, dtype=np.bool_)
            ),
        )


@register_point_reader(".las", ".laz")
@contextmanager
def read_las(path: Path, chunk_size: int) -> Iterator[Iterator[PointBatch]]:
    with laspy.open(path) as reader:
        yield _las_batches(reader, chunk_size)


def _guard(batches: Iterator[PointBatch], path: Path) -> Iterator[PointBatch]:
    try:
        yield from batches
    except StreamError:
        raise
    except (OSError, ValueError, laspy.LaspyException) as error:
        raise StreamError(f"Corrupt point stream: {error}", path=path) from error


@contextmanager
def open_point_stream(
    path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE
) -> Iterator[Iterator[PointBatch]]:
    """
    Open a point source with the reader registered for its suffix.

    Use as a context manager; the stream is released on exit::

        with open_point_stream(path) as batches:
            for batch in batches:
                ...

    :raises StreamError: If no reader is registered, the source cannot be
        opened, or it turns out to be corrupt while reading.
    """
    if (reader := _READERS.get(path.suffix.lower())) is None:
        raise StreamError(f"No point reader registered for {path.suffix} sources", path=path)
    if not path.is_file():
        raise StreamError("Point source does not exist", path=path)
    with ExitStack() as stack:
        try:
            batches = stack.enter_context(reader(path, chunk_size))
        except StreamError:
            raise
        except (OSError, ValueError, laspy.LaspyException) as error:
            raise StreamError(f"Cannot open point stream: {error}", path=path) from error
        yield _guard(batches, path)
