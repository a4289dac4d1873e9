from functools import partial
from pathlib import Path

from returns.iterables import Fold
from returns.result import ResultE, Success, safe

from ..container_models import ScanPosition
from ..exceptions import UnresolvedImageError
from ..parsers import NameMap, image_suffixes
from ..utils.logger import FailureLevel, log_railway_function


def find_image_files(image_dir: Path, scan_position: ScanPosition) -> tuple[Path, ...]:
    """
    List the decodable image files of a scan position, sorted by name.

    Images of a scan position live in ``<image_dir>/<scan position name>/``; a
    missing directory means the scan position has no images.
    """
    directory = image_dir / scan_position.name
    if not directory.is_dir():
        return ()
    suffixes = image_suffixes()
    return tuple(
        sorted(
            path
            for path in directory.iterdir()
            if path.is_file() and path.suffix.lower() in suffixes
        )
    )


@log_railway_function("Cannot resolve image file", failure_level=FailureLevel.WARNING)
@safe(exceptions=(UnresolvedImageError,))
def resolve_image_name(
    path: Path, scan_position: ScanPosition, name_map: NameMap | None = None
) -> str:
    """
    Match an image file to the name of an image registered under `scan_position`.

    An explicit name map entry for the file name, or else its stem, takes
    precedence; without one the file stem is used as the image name.

    :returns: `Success` with the image name, or `Failure` with an `UnresolvedImageError`.
    """
    name = path.stem
    if name_map:
        name = name_map.get(path.name, name_map.get(path.stem, path.stem))
    if scan_position.image(name) is None:
        raise UnresolvedImageError(
            f"Image {name} is not registered in the project",
            scan_position=scan_position.name,
            path=path,
        )
    return name


def resolve_images(
    paths: tuple[Path, ...], scan_position: ScanPosition, name_map: NameMap | None = None
) -> ResultE[tuple[tuple[Path, str], ...]]:
    """Resolve every image file of a scan position; a single unresolved file fails them all."""
    return Fold.collect(
        (
            resolve_image_name(path, scan_position, name_map).map(
                partial(_pair_with, path)
            )
            for path in paths
        ),
        Success(()),
    )


def _pair_with(path: Path, name: str) -> tuple[Path, str]:
    return path, name
