"""
Command line entry point.

Usage:
    thermal-colorizer PROJECT IMAGE_DIR LAS_DIR
    thermal-colorizer project.json images/ las/ -s ScanPos001 -s ScanPos002 --keep-without-thermal
    thermal-colorizer project.json images/ las/ --min-temperature -30 --max-temperature 10 --rotate

Options left out on the command line fall back to THERMAL_* environment
variables, then to the defaults of :class:`~thermal_colorizer.settings.Settings`.

Exit status is 0 when every scan position completed, 1 when any scan position
failed, and 2 when the run could not be set up.
"""

import argparse
from collections.abc import Sequence
from enum import IntEnum
from pathlib import Path

from loguru import logger

from .computations import Interpolation
from .exceptions import ColorizationError
from .parsers import TemperatureUnit
from .pipelines import run_pipeline
from .settings import load_settings
from .utils.logger import configure_logging


class ExitCode(IntEnum):
    SUCCESS = 0
    FAILED_SCAN_POSITIONS = 1
    SETUP_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thermal-colorizer",
        description="Colorize a laser scanning project with thermal imagery.",
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument("project", metavar="PROJECT", type=Path, help="Path to the project to colorize.")
    parser.add_argument(
        "image_dir", metavar="IMAGE_DIR", type=Path, help="Path to the directory that holds the thermal images."
    )
    parser.add_argument(
        "las_dir", metavar="LAS_DIR", type=Path, help="Path to the directory that will hold the output files."
    )
    parser.add_argument(
        "-s",
        "--scan-position",
        dest="scan_positions",
        action="append",
        help="Scan position to colorize, if none are specified all will be used.",
    )
    parser.add_argument(
        "--sync-to-pps",
        action="store_true",
        help="Only use points that are synced to a pps signal.",
    )
    parser.add_argument(
        "--min-reflectance",
        type=float,
        help="The minimum of the reflectance domain, mapped to the intensity domain in the las output (default: -5).",
    )
    parser.add_argument(
        "--max-reflectance",
        type=float,
        help="The maximum of the reflectance domain, mapped to the intensity domain in the las output (default: 20).",
    )
    parser.add_argument(
        "--min-temperature",
        type=float,
        help="The minimum of the temperature domain, mapped to a color scale (default: -40).",
    )
    parser.add_argument(
        "--max-temperature",
        type=float,
        help="The maximum of the temperature domain, mapped to a color scale (default: -20).",
    )
    parser.add_argument(
        "--rotate",
        action="store_true",
        help="The project has the images in the original orientation, but the image files are rotated 90° to the right.",
    )
    parser.add_argument(
        "--use-scanpos-names",
        action="store_true",
        help="Name output files after their scan position instead of their source rxp. "
        "A scan position with more than one rxp fails.",
    )
    parser.add_argument(
        "--keep-without-thermal",
        action="store_true",
        help="Include points that don't have any thermal data.",
    )
    parser.add_argument(
        "--name-map",
        type=Path,
        help="A JSON map used to translate image file names to project image names.",
    )
    parser.add_argument("--jobs", type=int, help="Scan positions to process in parallel (default: 1).")
    parser.add_argument("--chunk-size", type=int, help="Points read per chunk (default: 100000).")
    parser.add_argument(
        "--interpolation",
        choices=[member.value for member in Interpolation],
        help="How temperatures are sampled from the image (default: nearest).",
    )
    parser.add_argument(
        "--temperature-unit",
        choices=[member.value for member in TemperatureUnit],
        help="Unit of the thermal image pixel values (default: celsius).",
    )
    parser.add_argument("--log-level", help="Log level (default: INFO).")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    options = vars(build_parser().parse_args(argv))
    configure_logging(options.get("log_level", "INFO"))
    try:
        settings = load_settings(**options)
        configure_logging(settings.log_level)
        settings.log_startup_config()
        report = run_pipeline(settings)
    except (ColorizationError, OSError) as error:
        logger.critical(f"{type(error).__name__}: {error}")
        return ExitCode.SETUP_ERROR
    if report.succeeded:
        logger.info("Done!")
        return ExitCode.SUCCESS
    return ExitCode.FAILED_SCAN_POSITIONS
