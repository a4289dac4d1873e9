"""
Orchestration of a colorization run.

The driver selects scan positions and fans out one :class:`ScanPositionTask`
per position. A task resolves its thermal images, streams its point sources
through the image sampler and domain mappings, and writes one LAS file per
source.
"""

from .driver import PipelineReport, run_pipeline, select_scan_positions
from .name_resolver import find_image_files, resolve_image_name, resolve_images
from .scan_position_task import (
    ScanPositionReport,
    ScanPositionTask,
    SourceReport,
    TaskState,
    colorize_batch,
)

__all__ = (
    "PipelineReport",
    "ScanPositionReport",
    "ScanPositionTask",
    "SourceReport",
    "TaskState",
    "colorize_batch",
    "find_image_files",
    "resolve_image_name",
    "resolve_images",
    "run_pipeline",
    "select_scan_positions",
)
