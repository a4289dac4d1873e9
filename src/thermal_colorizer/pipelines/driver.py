"""
Fan-out of scan position tasks.

Setup errors (unreadable project, invalid name map, unknown scan positions)
raise before any task starts. After that, every task reports its own outcome:
a failing scan position never stops the others.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import NamedTuple

from loguru import logger
from returns.pipeline import is_successful
from returns.result import ResultE
from returns.unsafe import unsafe_perform_io

from ..container_models import Project, ScanPosition
from ..exceptions import ConfigurationError
from ..parsers import NameMap, load_name_map, load_project
from ..settings import Settings
from .scan_position_task import ScanPositionReport, ScanPositionTask


class PipelineReport(NamedTuple):
    """Outcome per scan position, in selection order."""

    results: dict[str, ResultE[ScanPositionReport]]

    @property
    def succeeded(self) -> bool:
        return all(is_successful(result) for result in self.results.values())

    @property
    def failures(self) -> dict[str, Exception]:
        return {
            name: result.failure()
            for name, result in self.results.items()
            if not is_successful(result)
        }

    def log_summary(self) -> None:
        for name, result in self.results.items():
            if is_successful(result):
                report = result.unwrap()
                logger.info(
                    f"{name}: completed, {report.points_written} points in "
                    f"{len(report.sources)} file(s)"
                )
            else:
                error = result.failure()
                logger.error(f"{name}: {type(error).__name__}: {error}")
        logger.info(
            f"{len(self.results) - len(self.failures)} of {len(self.results)} scan positions completed"
        )


def select_scan_positions(
    project: Project, names: tuple[str, ...] = ()
) -> tuple[ScanPosition, ...]:
    """
    Pick the scan positions to colorize.

    :param names: Requested scan position names; all scan positions when empty.
    :raises ConfigurationError: If any requested name is not in the project.
    """
    if not names:
        logger.info("Colorizing all scan positions")
        return tuple(project.scan_positions.values())
    if unknown := [name for name in names if name not in project.scan_positions]:
        raise ConfigurationError(
            f"Unknown scan position(s): {', '.join(unknown)}", path=project.path
        )
    logger.info(f"Only colorizing scan positions: {', '.join(names)}")
    return tuple(project.scan_positions[name] for name in dict.fromkeys(names))


def create_tasks(
    project: Project,
    scan_positions: tuple[ScanPosition, ...],
    settings: Settings,
    name_map: NameMap | None = None,
) -> tuple[ScanPositionTask, ...]:
    return tuple(
        ScanPositionTask(
            scan_position,
            scanner_to_global=project.scanner_to_global(scan_position),
            origin=project.origin,
            settings=settings,
            name_map=name_map,
        )
        for scan_position in scan_positions
    )


def run_tasks(tasks: tuple[ScanPositionTask, ...], jobs: int = 1) -> PipelineReport:
    """Run tasks, `jobs` at a time, and collect their outcomes."""
    if jobs == 1:
        return PipelineReport({task.name: task.run() for task in tasks})
    with ThreadPoolExecutor(max_workers=jobs, thread_name_prefix="scan-position") as executor:
        futures = {task.name: executor.submit(task.run) for task in tasks}
        return PipelineReport({name: future.result() for name, future in futures.items()})


def run_pipeline(settings: Settings) -> PipelineReport:
    """
    Colorize the selected scan positions of a project.

    :param settings: The run configuration.
    :returns: The outcome of every selected scan position.
    :raises ProjectLoadError: If the project cannot be loaded.
    :raises ConfigurationError: If the name map or scan position selection is invalid.
    """
    project_result = unsafe_perform_io(load_project(settings.project))
    if not is_successful(project_result):
        raise project_result.failure()
    project = project_result.unwrap()
    logger.info(f"Opened project {project.name} at {project.path}")

    name_map = load_name_map(settings.name_map) if settings.name_map else None
    scan_positions = select_scan_positions(project, settings.scan_positions)
    settings.las_dir.mkdir(parents=True, exist_ok=True)

    report = run_tasks(
        create_tasks(project, scan_positions, settings, name_map), settings.jobs
    )
    report.log_summary()
    return report
