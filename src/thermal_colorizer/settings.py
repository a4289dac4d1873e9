"""Run configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Self

from loguru import logger
from pydantic import DirectoryPath, Field, FilePath, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .computations import DomainMapping, Interpolation
from .exceptions import ConfigurationError
from .parsers import DEFAULT_CHUNK_SIZE, TemperatureUnit


class Settings(BaseSettings):
    """
    Configuration of a colorization run.

    Values passed on the command line take precedence over environment
    variables, which use the THERMAL_ prefix::

        export THERMAL_JOBS=4
        export THERMAL_MIN_TEMPERATURE=-30
    """

    # Inputs and output
    project: Annotated[Path, Field(description="Project file, or a directory holding project.json")]
    image_dir: Annotated[DirectoryPath, Field(description="Directory with one sub-directory of thermal images per scan position")]
    las_dir: Annotated[Path, Field(description="Directory that will hold the output files")]
    name_map: Annotated[FilePath | None, Field(default=None, description="JSON map from image file names to project image names")]

    # Selection and policies
    scan_positions: Annotated[tuple[str, ...], Field(default=(), description="Scan positions to colorize; all when empty")]
    sync_to_pps: bool = False
    rotate: bool = False
    use_scanpos_names: bool = False
    keep_without_thermal: bool = False

    # Domains
    min_reflectance: float = -5.0
    max_reflectance: float = 20.0
    min_temperature: float = -40.0
    max_temperature: float = -20.0

    # Processing
    interpolation: Interpolation = Interpolation.NEAREST
    temperature_unit: TemperatureUnit = TemperatureUnit.CELSIUS
    jobs: Annotated[int, Field(default=1, gt=0, description="Scan positions processed in parallel")]
    chunk_size: Annotated[int, Field(default=DEFAULT_CHUNK_SIZE, gt=0, description="Points per read chunk")]
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="THERMAL_",
        case_sensitive=False,
        frozen=True,
        extra="forbid",
    )

    @model_validator(mode="after")
    def _check_domains(self) -> Self:
        # Raises ConfigurationError, which pydantic lets through unwrapped.
        _ = self.reflectance_domain, self.temperature_domain
        return self

    @property
    def reflectance_domain(self) -> DomainMapping:
        return DomainMapping.create(self.min_reflectance, self.max_reflectance)

    @property
    def temperature_domain(self) -> DomainMapping:
        return DomainMapping.create(self.min_temperature, self.max_temperature)

    def log_startup_config(self) -> None:
        logger.info("=" * 60)
        logger.info("Colorization run - Configuration:")
        logger.info(f"  Project: {self.project}")
        logger.info(f"  Images: {self.image_dir}")
        logger.info(f"  Output: {self.las_dir}")
        logger.info(f"  Name map: {self.name_map or '-'}")
        logger.info(f"  Scan positions: {', '.join(self.scan_positions) or 'all'}")
        logger.info(f"  Reflectance domain: [{self.min_reflectance}, {self.max_reflectance}]")
        logger.info(f"  Temperature domain: [{self.min_temperature}, {self.max_temperature}]")
        logger.info(
            f"  Sync to PPS: {self.sync_to_pps}, rotate: {self.rotate}, "
            f"scan position names: {self.use_scanpos_names}, "
            f"keep without thermal: {self.keep_without_thermal}"
        )
        logger.info(f"  Jobs: {self.jobs}, chunk size: {self.chunk_size}")
        logger.info("=" * 60)


def load_settings(**options: Any) -> Settings:
    """
    Build settings from explicit options and the environment.

    :raises ConfigurationError: If any option is invalid.
    """
    try:
        return Settings(**options)
    except ValidationError as error:
        raise ConfigurationError(f"Invalid configuration: {error}") from error
