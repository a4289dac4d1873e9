import logging
import sys
from enum import Enum
from functools import wraps
from typing import Final

from loguru import logger
from returns.io import IOFailure, IOResult, IOSuccess
from returns.result import Failure, Result, Success

LOG_FORMAT: Final[str] = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "{extra[scan_position]: <12} | <level>{message}</level>"
)


class FailureLevel(Enum):
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


def configure_logging(level: str = "INFO") -> None:
    """Replace the default loguru sink with a stderr sink at `level`."""
    logger.remove()
    logger.configure(extra={"scan_position": "-"})
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)


def log_failure(failure_message: str, failure_level: FailureLevel, error: Exception) -> None:
    logger.debug(f"{failure_message}: {type(error).__name__}")
    logger.log(failure_level.name, f"{failure_message}: {error}")


def _log_outcome(
    result: Result | IOResult,
    failure_message: str,
    success_message: str | None,
    failure_level: FailureLevel,
) -> None:
    match result:
        case Success() | IOSuccess():
            if success_message:
                logger.info(success_message)
        case Failure(error) | IOFailure(Failure(error)):
            log_failure(failure_message, failure_level, error)


def log_railway_function(
    failure_message: str,
    success_message: str | None = None,
    failure_level: FailureLevel = FailureLevel.ERROR,
):
    """
    Log the outcome of a function returning a `Result` or an `IOResult`.

    Failures are logged at `failure_level`, with the error class at DEBUG;
    successes are logged at INFO when `success_message` is given.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            result = func(*args, **kwargs)
            if isinstance(result, (Result, IOResult)):
                _log_outcome(result, failure_message, success_message, failure_level)
            return result

        return wrapper

    return decorator
