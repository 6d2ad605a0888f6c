"""
Logging setup shared by the farm service, the maintenance scripts and tests.

Everything logs through loguru's global ``logger``. ``setup_logging`` replaces
whatever sinks are installed with:

    - stdout, colourised, at LOG_LEVEL
    - {LOG_DIR}/{name}.log at LOG_LEVEL (50 MB rotation, 7 days, zipped)
    - {LOG_DIR}/{name}-error.log for ERROR and above (10 MB rotation, 30 days, zipped)

File sinks are skipped when LOG_TO_FILES is false, which is how the test
suite runs.

Example:
    ```python
    from loguru import logger

    from fincafe.logging import setup_logging

    setup_logging("migrate-farms")
    logger.info("Migrating farm databases")
    ```
"""

from pathlib import Path
import sys

from loguru import logger

from fincafe.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


def _add_file_sinks(log_dir: Path, name: str, level: str) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / f"{name}-error.log",
        format=FILE_FORMAT,
        level="ERROR",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
    )
    logger.add(
        log_dir / f"{name}.log",
        format=FILE_FORMAT,
        level=level,
        rotation="50 MB",
        retention="7 days",
        compression="zip",
    )


def setup_logging(service_name: str | None = None, log_dir: str | Path | None = None) -> None:
    """
    Configure loguru sinks for one process.

    Args:
        service_name: Name of the service or script (e.g. "farm-service",
            "init-farm"). Names the log files; "app" when omitted.
        log_dir: Directory for the log files. Defaults to settings.LOG_DIR.

    Note:
        Safe to call more than once; previous sinks are removed first.
    """
    settings = get_settings(service_name)

    logger.remove()
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=settings.LOG_LEVEL, colorize=True)

    if settings.LOG_TO_FILES:
        _add_file_sinks(Path(log_dir or settings.LOG_DIR), service_name or "app", settings.LOG_LEVEL)

    logger.debug(f"Logging configured for {service_name or 'app'} at level {settings.LOG_LEVEL}")
