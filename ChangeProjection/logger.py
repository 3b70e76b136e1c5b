"""
Logging for ChangeProjection
============================

All modules log under the "ChangeProjection" hierarchy
(e.g. ChangeProjection.visibility, ChangeProjection.projection.ray).

Level usage:
    INFO     stage banners, per-stage counts and timings, sweep progress
    DEBUG    per-ray / per-record details
    WARNING  skipped input (stale correspondences, masks without candidates)
    ERROR    failed pipeline stages
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union


ROOT_LOGGER_NAME = "ChangeProjection"

# [2025-10-31 10:15:30] [INFO] [ChangeProjection.visibility] 120,000/480,000 vertices (25%)
LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

BANNER_WIDTH = 70


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level}")
    return value


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    force: bool = False
) -> logging.Logger:
    """
    Attach console and/or file handlers to a logger.

    A logger that already has handlers is returned untouched unless
    `force` is set, so several pipelines in one process share one setup.

    Args:
        name: Logger name
        level: Level name or logging constant
        log_file: Optional path of an append-mode log file
        console: Log to stdout
        force: Replace existing handlers

    Returns:
        Configured logger

    Example:
        >>> logger = setup_logger(level='DEBUG', log_file='./change_output/projection.log')
        >>> logger.debug("ray 0/12,408")
    """
    logger = logging.getLogger(name)

    if logger.handlers and not force:
        return logger

    logger.setLevel(_resolve_level(level))
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode='a')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Child logger of the package root.

    Args:
        name: Dotted component name ('visibility', 'projection.ray', 'io.points')

    Example:
        >>> logger = get_logger("spatial.voxel_grid")
        >>> logger.info("Voxel grid: 1,204,311 points, leaf=0.05")
    """
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_root_logger(level: Union[str, int] = "INFO",
                          log_file: Optional[str] = None) -> logging.Logger:
    """Reconfigure the package root logger, dropping earlier handlers"""
    return setup_logger(name=ROOT_LOGGER_NAME, level=level, log_file=log_file, force=True)


def set_level(level: Union[str, int]):
    """Change the package root level, e.g. to DEBUG for a single ray sweep"""
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(_resolve_level(level))


def log_banner(logger: logging.Logger, title: str):
    """Framed title opening or closing a pipeline run"""
    logger.info("=" * BANNER_WIDTH)
    logger.info(title)
    logger.info("=" * BANNER_WIDTH)


def log_stage(logger: logging.Logger, title: str):
    logger.info(f"\n--- {title} ---")


class ProgressLogger:
    """
    Reports a long sweep every `interval` items.

    `update(done)` logs once per crossed interval and stays silent for the
    final item count, which the caller reports with its own summary line.
    """

    def __init__(self, logger: logging.Logger, total: int, interval: int,
                 unit: str = "items", level: int = logging.INFO):
        if interval <= 0:
            raise ValueError(f"Progress interval must be positive, got {interval}")
        self.logger = logger
        self.total = total
        self.interval = interval
        self.unit = unit
        self.level = level
        self.next_report = interval

    def update(self, done: int) -> bool:
        """Log progress if `done` crossed the next threshold; returns whether it logged"""
        if done < self.next_report or done >= self.total:
            return False

        self.logger.log(self.level, f"  {done:,}/{self.total:,} {self.unit} "
                                    f"({100.0 * done / self.total:.0f}%)")
        self.next_report = (done // self.interval + 1) * self.interval
        return True
