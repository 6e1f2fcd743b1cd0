"""Loguru logger configuration for the application."""

import sys
from pathlib import Path

from loguru import logger

LOG_FILE_NAME = "rominstaller.log"


def setup_logger(log_dir: Path | None = None, console_level: str | None = None) -> None:
    """Configure loguru with an optional console sink and a file sink.

    Parameters
    ----------
    log_dir : Path, optional
        Directory for log files.  Defaults to ``<data dir>/logs``.
    console_level : str, optional
        Level for the coloured stderr sink; ``None`` disables it so that
        command output on stdout stays clean.
    """
    # Remove default handler
    logger.remove()

    if console_level:
        logger.add(
            sys.stderr,
            level=console_level,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level>"
            ),
            colorize=True,
        )

    # File handler: rotating, DEBUG level
    if log_dir is None:
        from rominstaller.config import Config
        log_dir = Config().logs_dir
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("Cannot create log directory {}: {}", log_dir, e)
        return
    log_file = log_dir / LOG_FILE_NAME

    logger.add(
        str(log_file),
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {module}:{function}:{line} | {message}",
        rotation="10 MB",
        retention="7 days",
        encoding="utf-8",
        enqueue=True,  # thread-safe
    )

    logger.debug("Logger initialized — file output: {}", log_file)
