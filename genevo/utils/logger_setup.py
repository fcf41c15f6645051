"""loguru sinks for genevo runs: a compact console stream and a rotating file."""

from datetime import datetime, timezone
from pathlib import Path
import sys

from loguru import logger

# Console lines rely on the "[Component]" message prefix; the file sink adds
# the module location.
CONSOLE_FORMAT = "{time:HH:mm:ss.SSS} | {level: <8} | {message}"
COLOR_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"
)


def setup_logger(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    enable_colors: bool = True,
    file_level: str | None = None,
) -> str:
    """
    Replace loguru's default sink with console and file sinks.

    Args:
        log_dir: Directory for run logs, created if missing
        level: Console level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation: File rotation policy (e.g., "50 MB", "1 day")
        retention: How long rotated files are kept (e.g., "30 days")
        enable_colors: Colorize the console when it is a TTY
        file_level: File sink level; defaults to ``level``

    Returns:
        Path of the run's log file
    """
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_file = directory / f"genevo_{stamp}.log"

    logger.remove()

    colorize = enable_colors and sys.stdout.isatty()
    logger.add(
        sys.stdout,
        level=level,
        format=COLOR_CONSOLE_FORMAT if colorize else CONSOLE_FORMAT,
        colorize=colorize,
    )
    logger.add(
        log_file,
        level=file_level or level,
        format=FILE_FORMAT,
        rotation=rotation,
        retention=retention,
        compression="zip",
        encoding="utf-8",
        backtrace=True,
        diagnose=True,
    )

    logger.info("[logger] Console level {}, file {} ({})", level, log_file, file_level or level)
    return str(log_file)
