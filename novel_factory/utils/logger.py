import sys
from loguru import logger
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

_console_level: Optional[str] = None
_file_sinks = set()


def _add_file_sink(log_file: Path):
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        format=FILE_FORMAT,
        level="DEBUG",
        rotation="10 MB",
        retention="7 days",
    )


def setup_logger(log_level: str = "INFO", log_file: Optional[Path] = None):
    """Configure the shared loguru logger for the analytics tools.

    Library modules only call ``logger.<level>``; sinks are installed here
    by the CLI or by an embedding application. Reports go to stdout, so the
    console sink writes to stderr. Repeated calls with the same level are
    no-ops, and each log file is attached at most once. Changing the level
    rebuilds the console sink and keeps every file already attached.
    """
    global _console_level

    if _console_level != log_level:
        logger.remove()
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=True)
        for path in _file_sinks:
            _add_file_sink(path)
        _console_level = log_level

    if log_file is not None and Path(log_file) not in _file_sinks:
        log_file = Path(log_file)
        _add_file_sink(log_file)
        _file_sinks.add(log_file)

    return logger
