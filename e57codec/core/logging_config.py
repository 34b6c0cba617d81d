import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | int = "INFO", log_file: str | Path | None = None) -> None:
    """
    Configure the root logger for command-line use.

    The library modules only create named loggers; applications decide where
    the records go. Calling this twice replaces the previous handlers.

    Args:
        level: Logging level name or number
        log_file: Optional path of a rotating log file
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=(10 * 1024 * 1024),   # 10MB per file
                backupCount=7,                 # Last 7 rotated logs kept
                encoding="utf-8"
            )
        )

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=handlers,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger with the given module name."""
    return logging.getLogger(name)
