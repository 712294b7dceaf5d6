"""
Centralized logging configuration for the application.

- Development (DEBUG=true): logs to console AND file
- Production: logs to file only
- Daily rotation with previous logs moved to <LOG_DIR>/archive/

Token values, authorization codes and CSRF state are never passed to loggers;
callers log outcomes and status codes only.
"""

import logging
import shutil
from datetime import datetime
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from app.config import settings

# Logging directories
LOGS_DIR = settings.LOG_DIR
ARCHIVE_DIR = LOGS_DIR / "archive"
LOG_FILE = LOGS_DIR / "fossil_pie.log"

# Log format
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers kept at WARNING
NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "asyncio",
    "multipart",
    "python_multipart",
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "fastapi",
    "starlette",
]


class ArchivingRotatingFileHandler(TimedRotatingFileHandler):
    """
    Rotates the log at midnight and moves the finished file into an archive folder
    as ``<stem>_<date>[_n].log`` instead of keeping numbered backups beside it.
    """

    def __init__(self, filename: str, archive_dir: Path, **kwargs):
        self.archive_dir = archive_dir
        super().__init__(filename, when="midnight", interval=1, backupCount=0, **kwargs)

    def archive_path_for(self, stem: str) -> Path:
        """Return a free archive path for today's rollover of ``stem``."""
        day = datetime.now().strftime("%Y-%m-%d")
        candidate = self.archive_dir / f"{stem}_{day}.log"
        counter = 1
        while candidate.exists():
            candidate = self.archive_dir / f"{stem}_{day}_{counter}.log"
            counter += 1
        return candidate

    def doRollover(self) -> None:
        """Close the stream, archive the current file if it has content, reopen."""
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]

        current_log = Path(self.baseFilename)
        if current_log.exists() and current_log.stat().st_size > 0:
            self.archive_dir.mkdir(parents=True, exist_ok=True)
            target = self.archive_path_for(current_log.stem)
            try:
                shutil.move(str(current_log), str(target))
            except OSError:
                shutil.copy2(str(current_log), str(target))
                current_log.unlink()

        self.stream = self._open()


def setup_logging(
    name: str | None = None,
    level: int | None = None,
) -> logging.Logger:
    """
    Configure and return a logger with the file (and, in DEBUG, console) handlers.

    Args:
        name: Logger name (default: root logger)
        level: Log level (default: DEBUG in dev, INFO in prod)

    Returns:
        Configured logger instance
    """
    if level is None:
        level = logging.DEBUG if settings.DEBUG else logging.INFO

    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    ARCHIVE_DIR.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Already configured
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = ArchivingRotatingFileHandler(
        filename=str(LOG_FILE),
        archive_dir=ARCHIVE_DIR,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if settings.DEBUG:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    silence_noisy_loggers()

    return logger


def silence_noisy_loggers() -> None:
    """
    Set third-party loggers to WARNING and stop them propagating to the root logger.

    Called again from the FastAPI lifespan because uvicorn reconfigures its loggers on startup.
    """
    for noisy_logger_name in NOISY_LOGGERS:
        noisy_logger = logging.getLogger(noisy_logger_name)
        noisy_logger.setLevel(logging.WARNING)
        noisy_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger, making sure the root logger is configured first.

    Usage:
        from app.logging_config import get_logger
        logger = get_logger(__name__)
    """
    setup_logging()
    return logging.getLogger(name)


# Initialize root logger on module import
_root_logger = setup_logging()
