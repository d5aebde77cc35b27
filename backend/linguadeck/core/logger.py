import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import LoggingConfig, get_config

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


class QuietPathFilter(logging.Filter):
    """Drops uvicorn access lines for endpoints the review screens poll."""

    def __init__(self, paths: list[str]) -> None:
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not any(path in message for path in self.paths)


def setup_logging(settings: LoggingConfig | None = None) -> None:
    settings = settings or get_config().logging
    log_file = Path(settings.file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    file_handler = RotatingFileHandler(
        log_file, maxBytes=settings.max_bytes, backupCount=settings.backup_count, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.level.upper(), logging.INFO))
    for handler in root_logger.handlers:
        if isinstance(handler, RotatingFileHandler):
            handler.close()
    root_logger.handlers = [file_handler, console_handler]

    # httpx logs every completion request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    access_logger = logging.getLogger("uvicorn.access")
    for existing in [f for f in access_logger.filters if isinstance(f, QuietPathFilter)]:
        access_logger.removeFilter(existing)
    if settings.quiet_paths:
        access_logger.addFilter(QuietPathFilter(settings.quiet_paths))
