import logging
import logging.handlers
from pathlib import Path
from typing import Optional

LOG_DIR = Path(__file__).parent.parent / "logs"
LOG_FILE_NAME = "draft_engine.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-phase timer chatter; only WARNING and up reach the console unless DEBUG.
_NOISY_LOGGERS = ("src.draft_engine.timeout_policy", "src.draft_engine.reconciler")


class _NoisyLoggerFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.WARNING or not record.name.startswith(_NOISY_LOGGERS)


def _parse_level(log_level: str) -> int:
    return getattr(logging, log_level.upper(), logging.INFO)


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[Path] = None,
    console: bool = True,
) -> None:
    """Configure logging for the draft engine and champion pipeline.

    Writes everything at DEBUG and above to a rotating ``draft_engine.log``
    and mirrors *log_level* and above to the console. Calling it again once
    the root logger has handlers does nothing.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return  # Already configured

    log_dir = Path(log_dir) if log_dir is not None else LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    level = _parse_level(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    root_logger.setLevel(logging.DEBUG)

    # 5MB per file, 3 backups
    file_handler = logging.handlers.RotatingFileHandler(
        log_dir / LOG_FILE_NAME, maxBytes=5 * 1024 * 1024, backupCount=3
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        if level > logging.DEBUG:
            console_handler.addFilter(_NoisyLoggerFilter())
        root_logger.addHandler(console_handler)

    logging.getLogger(__name__).info(
        "Logging initialized (level=%s, file=%s)", log_level, log_dir / LOG_FILE_NAME
    )
