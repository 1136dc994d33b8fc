from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from tasksync.config import SETTINGS, PROJECT_ROOT, Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(settings: Settings = SETTINGS, level: str | None = None) -> None:
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    log_dir = Path(settings.log_dir)
    if not log_dir.is_absolute():
        log_dir = PROJECT_ROOT / log_dir
    file_error: OSError | None = None
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_dir / "tasksync.log", maxBytes=2_000_000, backupCount=3)
    except OSError as exc:
        file_error = exc
    else:
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=(level or settings.log_level).upper(), handlers=handlers, force=True)
    # alembic reports every migration step at INFO on each start
    logging.getLogger("alembic").setLevel(logging.WARNING)
    if file_error is not None:
        logging.getLogger(__name__).warning("File logging disabled: %s", file_error)
