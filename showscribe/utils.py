import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Tuple

from rich.logging import RichHandler

from .constants import APP_NAME
from .core.console import console as console_manager

NOISY_LOGGERS = ("urllib3", "requests", "httpx", "httpcore", "openai", "anthropic", "google_genai")
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def default_log_dir() -> Path:
    xdg_state = os.environ.get("XDG_STATE_HOME")
    if xdg_state:
        return Path(xdg_state) / APP_NAME / "logs"
    return Path.home() / ".local" / "state" / APP_NAME / "logs"


def _levels(output_mode: str, debug: bool) -> Tuple[int, int]:
    """(console level, file level). The file always gets at least INFO."""
    if output_mode == "silent":
        return logging.CRITICAL, logging.DEBUG
    if debug or output_mode == "verbose":
        return logging.DEBUG, logging.DEBUG
    return logging.INFO, logging.INFO


def _rich_handler(level: int) -> RichHandler:
    handler = RichHandler(
        console=console_manager.console,
        rich_tracebacks=True,
        markup=False,
        show_time=True,
        show_path=False,
    )
    handler.setLevel(level)
    return handler


def _file_handler(log_file: Path, level: int) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(log_file, when="midnight", interval=1, backupCount=30)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(log_dir: Optional[str] = None, debug: bool = False, output_mode: str = "standard") -> logging.Logger:
    """Attach console and rotating-file handlers to the ``ShowScribe`` logger.

    Args:
        log_dir: Directory for ``app.log``. Defaults to ``$XDG_STATE_HOME/showscribe/logs``.
        debug: Log DEBUG records to both handlers.
        output_mode: 'standard', 'verbose' or 'silent'. 'silent' keeps the console quiet.

    Calling it again only adjusts the levels of the handlers already attached.
    """
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    console_level, file_level = _levels(output_mode, debug)
    logger = logging.getLogger("ShowScribe")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    if logger.handlers:
        for handler in logger.handlers:
            if isinstance(handler, TimedRotatingFileHandler):
                handler.setLevel(file_level)
            elif isinstance(handler, RichHandler):
                handler.setLevel(console_level)
        return logger

    if output_mode != "silent":
        logger.addHandler(_rich_handler(console_level))

    log_file = Path(log_dir or default_log_dir()) / "app.log"
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_file_handler(log_file, file_level))
    except OSError as e:
        # No file handler yet, so report through the console directly
        console_manager.print(f"Warning: could not create log file at {log_file}: {e}", style="warning")

    return logger
