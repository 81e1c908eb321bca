# src/config/logging_config.py

"""Per-run logging for warehouse_scraper.

Every scrape run writes ``logs/run_<YYYYMMDD_HHMMSS>.log``. All
``warehouse_scraper.*`` loggers propagate into it, so rejected tiles,
price changes and skipped pages can be audited after the run without
scraping again. Only warnings reach the terminal unless ``verbose``.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

PROJECT_LOGGER = "warehouse_scraper"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Library loggers that flood DEBUG output with per-request noise
_QUIET_LOGGERS = ("asyncio", "urllib3", "curl_cffi")


def _existing_log_file(root_logger: logging.Logger) -> Path | None:
    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def setup_logging(
    logs_dir: Path | None = None, verbose: bool = False,
) -> Path:
    """Attach the run's file and console handlers to the project logger.

    Calling it again in the same process keeps the existing handlers and
    returns the log file already in use.

    Returns:
        The :class:`~pathlib.Path` of this run's log file.
    """
    root_logger = logging.getLogger(PROJECT_LOGGER)
    root_logger.setLevel(logging.DEBUG)

    current = _existing_log_file(root_logger)
    if current is not None:
        return current

    directory: Path = logs_dir or Settings.LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = directory / f"run_{stamp}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info("Logging initialised, log file: %s", log_file)
    return log_file
