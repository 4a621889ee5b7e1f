"""Logging configuration for invoice extraction.

Each CLI run logs to its own timestamped file; the console only shows INFO
and above unless ``verbose`` is set. HTTP and SDK loggers are capped at
WARNING.
"""
import logging
import logging.config
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

PACKAGE_LOGGER = "invoice_extract"

QUIET_LOGGERS = ("google_genai", "httpx", "httpcore", "urllib3")


def run_log_filename(started_at: Optional[datetime] = None) -> str:
    """Log file name for one run, e.g. ``invoice_extract_20240517_093000.log``."""
    started_at = started_at or datetime.now()
    return f"{PACKAGE_LOGGER}_{started_at:%Y%m%d_%H%M%S}.log"


def get_logging_config(log_file_path: Path, console_level: str = "INFO") -> Dict[str, Any]:
    """Build the dictConfig for one log file."""
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(levelname)s - %(message)s"
            },
            "detailed": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": console_level,
                "formatter": "standard",
                "stream": "ext://sys.stdout"
            },
            "file": {
                "class": "logging.FileHandler",
                "level": "DEBUG",
                "formatter": "detailed",
                "filename": str(log_file_path),
                "mode": "a",
                "encoding": "utf-8"
            }
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console"]
        },
        "loggers": {
            PACKAGE_LOGGER: {
                "level": "DEBUG",
                "handlers": ["console", "file"],
                "propagate": False
            },
            **{name: {"level": "WARNING"} for name in QUIET_LOGGERS},
        }
    }


def setup_logging(logs_folder: Path, log_filename: Optional[str] = None, verbose: bool = False) -> Path:
    """Configure logging for a run and return the log file path.

    Args:
        logs_folder: Folder for the log file, created if missing
        log_filename: Fixed file name; defaults to a per-run timestamped name
        verbose: Show DEBUG records on the console too
    """
    logs_folder = Path(logs_folder)
    logs_folder.mkdir(parents=True, exist_ok=True)
    log_file_path = logs_folder / (log_filename or run_log_filename())

    # Clear any existing handlers to prevent duplicate logs
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    logging.config.dictConfig(get_logging_config(log_file_path, "DEBUG" if verbose else "INFO"))
    return log_file_path
