import logging
import os
import sys
from dotenv import load_dotenv


load_dotenv()  # Load environment variables from .env

# Detect if running inside GitHub Actions
GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"

PACKAGE_LOGGER_NAME = "chronoparse"

# The engine is a library: stay quiet unless asked otherwise
LOG_LEVEL = os.getenv("CHRONOPARSE_LOG_LEVEL", "WARNING").upper()

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
if LOG_LEVEL not in VALID_LOG_LEVELS:
    LOG_LEVEL = "WARNING"


class ANSIColors:
    """Options for colors."""

    DEBUG = "\033[36m"    # Cyan
    INFO = "\033[32m"     # Green
    WARNING = "\033[33m"  # Yellow
    ERROR = "\033[31m"    # Red
    CRITICAL = "\033[1;31m"  # Bold Red
    RESET = "\033[0m"


class CustomFormatter(logging.Formatter):
    """Formatter that colors terminal output and annotates GitHub Actions logs."""

    def format(self, record):
        """Perform formatting of record."""
        log_message = super().format(record)

        if GITHUB_ACTIONS:
            if record.levelno == logging.DEBUG:
                return f"::debug::{log_message}"
            elif record.levelno == logging.WARNING:
                return f"::warning::{log_message}"
            elif record.levelno >= logging.ERROR:
                return f"::error::{log_message}"
            return log_message

        log_color = {
            logging.DEBUG: ANSIColors.DEBUG,
            logging.INFO: ANSIColors.INFO,
            logging.WARNING: ANSIColors.WARNING,
            logging.ERROR: ANSIColors.ERROR,
            logging.CRITICAL: ANSIColors.CRITICAL,
        }.get(record.levelno, ANSIColors.RESET)

        return f"{log_color}{log_message}{ANSIColors.RESET}"


def _configure_package_logger() -> logging.Logger:
    """Attach a single stderr handler to the package logger."""
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(CustomFormatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
        package_logger.addHandler(handler)
        package_logger.setLevel(getattr(logging, LOG_LEVEL, logging.WARNING))
    return package_logger


_configure_package_logger()


def set_log_level(level: str) -> None:
    """Change the package log level at runtime (e.g. from config or CLI)."""
    level = level.upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}")
    logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(getattr(logging, level))


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module, nested under the package logger."""
    if name == PACKAGE_LOGGER_NAME or name.startswith(PACKAGE_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER_NAME}.{name.split('.')[-1]}")
