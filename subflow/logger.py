import logging
import re
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from subflow.config import settings
from subflow.utils.run_id import get_run_id

custom_theme = Theme(
    {
        "info": "dim cyan",
        "warning": "magenta",
        "error": "bold red",
        "plugin": "bold yellow",
        "node": "bold blue",
        "engine": "bold green",
    }
)

console = Console(theme=custom_theme)

ROOT_LOGGER_NAME = "subflow"


class CompactFilter(logging.Filter):
    """Filters log messages to shorten UUIDs and float numbers for technical density."""

    # Regex for UUID (standard 8-4-4-4-12 format)
    UUID_PATTERN = re.compile(
        r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.I
    )
    # Regex for long floats (4+ decimal places)
    FLOAT_PATTERN = re.compile(r"(\d+\.\d{4,})")

    def filter(self, record):
        if not isinstance(record.msg, str):
            return True

        msg = record.msg.replace("subflow.workflows.engine.", "engine.")

        # Prefix with the short run id so nested plugin logs line up
        run_id = get_run_id()
        if run_id:
            msg = f"[{run_id[:8]}] {msg}"

        # a1e9166a-15f5-4ccf-b2ff-a6a92c37e645 -> a1e9..
        def shorten_uuid(match):
            return f"{match.group(0)[:4]}.."

        # 0.012413125... -> 0.012
        def shorten_float(match):
            return f"{float(match.group(0)):.3f}"

        msg = self.UUID_PATTERN.sub(shorten_uuid, msg)
        msg = self.FLOAT_PATTERN.sub(shorten_float, msg)

        record.msg = msg
        return True


def setup_logger(log_level: Optional[str] = None) -> logging.Logger:
    """
    Configures the package logger using Rich for readable output.

    Module loggers (``logging.getLogger(__name__)``) are children of the
    ``subflow`` logger, so they all go through the same handler.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    logger.setLevel(level)

    # Avoid duplicate handlers
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        rich_handler = RichHandler(
            console=console,
            rich_tracebacks=True,
            markup=False,
            show_path=False,
            show_time=True,
            omit_repeated_times=True,
            keywords=["plugin", "node", "engine", "DEBUG", "INFO", "WARNING", "ERROR"],
        )
        rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        rich_handler.addFilter(CompactFilter())
        logger.addHandler(rich_handler)

    return logger


logger = logging.getLogger(ROOT_LOGGER_NAME)
