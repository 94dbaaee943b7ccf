"""Logging configuration"""

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

CONSOLE_THEME = Theme(
    {
        "logging.level.info": "green",
        "logging.level.warning": "yellow",
        "logging.level.error": "red bold",
        "logging.level.debug": "dim",
        "banner": "bold cyan",
        "banner.dim": "dim cyan",
        "notice": "green",
        "failure": "red bold",
    }
)

_console: Console | None = None


def get_console() -> Console:
    """Get the shared Console instance."""
    global _console
    if _console is None:
        _console = Console(theme=CONSOLE_THEME)
    return _console


def setup_logging(
    debug: bool = False,
    log_dir: str = "./logs",
    level: str = "INFO",
) -> None:
    """Configure logging.

    Args:
        debug: Enable debug output and the debug log file
        log_dir: Directory for the debug log file
        level: Console level when not in debug mode
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = RichHandler(
        console=get_console(),
        show_time=True,
        show_path=debug,
        rich_tracebacks=True,
        tracebacks_show_locals=debug,
        show_level=True,
        omit_repeated_times=True,
        markup=False,
    )
    console_handler.setLevel(logging.DEBUG if debug else getattr(logging, level, logging.INFO))
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    # debug log file only in debug mode
    if debug:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        debug_log_file = log_path / f"portfolio_briefing_debug_{timestamp}.log"

        debug_handler = logging.FileHandler(debug_log_file, encoding="utf-8")
        debug_handler.setLevel(logging.DEBUG)
        debug_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s")
        )
        root_logger.addHandler(debug_handler)
        logging.getLogger(__name__).debug(f"Debug log: {debug_log_file}")

    _suppress_noisy_loggers()


def _suppress_noisy_loggers() -> None:
    """Lower noisy third-party loggers to WARNING."""
    noisy_loggers = [
        "asyncio",
        "aiohttp",
        "aiohttp.access",
        "aiohttp.client",
        "sqlalchemy",
        "sqlalchemy.engine",
        "apscheduler",
        "apscheduler.scheduler",
        "tzlocal",
    ]

    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)
