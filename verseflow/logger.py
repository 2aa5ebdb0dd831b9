"""
VerseFlow - Logging
Short rich-formatted notices on the console, full detail in the log file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional
import logging

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "prefix": "dim white",
})

console = Console(theme=THEME)

logger = logging.getLogger("verseflow")


def setup_logging(log_file_path: Optional[Path], level: str = "INFO") -> logging.Logger:
    """
    Attach a file handler to the ``verseflow`` logger.

    Args:
        log_file_path: Path to the diagnostic log file, or None for no file
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.handlers.clear()

    if log_file_path is not None:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                "[%(asctime)s] %(levelname)s %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)
    else:
        logger.addHandler(logging.NullHandler())

    return logger


def notice(message: str, level: str = "info") -> None:
    """Show a short user-facing notice and mirror it to the log."""
    style = level if level in ("info", "warning", "error", "success") else "info"
    console.print(f"[prefix]VerseFlow:[/prefix] {escape(message)}", style=style)

    log_level = logging.INFO if level == "success" else getattr(logging, level.upper(), logging.INFO)
    logger.log(log_level, message)


def log_info(message: str) -> None:
    notice(message, "info")


def log_success(message: str) -> None:
    notice(message, "success")


def log_error(message: str) -> None:
    notice(message, "error")


def log_warning(message: str) -> None:
    notice(message, "warning")
