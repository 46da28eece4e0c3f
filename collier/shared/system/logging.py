"""
Centralized Logger with Rich Console
====================================
Static logger shared by every Collier component.

Usage:
    from collier.shared.system.logging import Logger

    Logger.info("[MINER] Scanning creator ...")
    Logger.success("[STORE] Upserted metadata")
    Logger.warning("[HOLDERS] mint skipped")
    Logger.error("[RESCUE] simulation failed")
    Logger.section("Mine Metadata")
"""

import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.text import Text

from collier.config.settings import Settings

# Per-run session log file, created on first write
_run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
_formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

file_logger = logging.getLogger("Collier")
file_logger.setLevel(logging.DEBUG)
file_logger.propagate = False

_console = Console(stderr=True)


def _ensure_file_handler() -> None:
    if file_logger.handlers:
        return
    os.makedirs(Settings.LOG_DIR, exist_ok=True)
    log_file = os.path.join(Settings.LOG_DIR, f"collier_{_run_id}.log")
    handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=3, encoding='utf-8')
    handler.setFormatter(_formatter)
    file_logger.addHandler(handler)


# =============================================================================
# SOURCE ICONS (for visual scanning)
# =============================================================================

SOURCE_ICONS = {
    "SYSTEM": "🛸",
    "RPC": "📡",
    "LEDGER": "🔗",
    "MINER": "⛏️",
    "HOLDERS": "👛",
    "RESCUE": "🛟",
    "STORE": "📦",
    "WALLET": "🔐",
    "CLI": "📋",
}


# Console style and file level per console level
LEVELS = {
    "INFO": ("cyan", logging.INFO),
    "SUCCESS": ("green bold", logging.INFO),
    "WARNING": ("yellow", logging.WARNING),
    "ERROR": ("red bold", logging.ERROR),
    "DEBUG": ("dim", logging.DEBUG),
    "CRITICAL": ("red bold reverse", logging.CRITICAL),
}


# =============================================================================
# LOGGER CLASS
# =============================================================================

class Logger:
    """
    Centralized logger with Rich console output.

    - Console lines go to stderr so stdout stays clean for listings
    - Every line is also written to the rotating run log
    - A leading [SOURCE] tag picks the icon and the source column
    """

    _silent_mode = False

    @staticmethod
    def _console_enabled() -> bool:
        return not (Logger._silent_mode or Settings.SILENT_MODE)

    @staticmethod
    def _split_source(message: str) -> tuple:
        """'[MINER] text' -> ('MINER', 'text'); untagged messages belong to SYSTEM."""
        text = message.strip()
        if text.startswith("["):
            end = text.find("]")
            if 1 < end < 16:
                return text[1:end].upper(), text[end + 1:].strip()
        return "SYSTEM", message

    @staticmethod
    def _emit(level: str, message: str, console: bool = True, prefix: str = "") -> None:
        source, text = Logger._split_source(message)
        if prefix:
            text = f"{prefix} {text}"
        style, file_level = LEVELS[level]

        if console and Logger._console_enabled():
            now = datetime.now()
            icon = SOURCE_ICONS.get(source, "")
            line = Text()
            line.append(f"{now:%H:%M:%S}.{now.microsecond // 1000:03d} ", style="dim")
            line.append(f"| {level:<8} ", style=style)
            line.append(f"| {source[:10]:<10} | ", style="dim")
            line.append(f"{icon} {text}" if icon else text)
            _console.print(line)

        _ensure_file_handler()
        file_logger.log(file_level, f"[{source}] {text}")

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @staticmethod
    def info(message: str) -> None:
        Logger._emit("INFO", message)

    @staticmethod
    def success(message: str) -> None:
        Logger._emit("SUCCESS", message, prefix="✅")

    @staticmethod
    def warning(message: str) -> None:
        Logger._emit("WARNING", message)

    @staticmethod
    def error(message: str) -> None:
        Logger._emit("ERROR", message)

    @staticmethod
    def debug(message: str) -> None:
        """File only."""
        Logger._emit("DEBUG", message, console=False)

    @staticmethod
    def critical(message: str) -> None:
        Logger._emit("CRITICAL", message, prefix="🛑")

    @staticmethod
    def section(title: str) -> None:
        """Print a section header."""
        if Logger._console_enabled():
            _console.print()
            _console.rule(f"[bold magenta]{title}[/]", style="dim")
        _ensure_file_handler()
        file_logger.info(f"[SYSTEM] === {title} ===")

    @staticmethod
    def set_silent(silent: bool) -> None:
        """Enable/disable console output."""
        Logger._silent_mode = silent
