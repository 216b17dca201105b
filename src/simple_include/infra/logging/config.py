from __future__ import annotations

"""
Logging Configuration Model.

Maps the CLI diagnostics flags (--debug, -v, --log-file) to the settings
consumed by configure_logging().
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

_LEVEL_MAP: Dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


@dataclass(frozen=True)
class LoggingConfig:
    """
    Attributes:
        level: Minimum severity written to every handler.
        console: Emit records on stderr (stdout is reserved for reports).
        log_file: Optional rotating log file.
        max_bytes: Rollover size of the log file.
        backup_count: Rotated files kept next to it.
    """
    level: str = "WARNING"
    console: bool = True
    log_file: Optional[str] = None

    max_bytes: int = 1024 * 1024
    backup_count: int = 2

    console_fmt: str = "%(levelname)s | %(message)s"
    file_fmt: str = "%(asctime)s | %(levelname)s | %(threadName)s | %(name)s | %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"

    @classmethod
    def from_flags(cls, debug: bool, verbose: bool, log_file: Optional[str] = None) -> "LoggingConfig":
        """
        Quiet by default, INFO with -v so per-file progress is visible, DEBUG
        with --debug (classification and splice details).
        """
        if debug:
            level = "DEBUG"
        elif verbose:
            level = "INFO"
        else:
            level = "WARNING"
        return cls(level=level, console=True, log_file=log_file)
