"""
logger - File-backed logging for gitpick commands.
"""

import logging
import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional


def default_log_dir() -> Path:
    # Try /var/log first, fall back to the temp dir
    log_dir = Path("/var/log")
    if not log_dir.exists() or not os.access(log_dir, os.W_OK):
        log_dir = Path(tempfile.gettempdir())
    return log_dir


class GitPickLogger:
    """Simple logger for gitpick operations."""

    def __init__(self, name: str = "gitpick", log_dir: Optional[Path] = None, echo: bool = True):
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.INFO)
        self.echo = echo

        if getattr(self.logger, "_gitpick_configured", False):
            return

        log_dir = Path(log_dir) if log_dir else default_log_dir()
        log_file = log_dir / f"{name}.log"
        error_file = log_dir / f"{name}_errors.log"

        try:
            log_dir.mkdir(parents=True, exist_ok=True)

            fh = logging.FileHandler(log_file)
            fh.setLevel(logging.INFO)

            eh = logging.FileHandler(error_file)
            eh.setLevel(logging.ERROR)

            formatter = logging.Formatter('%(asctime)s - %(message)s',
                                          datefmt='%Y-%m-%d %H:%M:%S')
            fh.setFormatter(formatter)
            eh.setFormatter(formatter)

            self.logger.addHandler(fh)
            self.logger.addHandler(eh)
        except OSError:
            # Unwritable log dir: keep going without file logging
            pass
        self.logger._gitpick_configured = True

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)
        if self.echo:
            print(f"{datetime.now().strftime('%Y-%m-%d %H:%M:%S')} - {message}")

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)
        print(f"Error: {message}", file=sys.stderr)
