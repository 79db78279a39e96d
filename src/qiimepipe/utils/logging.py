"""Diagnostic logging for qiime-pipe.

Everything logs under the ``qiimepipe`` namespace. This trace is for the
operator sitting at the terminal; which steps ran and how they ended is
recorded separately in the step journal next to the output directory.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

APP_LOGGER = "qiimepipe"

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# A whole run of QIIME scripts rarely logs more than a few MB
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 3

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def level_from_name(name: Optional[str], default: int = logging.WARNING) -> int:
    """Map a config level name such as 'info' to a logging level."""
    if not name:
        return default
    return LEVELS.get(str(name).upper(), default)


def level_from_verbosity(verbose: int) -> int:
    """Map a -v count to a logging level."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(log_file: Path) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS)
    # The file always gets the full trace, whatever the console shows
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(level: int = logging.WARNING, log_file: Optional[Path] = None) -> None:
    """(Re)configure the ``qiimepipe`` logger.

    Safe to call more than once: the CLI configures logging from ``-v``
    first and again once a config file has supplied ``runtime.log_level``.
    An unwritable log file is reported on the console and otherwise ignored.
    """
    logging.getLogger().setLevel(logging.WARNING)

    app_logger = logging.getLogger(APP_LOGGER)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    app_logger.setLevel(logging.DEBUG if log_file else level)
    app_logger.addHandler(_console_handler(level))
    app_logger.propagate = False

    if log_file:
        try:
            app_logger.addHandler(_file_handler(Path(log_file)))
        except OSError as exc:
            app_logger.warning(f"Cannot write log file {log_file}: {exc}")


def get_logger(name: str) -> logging.Logger:
    """Return a child of the ``qiimepipe`` logger."""
    return logging.getLogger(APP_LOGGER).getChild(name)


class LogTemplates:
    """Message templates shared by the step loop and the command runner."""

    STEP_START = "Starting step: {step_name} (#{step_number}/{total})"
    STEP_SUCCESS = "Completed step: {step_name} in {duration:.1f}s"
    STEP_FAILURE = "Failed at step: {step_name} - {error}"

    COMMAND_RUNNING = "Running: {command}"
    COMMAND_SKIPPED = "Running: {command} ... SKIPPING"
    COMMAND_OK = "Running: {command} ... OK"
    COMMAND_FAIL = "Running: {command} ... FAIL (exit status {returncode})"
