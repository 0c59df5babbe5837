"""
Logging for the trial balance engine.

All loggers live under the ``trial_balance`` namespace and share one console
handler.  The audit trail (row issues, classification decisions, statement
totals) is written through these loggers, so the level chosen here decides
how much of it is visible.

Several pipelines may be built in one process (the web app and ad hoc
scripts, for instance).  ``configure_logging`` therefore installs handlers
once and later calls only adjust the level or add a log file.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union


ROOT_LOGGER_NAME = "trial_balance"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Marks handlers installed here, so reconfiguration never stacks duplicates
_HANDLER_TAG = "_trial_balance_handler"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level {level!r}")
    return resolved


def configure_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """Configure the ``trial_balance`` logger and return it.

    Parameters
    ----------
    level:
        Minimum severity to emit, as a number or a name such as ``"DEBUG"``.
    log_file:
        Also append records to this file.  Each path is attached once.

    Raises
    ------
    ValueError
        If *level* is a name ``logging`` does not know.
    """
    numeric = _resolve_level(level)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(numeric)
    root.propagate = False

    ours = [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if all(isinstance(h, logging.FileHandler) for h in ours):
        console = logging.StreamHandler(sys.stdout)
        setattr(console, _HANDLER_TAG, True)
        console.setFormatter(formatter)
        root.addHandler(console)
        ours.append(console)

    if log_file:
        target = str(Path(log_file).resolve())
        if not any(getattr(h, "baseFilename", None) == target for h in ours):
            fh = logging.FileHandler(target, encoding="utf-8")
            setattr(fh, _HANDLER_TAG, True)
            fh.setFormatter(formatter)
            root.addHandler(fh)
            ours.append(fh)

    for handler in ours:
        handler.setLevel(numeric)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under the ``trial_balance`` namespace."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
