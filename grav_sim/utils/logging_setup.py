"""Logging set-up for the program.

Records are written to a log file in the format
``[LEVEL] [YYYY-mm-dd HH:MM:SS] [logger] message``.
"""

import logging
from typing import Optional

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LOG_LEVELS = {
    "disabled": None,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

LOG_MODES = ("append", "overwrite")

LOG_FORMAT = "[%(levelname)s] [%(asctime)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    log_file: Optional[str] = "grav.log",
    log_level: str = "info",
    log_mode: str = "append",
) -> logging.Logger:
    """Configure the ``grav_sim`` logger hierarchy.

    Args:
        log_file: File to write to; ``None`` logs to stderr instead
        log_level: One of ``LOG_LEVELS``
        log_mode: ``"append"`` to the file or ``"overwrite"`` it

    Returns:
        The configured package logger
    """
    if log_level not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {log_level}. Available: {list(LOG_LEVELS)}")
    if log_mode not in LOG_MODES:
        raise ValueError(f"Unknown log mode: {log_mode}. Available: {list(LOG_MODES)}")

    root = logging.getLogger("grav_sim")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    level = LOG_LEVELS[log_level]
    if level is None:
        root.addHandler(logging.NullHandler())
        root.setLevel(logging.CRITICAL + 1)
        root.propagate = False
        return root

    if log_file:
        handler = logging.FileHandler(log_file, mode="a" if log_mode == "append" else "w", encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
    root.debug("Initialized logging subsystem.")
    return root
