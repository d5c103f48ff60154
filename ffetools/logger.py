"""
Logging for ffetools.

Entry points log the resolved equalizer parameters at INFO; per-epoch costs,
signal padding and kernel compilation go to DEBUG. Output is colorized by
level when stdout is a terminal and plain otherwise, so benchmark logs
redirected to a file stay readable.
"""

import logging
import sys


class ColorFormatter(logging.Formatter):
    """Formatter that wraps each record in the ANSI color of its level."""

    CYAN = "\x1b[36;20m"
    GREEN = "\x1b[32;20m"
    YELLOW = "\x1b[33;20m"
    RED = "\x1b[31;20m"
    BOLD_RED = "\x1b[31;1m"
    RESET = "\x1b[0m"
    FORMAT = "%(asctime)s [%(levelname)s] %(name)s.%(module)s: %(message)s"
    DATEFMT = "%H:%M:%S"

    LEVEL_COLORS = {
        logging.DEBUG: CYAN,
        logging.INFO: GREEN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD_RED,
    }

    def __init__(self, use_color: bool = True):
        super().__init__(self.FORMAT, datefmt=self.DATEFMT)
        self.use_color = use_color
        self._colored = {
            level: logging.Formatter(
                f"{color}{self.FORMAT}{self.RESET}", datefmt=self.DATEFMT
            )
            for level, color in self.LEVEL_COLORS.items()
        }

    def format(self, record: logging.LogRecord) -> str:
        if self.use_color and record.levelno in self._colored:
            return self._colored[record.levelno].format(record)
        return super().format(record)


def get_logger(name: str = "ffetools") -> logging.Logger:
    """
    Returns the package logger, attaching a stdout handler on first use.

    Child names such as ``"ffetools.bench"`` share the package handler
    through propagation and get none of their own.
    """
    logger = logging.getLogger(name)

    if name == "ffetools" and not logger.handlers:
        logger.setLevel(logging.INFO)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColorFormatter(use_color=sys.stdout.isatty()))
        logger.addHandler(handler)

    return logger


logger = get_logger()


def set_log_level(level):
    """
    Sets the level of the ffetools logger.

    ``"DEBUG"`` shows the per-epoch training costs.

    Args:
        level: logging.DEBUG, logging.INFO, etc. or a name such as "DEBUG".

    Raises:
        ValueError: If a level name is not known to the logging module.
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level}")
        level = resolved
    logger.setLevel(level)
