"""Package-level logging helpers.

All loggers are children of the ``solc_toolchain`` logger, so applications can route or silence
the package with a single handler.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO, Union

from solc_toolchain.env import get_solc_log_level

_ROOT_LOGGER_NAME = "solc_toolchain"
_DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_handler: Optional[logging.Handler] = None


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the package namespace.

    Parameters
    ----------
    name : Optional[str]
        Component name, e.g. ``"CompilerDownloader"``. ``None`` returns the package logger.

    Returns
    -------
    logging.Logger
        The logger ``solc_toolchain.<name>``.
    """
    if not name:
        return logging.getLogger(_ROOT_LOGGER_NAME)
    return logging.getLogger(f"{_ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    level: Optional[Union[int, str]] = None,
    fmt: str = _DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Calling this again replaces the previously installed handler instead of adding another one.

    Parameters
    ----------
    level : Optional[Union[int, str]]
        Log level. Defaults to ``SOLC_LOG_LEVEL`` or ``WARNING``.
    fmt : str
        Format string for the handler.
    stream : Optional[TextIO]
        Output stream. Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    global _handler

    if level is None:
        level = get_solc_log_level()
    if isinstance(level, str):
        level = level.upper()

    logger = get_logger()
    if _handler is not None:
        logger.removeHandler(_handler)

    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(_handler)
    logger.setLevel(level)
    return logger
