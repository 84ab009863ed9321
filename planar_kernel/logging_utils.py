"""
Logging helpers for the planar_kernel package.

All modules obtain their logger through `get_logger(__name__)`, which places them
under the 'planar_kernel' namespace. The package itself only installs a
NullHandler; applications (or tests) that want to see the DEBUG traces of the
triangulation engines call `configure_logging()`, which attaches a single stdout
handler to the package logger and leaves the process root logger untouched.
"""
from __future__ import annotations

import logging
import sys

PACKAGE_LOGGER_NAME = 'planar_kernel'

_FORMAT = logging.Formatter('%(levelname)s %(name)s: %(message)s')


def _to_level(level: str | int | None, default: int = logging.INFO) -> int:
    if level is None:
        return default
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(level: str | int = 'INFO', mute_external: bool = True) -> logging.Logger:
    """
    Attaches a stdout handler to the package logger and sets its level.

    Calling this more than once only updates the level; a second stream handler
    is never added. NullHandlers installed at import time are removed so records
    are not swallowed.

    Args:
        level (str | int, optional): Logging level name or number. Defaults to 'INFO'.
        mute_external (bool, optional): When the level is DEBUG, keep matplotlib's
                                        own loggers at INFO. Defaults to True.

    Returns:
        logging.Logger: The configured 'planar_kernel' logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in list(package_logger.handlers):
        if isinstance(handler, logging.NullHandler):
            package_logger.removeHandler(handler)
    if not package_logger.handlers:
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(_FORMAT)
        package_logger.addHandler(handler)
    package_logger.propagate = False

    resolved_level = _to_level(level)
    package_logger.setLevel(resolved_level)
    if mute_external and resolved_level <= logging.DEBUG:
        for noisy in ('matplotlib', 'matplotlib.font_manager'):
            logging.getLogger(noisy).setLevel(logging.INFO)
    return package_logger


def get_logger(name: str, level: str | int | None = None) -> logging.Logger:
    """
    Returns a logger under the 'planar_kernel' namespace.

    Module names that already start with the package name (the usual
    `get_logger(__name__)` call) are used as-is; anything else is nested below
    the package logger. Without an explicit level the logger inherits from its
    parent.
    """
    if name != PACKAGE_LOGGER_NAME and not name.startswith(PACKAGE_LOGGER_NAME + '.'):
        name = f'{PACKAGE_LOGGER_NAME}.{name}'
    log = logging.getLogger(name)
    log.setLevel(_to_level(level) if level is not None else logging.NOTSET)
    return log
