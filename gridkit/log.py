"""Logging utilities for gridkit.

Idle-state no-ops are logged at debug level instead of raising.
"""

from __future__ import annotations

import logging
import sys


class _LoggerHolder:
    """Holder for the global logger instance."""

    instance: logging.Logger | None = None
    settings_applied: bool = False


def get_logger() -> logging.Logger:
    """Get the gridkit logger instance.

    Returns
    -------
    logging.Logger
        The gridkit logger configured with a stream handler.
    """
    if _LoggerHolder.instance is None:
        logger = logging.getLogger("gridkit")
        logger.setLevel(logging.WARNING)

        # Only add handler if none exists
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(logging.DEBUG)
            formatter = logging.Formatter("%(name)s - %(levelname)s - %(message)s")
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        _LoggerHolder.instance = logger

    return _LoggerHolder.instance


def debug(msg: str) -> None:
    """Log a debug message.

    Parameters
    ----------
    msg : str
        The message to log.
    """
    get_logger().debug(msg)


def info(msg: str) -> None:
    """Log an info message.

    Parameters
    ----------
    msg : str
        The message to log.
    """
    get_logger().info(msg)


def warn(msg: str) -> None:
    """Log a warning message. Never raises exceptions.

    Parameters
    ----------
    msg : str
        The warning message to log.
    """
    get_logger().warning(msg)


def error(msg: str) -> None:
    """Log an error message. Never raises exceptions.

    Parameters
    ----------
    msg : str
        The error message to log.
    """
    get_logger().error(msg)


def set_level(level: int | str) -> None:
    """Set the logging level.

    Parameters
    ----------
    level : int or str
        The logging level (e.g., logging.DEBUG, "DEBUG").
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    get_logger().setLevel(level)


def configure(fmt: str | None = None, level: int | str | None = None) -> None:
    """Apply a format string and/or level to the gridkit logger.

    Parameters
    ----------
    fmt : str or None
        Formatter pattern applied to every attached handler.
    level : int or str or None
        Logger level.
    """
    logger = get_logger()
    if fmt is not None:
        for handler in logger.handlers:
            handler.setFormatter(logging.Formatter(fmt))
    if level is not None:
        set_level(level)


def exception(msg: str) -> None:
    """Log an exception with full traceback.

    Call this from within an except block to log the exception
    message along with the full stack trace.

    Parameters
    ----------
    msg : str
        The error message to log alongside the traceback.
    """
    get_logger().exception(msg)


def log_callback_error(feature: str, action: str, exc: BaseException) -> None:
    """Log a delegate callback failure with standardized format.

    The exception is still re-raised by the caller; this only records it.

    Parameters
    ----------
    feature : str
        The feature whose callback failed (e.g. "editing").
    action : str
        The action that invoked the callback (e.g. "save_changes").
    exc : BaseException
        The exception that was raised.
    """
    get_logger().error(f"Callback error in '{feature}.{action}': {exc!r}")


def enable_debug() -> None:
    """Enable debug mode for verbose engine logging.

    This will show all debug messages including:
    - Ignored idle-state actions (empty history, missing callbacks)
    - Filtered history actions
    - Keyboard routing decisions
    """
    set_level(logging.DEBUG)


def apply_settings(force: bool = False) -> None:
    """Apply the level and format from ``LogSettings`` once per process.

    Parameters
    ----------
    force : bool
        Re-apply even if settings were applied before.
    """
    if _LoggerHolder.settings_applied and not force:
        return
    _LoggerHolder.settings_applied = True

    from .config import get_settings  # pylint: disable=import-outside-toplevel

    settings = get_settings().log
    configure(fmt=settings.format, level=settings.level)
