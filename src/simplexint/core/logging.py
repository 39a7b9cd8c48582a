"""
Unified logging utilities for the simplexint package.

Exports:
    - logger: Global Loguru logger (ready for use/import).
    - setup_logfile: Add file logging with rotation/compression.
    - setup_json_logfile: Add a JSON-format log file for machine parsing.
    - set_console_level: Replace the stderr sink with one at the given level.
"""

import sys

from loguru import logger

__all__ = [
    "logger",
    "setup_logfile",
    "setup_json_logfile",
    "set_console_level",
]

# Library code stays quiet until an application opts in.
logger.disable("simplexint")

# Id of the stderr sink managed by set_console_level; 0 is Loguru's default.
_console_sink_id = 0


def setup_logfile(
    log_path: str,
    rotation: str = "10 MB",
    retention: str = "10 days",
    compression: str = "zip",
    level: str = "INFO",
    colorize: bool = False
) -> int:
    """
    Add a rotating file handler to the global logger.

    Args:
        log_path (str): Path to the log file.
        rotation (str): Size or time string for log rotation.
        retention (str): How long to keep old logs.
        compression (str): Compression method for rotated logs.
        level (str): Logging level (DEBUG, INFO, etc.).
        colorize (bool): Colorize file output (default: False).

    Returns:
        int: The sink id, usable with ``logger.remove``.
    """
    logger.enable("simplexint")
    sink_id = logger.add(
        log_path,
        rotation=rotation,
        retention=retention,
        compression=compression,
        level=level.upper(),
        colorize=colorize,
        backtrace=True,
        diagnose=False,
    )
    logger.info(f"Loguru file logging initialized: {log_path}")
    return sink_id


def setup_json_logfile(log_path: str, **kwargs) -> int:
    """
    Add a JSON-format log file (for machine parsing).
    Args:
        log_path (str): Path to JSON log file.
        **kwargs: Passed to logger.add().
    """
    logger.enable("simplexint")
    sink_id = logger.add(
        log_path,
        serialize=True,
        **kwargs
    )
    logger.info(f"Loguru JSON logging initialized: {log_path}")
    return sink_id


def set_console_level(level: str = "INFO") -> int:
    """
    Route package logs to stderr at ``level``.

    Only the previous console sink (initially Loguru's default stderr sink) is
    replaced; file sinks added with ``setup_logfile`` keep running.
    """
    global _console_sink_id
    if _console_sink_id is not None:
        try:
            logger.remove(_console_sink_id)
        except ValueError:
            # Already removed by the caller.
            pass
    logger.enable("simplexint")
    _console_sink_id = logger.add(sys.stderr, level=level.upper())
    return _console_sink_id
