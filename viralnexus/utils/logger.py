"""
Session logging for viralnexus command-line runs.

A session sends every record (DEBUG and up) to <log_dir>/<context>.log and
echoes INFO and up to stderr, so stdout stays free for JSON results. Each
session log opens with a header naming the run and the settings it used.
Context-specific wrappers live in contexts/{context}/logger.py.
"""

import sys
from pathlib import Path
from typing import Any, Mapping, Optional

from loguru import logger

from viralnexus import __version__

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "<level>{level: <7}</level> | <level>{message}</level>"
HEADER_RULE = "-" * 72


def start_session_log(
    context_name: str,
    log_dir: Path,
    settings: Optional[Mapping[str, Any]] = None,
    verbose: bool = False,
) -> Path:
    """
    Route loguru output to a session log file and stderr.

    Args:
        context_name: Context identifier, also the log file stem (e.g., "select")
        log_dir: Directory for this session; created if missing
        settings: Settings recorded in the session header, in order
        verbose: Echo DEBUG records to stderr as well

    Returns:
        Path to log file
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level="DEBUG" if verbose else "INFO",
        colorize=True,
    )

    write_session_header(context_name, settings)
    return log_file


def write_session_header(context_name: str, settings: Optional[Mapping[str, Any]] = None) -> None:
    """Log which run produced this session and the settings it ran with."""
    logger.info(HEADER_RULE)
    logger.info(f"viralnexus {__version__} {context_name} session")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    for key, value in (settings or {}).items():
        logger.info(f"{key}: {value}")
    logger.info(HEADER_RULE)
