"""
Selection context logger.

Provides logging interface for selection context with automatic [select] prefix.
All selection modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from viralnexus.contexts.selection.tokenizer import DEFAULT_TOKENIZER
from viralnexus.utils.logger import start_session_log

CONTEXT_PREFIX = "[select]"


def setup_selection_logger(log_dir: Path, config=None, verbose: bool = False) -> Path:
    """
    Setup logger for selection context.

    Starts a session log whose header records the active scoring and
    tokenizer settings.

    Args:
        log_dir: Directory for this selection session
        config: Optional SelectorConfig recorded in the session header
        verbose: Echo DEBUG traces to the console as well as the log file

    Returns:
        Path to log file

    Example:
        from viralnexus.contexts.selection.logger import setup_selection_logger, _log_info

        log_file = setup_selection_logger(log_dir, config=config)
        _log_info("Selecting previews...")
    """
    settings = {}
    if config is not None:
        settings["Threshold"] = config.threshold
        settings["Tie epsilon"] = config.tie_epsilon
        settings["Weights"] = config.weights.as_dict()
        settings["Resolution policy"] = config.resolution.mode

    tokenizer = DEFAULT_TOKENIZER.get_config_dict()
    settings["Tokenizer"] = (
        f"min length {tokenizer['min_token_length']}, {len(tokenizer['stopwords'])} stopwords"
    )

    return start_session_log("select", log_dir, settings=settings, verbose=verbose)


# Wrapper functions with automatic [select] prefix


def _log_info(message: str) -> None:
    """Log info message with [select] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [select] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [select] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [select] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level selection logging helpers


def log_selection_summary(total: int, reason_counts: dict, elapsed_time: float) -> None:
    """Log the outcome of a batch selection run."""
    _log_success(f"Selected previews for {total} records ({elapsed_time:.2f}s)")
    for reason, count in sorted(reason_counts.items(), key=lambda kv: (-kv[1], kv[0])):
        _log_info(f"  {reason}: {count}")
