"""Utility functions and helpers.

Usage:
    from dormant.utils import setup_logging, resolve_log_dir

    log_dir = resolve_log_dir(config.log_dir)
    setup_logging(debug_mode=True, log_level="DEBUG", log_dir=log_dir)
"""

from dormant.utils.logging_config import setup_logging, resolve_log_dir

__all__ = [
    "setup_logging",
    "resolve_log_dir",
]
