"""
Utils Package
Display and logging utilities
"""

from .display import (
    console,
    show_banner,
    show_quick_help,
    show_info_table,
    create_progress_context
)
from .logger import setup_logging, handle_errors, log_exception, debug_print

__all__ = [
    'console',
    'show_banner',
    'show_quick_help',
    'show_info_table',
    'create_progress_context',
    'setup_logging',
    'handle_errors',
    'log_exception',
    'debug_print'
]
