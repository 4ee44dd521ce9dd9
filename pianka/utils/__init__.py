"""
Utility functions and helpers.

Common utilities for command execution, logging setup and signal handling.
"""

from pianka.utils.command import (
    format_command,
    is_verbose_commands,
    run_command,
    run_interactive,
    set_verbose_commands,
    start_background,
)
from pianka.utils.logging import configure_logging
from pianka.utils.signals import terminate_on_signals

__all__ = [
    "format_command",
    "is_verbose_commands",
    "run_command",
    "run_interactive",
    "set_verbose_commands",
    "start_background",
    "configure_logging",
    "terminate_on_signals",
]
