"""Command execution utilities with verbose logging support.

This module provides utilities for executing external commands (gcloud,
kubectl, mysqldump) with optional verbose output for debugging. Three
styles of execution are supported:

- captured: output is collected and returned (``run_command``)
- interactive: the child inherits the terminal (``run_interactive``)
- background: the child keeps running while we continue (``start_background``)
"""

import shlex
import subprocess
import time
from typing import IO, Dict, List, Optional

import structlog
from rich.console import Console

logger = structlog.get_logger(__name__)

# Global flag for verbose command output
_VERBOSE_COMMANDS = False
_console = Console(stderr=True)

_MAX_ECHO_LINES = 50


def set_verbose_commands(enabled: bool) -> None:
    """Enable or disable verbose command output.

    Args:
        enabled: True to enable verbose output for all external commands
    """
    global _VERBOSE_COMMANDS
    _VERBOSE_COMMANDS = enabled


def is_verbose_commands() -> bool:
    """Check if verbose command output is enabled."""
    return _VERBOSE_COMMANDS


def format_command(cmd: List[str]) -> str:
    """Render a command as a copy-pasteable shell string."""
    return " ".join(shlex.quote(part) for part in cmd)


def _echo_stream(label: str, style: str, output: str) -> None:
    _console.print(f"[bold {style}]  {label}:[/bold {style}]")
    lines = output.split("\n")
    if len(lines) > _MAX_ECHO_LINES:
        half = _MAX_ECHO_LINES // 2
        for line in lines[:half]:
            _console.print(f"    {line}", markup=False, highlight=False)
        _console.print(f"    [dim]... ({len(lines) - _MAX_ECHO_LINES} lines omitted) ...[/dim]")
        lines = lines[-half:]
    for line in lines:
        _console.print(f"    {line}", markup=False, highlight=False)


def _echo_command(cmd: List[str]) -> None:
    if _VERBOSE_COMMANDS:
        _console.print("\n[bold cyan]→ Executing command:[/bold cyan]")
        _console.print(f"  {format_command(cmd)}", style="dim", markup=False, highlight=False)


def run_command(
    cmd: List[str],
    capture_output: bool = True,
    text: bool = True,
    check: bool = True,
    timeout: Optional[float] = None,
    env: Optional[Dict[str, str]] = None,
    **kwargs
) -> subprocess.CompletedProcess:
    """Run an external command with optional verbose output.

    This is a wrapper around subprocess.run that logs command execution
    when verbose mode is enabled.

    Args:
        cmd: Command and arguments as list
        capture_output: Whether to capture stdout/stderr
        text: Whether to return output as text (vs bytes)
        check: Whether to raise exception on non-zero exit
        timeout: Command timeout in seconds
        env: Environment variables
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess instance with command results

    Raises:
        subprocess.CalledProcessError: If command fails and check=True
        subprocess.TimeoutExpired: If command times out
    """
    _echo_command(cmd)
    logger.debug("command.start", command=format_command(cmd))

    start_time = time.time()
    result = subprocess.run(
        cmd,
        capture_output=capture_output,
        text=text,
        check=False,  # We'll handle check ourselves
        timeout=timeout,
        env=env,
        **kwargs
    )
    duration = time.time() - start_time
    logger.debug("command.end", command=cmd[0], exit_code=result.returncode, duration=round(duration, 3))

    if _VERBOSE_COMMANDS:
        _console.print(f"  [dim]Exit code: {result.returncode}[/dim]")
        if capture_output and result.stdout:
            _echo_stream("stdout", "green", result.stdout)
        if capture_output and result.stderr:
            _echo_stream("stderr", "red", result.stderr)
        _console.print()

    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode,
            cmd,
            output=result.stdout,
            stderr=result.stderr
        )

    return result


def run_interactive(cmd: List[str], env: Optional[Dict[str, str]] = None) -> int:
    """Run a command attached to the current terminal and return its exit code."""
    _echo_command(cmd)
    logger.debug("command.interactive", command=format_command(cmd))
    return subprocess.run(cmd, env=env, check=False).returncode


def start_background(
    cmd: List[str],
    env: Optional[Dict[str, str]] = None,
    stdout: Optional[IO] = None,
) -> subprocess.Popen:
    """Start a command without waiting for it to finish.

    The caller owns the returned process and is responsible for stopping it.
    """
    _echo_command(cmd)
    logger.debug("command.background", command=format_command(cmd))
    return subprocess.Popen(cmd, env=env, stdout=stdout)
