"""Base fetcher interface for querying external cloud tools.

This module defines the shared error types and the base class for the
fetchers that wrap gcloud and kubectl.
"""

import os
import subprocess
from typing import Dict, List, Optional

import structlog

from pianka.config import Config
from pianka.utils.command import run_command

logger = structlog.get_logger(__name__)


class FetchError(Exception):
    """Base exception for fetch operations."""

    exit_code = 1


class CommandFailedError(FetchError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, cmd: List[str], returncode: int, stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr or ""
        self.exit_code = returncode
        message = f"{cmd[0]} exited with status {returncode}"
        if self.stderr.strip():
            message = f"{message}: {self.stderr.strip()}"
        super().__init__(message)


class ToolNotFoundError(FetchError):
    """Raised when an external binary is not available on PATH."""


class ResourceNotFoundError(FetchError):
    """Raised when the requested cloud resource cannot be found."""


class WorkerNotFoundError(ResourceNotFoundError):
    """Raised when the environment has no running Airflow worker."""


class BaseFetcher:
    """Common plumbing for fetchers that shell out to a CLI.

    Every command runs with the extra environment given at construction
    time layered over the current process environment, so callers can
    point tools at a private KUBECONFIG without touching os.environ.
    """

    def __init__(self, config: Config, env: Optional[Dict[str, str]] = None):
        self.config = config
        self.extra_env = dict(env or {})

    @property
    def env(self) -> Dict[str, str]:
        """Environment passed to every subprocess started by this fetcher."""
        merged = dict(os.environ)
        merged.update(self.extra_env)
        return merged

    def _run(self, cmd: List[str]) -> str:
        """Run a command, capture its output and return stdout.

        Raises:
            ToolNotFoundError: If the binary does not exist
            CommandFailedError: If the command exits with a non-zero status
        """
        try:
            result = run_command(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.config.command_timeout_seconds,
                env=self.env,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(f"{cmd[0]} not found in PATH") from e
        except subprocess.CalledProcessError as e:
            raise CommandFailedError(cmd, e.returncode, e.stderr) from e
        except subprocess.TimeoutExpired as e:
            raise CommandFailedError(
                cmd, 1, f"timed out after {self.config.command_timeout_seconds} seconds"
            ) from e
        return result.stdout
