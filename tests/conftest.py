"""Shared fixtures for the Pianka test suite."""

from unittest.mock import Mock

import pytest
import structlog

from pianka.config import ComposerConfig, Config
from pianka.utils.command import set_verbose_commands


@pytest.fixture(autouse=True)
def reset_global_state():
    """Undo logging and verbose-command changes made by a test."""
    yield
    set_verbose_commands(False)
    structlog.reset_defaults()


@pytest.fixture
def config(tmp_path):
    """Settings isolated from the user's environment and config files."""
    return Config(cache_dir=tmp_path / "cache", tunnel_grace_seconds=0)


@pytest.fixture
def target():
    return ComposerConfig(composer_name="env-1", composer_location="europe-west1")


@pytest.fixture
def completed():
    """Factory for subprocess.run result doubles."""

    def _completed(stdout="", returncode=0, stderr=""):
        result = Mock()
        result.stdout = stdout
        result.stderr = stderr
        result.returncode = returncode
        return result

    return _completed
