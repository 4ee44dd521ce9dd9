"""
Unit tests for configuration management.

Tests defaults, environment variable overrides, YAML loading and the
Composer target record.
"""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from pianka.config import ComposerConfig, Config, load_config


class TestConfigDefaults:
    """Test default configuration values."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = Config()

        assert config.gcloud_binary == "gcloud"
        assert config.kubectl_binary == "kubectl"
        assert config.composer_release_track == "beta"
        assert config.namespace_marker == "composer"
        assert config.worker_marker == "airflow-worker"
        assert config.worker_container == "airflow-worker"
        assert config.sql_alchemy_conn_variable == "AIRFLOW__CORE__SQL_ALCHEMY_CONN"
        assert config.sqlproxy_namespace == "default"
        assert config.sqlproxy_target == "deployment/airflow-sqlproxy"
        assert config.sqlproxy_port == 3306
        assert config.tunnel_port == 3306
        assert config.tunnel_grace_seconds == 5.0

    def test_default_cache_dir_is_under_home(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert Config().cache_dir == Path.home() / ".pianka" / "cache"

    def test_load_config_returns_config(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        assert isinstance(load_config(), Config)


class TestConfigOverrides:
    """Test configuration sources."""

    def test_environment_override(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("PIANKA_TUNNEL_PORT", "13306")
        monkeypatch.setenv("PIANKA_CACHE_DIR", str(tmp_path / "c"))

        config = load_config()

        assert config.tunnel_port == 13306
        assert config.cache_dir == tmp_path / "c"

    def test_project_yaml(self, monkeypatch, tmp_path):
        """Test loading ./.pianka/config.yaml from the working directory."""
        monkeypatch.chdir(tmp_path)
        project_dir = tmp_path / ".pianka"
        project_dir.mkdir()
        (project_dir / "config.yaml").write_text(yaml.safe_dump({"kubectl_binary": "/opt/kubectl"}))

        # The project path is computed when the class is defined, so point
        # the model at the file explicitly.
        monkeypatch.setitem(Config.model_config, "yaml_file", [str(project_dir / "config.yaml")])

        assert Config().kubectl_binary == "/opt/kubectl"

    def test_environment_beats_yaml(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.safe_dump({"worker_marker": "from-yaml"}))
        monkeypatch.setitem(Config.model_config, "yaml_file", [str(config_file)])
        monkeypatch.setenv("PIANKA_WORKER_MARKER", "from-env")

        assert Config().worker_marker == "from-env"

    def test_invalid_port_rejected(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ValidationError):
            Config(tunnel_port=70000)


class TestComposerConfig:
    """Test the Composer target record."""

    def test_complete(self):
        assert ComposerConfig("env-1", "europe-west1").is_complete

    @pytest.mark.parametrize(
        "name,location",
        [("", ""), ("env-1", ""), ("", "europe-west1")],
    )
    def test_incomplete(self, name, location):
        assert not ComposerConfig(name, location).is_complete

    def test_verbose_defaults_to_false(self):
        assert ComposerConfig("env-1", "europe-west1").verbose is False
