"""
Configuration management for Pianka.

Two kinds of configuration live here:

- ``Config``: tool settings loaded with precedence
  1. Environment variables (highest priority)
  2. .env files (./.env, ~/.pianka/.env)
  3. Project config (./.pianka/config.yaml)
  4. User config (~/.pianka/config.yaml)
  5. System config (/etc/pianka/config.yaml)
- ``ComposerConfig``: the Composer environment a command operates on,
  remembered between runs through the configuration cache.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource, PydanticBaseSettingsSource

DEFAULT_CONFIG_DIR = Path.home() / ".pianka"


class Config(BaseSettings):
    """Tool settings for Pianka with flat structure."""

    model_config = SettingsConfigDict(
        # Load from .env files in order of precedence (lowest to highest)
        env_file=[
            ".env",
            str(DEFAULT_CONFIG_DIR / ".env"),
        ],
        # Load from YAML files in order of precedence (lowest to highest)
        yaml_file=[
            "/etc/pianka/config.yaml",
            str(DEFAULT_CONFIG_DIR / "config.yaml"),
            str(Path.cwd() / ".pianka" / "config.yaml"),
        ],
        env_prefix="PIANKA_",
        case_sensitive=False,
        extra="ignore",
        env_file_encoding="utf-8",
    )

    # =================================================================
    # Local state
    # =================================================================
    cache_dir: Path = Field(
        default=DEFAULT_CONFIG_DIR / "cache",
        description="Directory holding the remembered environment name and location",
    )

    # =================================================================
    # External tools
    # =================================================================
    gcloud_binary: str = Field(default="gcloud", description="gcloud executable")
    kubectl_binary: str = Field(default="kubectl", description="kubectl executable")
    mysqldump_binary: str = Field(default="mysqldump", description="Local mysqldump executable")
    composer_release_track: str = Field(
        default="beta",
        description="gcloud release track for composer commands (empty for GA)",
    )
    command_timeout_seconds: int = Field(
        default=120, ge=1, description="Timeout for commands whose output is captured"
    )

    # =================================================================
    # Cluster layout
    # =================================================================
    namespace_marker: str = Field(
        default="composer", description="Substring identifying the Composer namespace"
    )
    worker_marker: str = Field(
        default="airflow-worker", description="Substring identifying worker pods"
    )
    worker_container: str = Field(
        default="airflow-worker", description="Container used for kubectl exec"
    )
    sql_alchemy_conn_variable: str = Field(
        default="AIRFLOW__CORE__SQL_ALCHEMY_CONN",
        description="Worker environment variable holding the database URL",
    )

    # =================================================================
    # Database tunnel
    # =================================================================
    sqlproxy_namespace: str = Field(default="default", description="Namespace of the SQL proxy")
    sqlproxy_target: str = Field(
        default="deployment/airflow-sqlproxy", description="Port-forward target of the SQL proxy"
    )
    sqlproxy_port: int = Field(default=3306, ge=1, le=65535, description="Port exposed by the SQL proxy")
    tunnel_port: int = Field(default=3306, ge=1, le=65535, description="Local port of the tunnel")
    tunnel_grace_seconds: float = Field(
        default=5.0, ge=0, description="Wait after starting a background tunnel"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML support."""
        yaml_settings = YamlConfigSettingsSource(settings_cls)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_settings,
            file_secret_settings,
        )


@dataclass
class ComposerConfig:
    """The Composer environment targeted by the current invocation."""

    composer_name: str = ""
    composer_location: str = ""
    verbose: bool = False

    @property
    def is_complete(self) -> bool:
        return bool(self.composer_name) and bool(self.composer_location)


def load_config() -> Config:
    """
    Load configuration from all sources with proper precedence.

    Examples:
        Environment variable override:
        # export PIANKA_TUNNEL_PORT=13306
        >>> config = load_config()
        >>> print(config.tunnel_port)
        13306
    """
    return Config()
