"""Configuration for the pod deployer."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pod deployer settings."""

    model_config = SettingsConfigDict(
        env_prefix="POD_DEPLOYER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "INFO"

    # Cluster Settings
    kubeconfig_path: Optional[str] = None
    context: Optional[str] = Field(
        default=None,
        description="Kubeconfig context to use (current context when unset)",
    )
    default_namespace: str = "default"

    # Status polling
    poll_interval_seconds: float = 2.0

    # OpenShift discovery
    route_api_group: str = "route.openshift.io"
    console_config_map: str = "console-public"
    console_config_map_namespace: str = "openshift-config-managed"

    # Container engine
    podman_binary: str = "podman"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
