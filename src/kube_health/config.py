"""Configuration and environment for kube-health."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Scan settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="KUBE_HEALTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    # Kubernetes
    kubeconfig: Path | None = Field(
        default=None,
        description="Path to kubeconfig; uses KUBECONFIG env or default location if unset",
    )
    context: str | None = Field(default=None, description="Kubernetes context to use")
    namespace: str | None = Field(
        default=None,
        description="Namespace for pods and events; all namespaces if unset",
    )

    # Scan
    recent_events: int = Field(default=5, ge=0, description="Number of trailing events to report")
    scan_timeout: float | None = Field(
        default=30.0,
        ge=0,
        description="Deadline for the whole scan in seconds; 0 or unset means no deadline",
    )
    concurrent: bool = Field(
        default=True,
        description="Fetch nodes, pods and events concurrently",
    )

    # Output
    output_format: Literal["text", "json"] = Field(default="text", description="Report format")

    @field_validator("scan_timeout")
    @classmethod
    def _zero_disables_deadline(cls, v: float | None) -> float | None:
        return v or None


def get_settings() -> Settings:
    """Return validated settings instance."""
    return Settings()
