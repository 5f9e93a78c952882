"""Configuration models for Krishiva CLI.

The whole configuration is a single pydantic model persisted as JSON by
ConfigService. Values can be addressed with dotted keys such as
``sync.interval`` or ``api.endpoint``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class APIConfig(BaseModel):
    """Remote backend configuration."""

    endpoint: str = Field(default="http://localhost:8000/api")
    timeout: int = Field(default=30)
    retry: int = Field(default=3)

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("endpoint cannot be empty")
        return v.strip().rstrip("/")


class SyncConfig(BaseModel):
    """Sync configuration."""

    auto: bool = Field(default=True)
    interval: int = Field(default=300, ge=1, description="Seconds between periodic passes")
    probe_interval: int = Field(
        default=30, ge=1, description="Seconds between connectivity probes"
    )
    strategy: Literal["remote_wins", "local_wins"] = Field(default="remote_wins")


class StorageConfig(BaseModel):
    """Local storage locations. None means the platform data directory."""

    db_path: str | None = None
    session_file: str | None = None


class ProfileConfig(BaseModel):
    """Profile editing behaviour."""

    propagate_name_edits: bool = Field(
        default=False,
        description="Also write profile name edits to the local store and sync them",
    )


class UIConfig(BaseModel):
    """UI configuration."""

    timezone: str | None = Field(default=None, description="None means system timezone")


class AppConfig(BaseModel):
    """Main Krishiva configuration."""

    api: APIConfig = Field(default_factory=APIConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    profile: ProfileConfig = Field(default_factory=ProfileConfig)
    ui: UIConfig = Field(default_factory=UIConfig)

    def get_value(self, key: str) -> Any:
        """Read a value by dotted key (e.g. ``sync.interval``)."""
        section_name, field_name = _split_key(key)
        section = getattr(self, section_name, None)
        if not isinstance(section, BaseModel) or field_name not in type(section).model_fields:
            raise ValueError(f"Unknown config key: {key}")
        return getattr(section, field_name)

    def with_value(self, key: str, value: Any) -> AppConfig:
        """Return a validated copy with one dotted key changed."""
        self.get_value(key)
        section_name, field_name = _split_key(key)
        data = self.model_dump()
        if isinstance(value, str) and value.lower() in ("none", "null", ""):
            value = None
        data[section_name][field_name] = value
        return AppConfig.model_validate(data)


def _split_key(key: str) -> tuple[str, str]:
    parts = key.split(".")
    if len(parts) != 2:
        raise ValueError(f"Config key must look like 'section.field', got: {key}")
    return parts[0], parts[1]
