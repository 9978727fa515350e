"""Runtime settings for dmops.

Values are read from the environment (prefix DMOPS_) or a local .env file.
"""

from __future__ import annotations

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dmops.core.schema import DEFAULT_SYSTEM_SCHEMAS


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DMOPS_",
        env_file=".env",
        extra="ignore",
        env_parse_none_str="None",
    )

    # SQLAlchemy URL of the target database, e.g. dm+dmPython://user:pw@host:5236
    url: str | None = None

    # Comma-separated schemas protected on top of the engine-maintained ones.
    extra_system_schemas: str = ""
    min_engine_version: str = "8.0"

    poll_interval_seconds: float = 1.0
    # None (DMOPS_CONVERGENCE_MAX_ATTEMPTS=None) disables the ceiling.
    convergence_max_attempts: int | None = 600

    # Pre-passes that are inactive unless enabled; each is still skipped with a
    # warning when the engine lacks the feature.
    flashback_cleanup: bool = False
    locator_cleanup: bool = False
    purge_recyclebin: bool = False

    # Password for users created by `create_schema`.
    schema_password: SecretStr | None = None

    @property
    def system_schema_names(self) -> frozenset[str]:
        extra = (s.strip() for s in self.extra_system_schemas.split(","))
        return DEFAULT_SYSTEM_SCHEMAS | frozenset(s for s in extra if s)

    @field_validator("poll_interval_seconds")
    @classmethod
    def _positive_interval(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("poll_interval_seconds must be > 0")
        return value

    @field_validator("convergence_max_attempts")
    @classmethod
    def _positive_attempts(cls, value: int | None) -> int | None:
        if value is not None and value < 1:
            raise ValueError("convergence_max_attempts must be >= 1, or None for no limit")
        return value


def get_settings(**overrides) -> Settings:
    """Build settings from the environment, applying explicit overrides."""
    return Settings(**overrides)
