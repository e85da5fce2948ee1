"""
Configuration — typed, validated settings.

Two layers:
  - AppSettings (pydantic-settings): environment-level choices that rarely
    change between runs (which decoder, openssl binary, temp directory,
    backup suffix, log level). Loaded from CERT_BUNDLE_* environment
    variables, falling back to a .env file in the working directory.
  - EditOptions (pydantic BaseModel, frozen): the operator's choices for
    one invocation, built once from the parsed command line and passed
    explicitly to every component that needs them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cert_bundle.domain.models import SelectionCriteria


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables (CERT_BUNDLE_DECODER, CERT_BUNDLE_LOG_LEVEL, ...)
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="CERT_BUNDLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    decoder: Literal["openssl", "cryptography"] = Field(
        default="openssl",
        description="Certificate decoder: the openssl CLI or in-process cryptography",
    )
    openssl_binary: str = Field(default="openssl", min_length=1)
    temp_dir: Path | None = Field(
        default=None,
        description="Directory for per-certificate temporary files (system default if unset)",
    )
    backup_suffix: str = Field(default="-BACKUP", min_length=1)
    log_level: str = Field(default="WARNING")

    @field_validator("backup_suffix")
    @classmethod
    def validate_backup_suffix(cls, value: str) -> str:
        """A suffix containing a path separator would move the backup elsewhere."""
        if "/" in value or "\0" in value:
            raise ValueError(f"backup_suffix must not contain '/' or NUL: {value!r}")
        return value


class EditOptions(BaseModel):
    """
    Operator choices for one run of the delete command.

    `position` must be positive; a position beyond the bundle's last
    certificate is accepted and selects nothing.
    """

    model_config = ConfigDict(frozen=True)

    position: int | None = Field(default=None, ge=1)
    issuer: str | None = None
    subject: str | None = None
    expired: bool = False
    force: bool = False
    test_mode: bool = False
    debug: bool = False
    full_path: bool = False
    verbose: bool = False

    @field_validator("issuer", "subject")
    @classmethod
    def blank_is_unset(cls, value: str | None) -> str | None:
        """An empty match string means the criterion was not given."""
        return value or None

    @property
    def criteria(self) -> SelectionCriteria:
        return SelectionCriteria(
            position=self.position,
            issuer=self.issuer,
            subject=self.subject,
            include_expired=self.expired,
        )
