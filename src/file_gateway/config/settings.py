# src/file_gateway/config/settings.py
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import List, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

DEFAULT_USER_ID = "baf609b4-cac8-4b48-b663-e149d00edc46"
DEFAULT_MAX_UPLOAD_BYTES = 500 * 1024


class Settings(BaseSettings):
    """
    Single source of truth for all application settings.

    Configuration precedence:
    1. Keyword arguments passed to ``Settings(...)`` (highest priority)
    2. Environment variables
    3. .env file (if exists)
    4. Default values in this class (lowest priority)

    Usage:
        from file_gateway.config.settings import get_settings
        settings = get_settings()
        root = settings.upload_root
    """

    # Server
    port: int = Field(
        default=3000,
        description="Port the HTTP server listens on"
    )

    host: str = Field(
        default="0.0.0.0",
        description="Address the HTTP server binds to"
    )

    # Storage
    upload_dir: str = Field(
        default="uploads",
        description="Root directory for stored files, relative to the working directory"
    )

    base_url: Optional[str] = Field(
        default=None,
        description="Prefix for externally visible file URLs (defaults to http://localhost:{port})"
    )

    max_upload_bytes: int = Field(
        default=DEFAULT_MAX_UPLOAD_BYTES,
        gt=0,
        description="Largest accepted upload in bytes"
    )

    # Identity
    default_user_id: str = Field(
        default=DEFAULT_USER_ID,
        description="User identifier every request is resolved to"
    )

    # CORS
    cors_allow_origins: List[str] = Field(
        default_factory=list,
        description="Origins allowed by the CORS middleware; empty disables it"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    @field_validator("upload_dir")
    @classmethod
    def validate_upload_dir(cls, v: str) -> str:
        v = v.strip()
        # the directory is also a URL prefix, so "" "." and "/" are unusable
        if PurePosixPath(v.replace("\\", "/")).as_posix().strip("/") in ("", "."):
            raise ValueError(f"Invalid upload_dir: {v!r}")
        return v

    @field_validator("default_user_id")
    @classmethod
    def validate_user_id(cls, v: str) -> str:
        """The user id names a directory, so it must be a single path segment."""
        v = v.strip()
        if v in (".", "..") or "/" in v or "\\" in v or "\x00" in v:
            raise ValueError(f"Invalid default_user_id: {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.upper()
        valid_levels = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]
        if level not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return level

    @model_validator(mode="after")
    def set_base_url_from_port(self) -> Self:
        """Derive the base URL from the port when it is not given explicitly."""
        if not self.base_url:
            self.base_url = f"http://localhost:{self.port}"
        self.base_url = self.base_url.rstrip("/")
        return self

    @property
    def upload_root(self) -> Path:
        """Absolute path of the upload root."""
        return Path(self.upload_dir).resolve()

    @property
    def upload_url_path(self) -> str:
        """URL path the upload root is served under, e.g. ``/uploads``."""
        return "/" + PurePosixPath(self.upload_dir.replace("\\", "/")).as_posix().strip("/")

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one Settings instance per process.
    """
    return Settings()
