"""Configuration management for vupload using pydantic-settings."""

from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

MIB = 1024 * 1024
GIB = 1024 * MIB


class Settings(BaseSettings):
    """Upload client settings.

    Settings can be configured via environment variables:
    - VUPLOAD_DEBUG: Enable debug mode (verbose logging)
    - VUPLOAD_API_URL: Base URL of the upload control plane
    - VUPLOAD_ACCESS_TOKEN: Bearer token for the init/complete calls
    - VUPLOAD_CHUNK_SIZE: Part size in bytes for chunked uploads
    - VUPLOAD_PARALLEL_UPLOADS: Maximum number of parts in flight at once
    - VUPLOAD_UPLOAD_TIMEOUT: Per-request timeout in seconds
    - VUPLOAD_MAX_FILE_SIZE: Largest file accepted for upload, in bytes
    - VUPLOAD_CONTENT_TYPE: Content type announced in the init call
    - VUPLOAD_SIMPLE_UPLOAD_THRESHOLD: Files up to this size use a single request
    """

    debug: bool = Field(default=False, alias="VUPLOAD_DEBUG")
    api_url: str = Field(
        default="http://localhost:8000",
        alias="VUPLOAD_API_URL",
    )
    access_token: str = Field(
        default="",
        alias="VUPLOAD_ACCESS_TOKEN",
        description="Bearer credential attached to control-plane calls (never to part PUTs)"
    )
    chunk_size_bytes: int = Field(
        default=5 * MIB,
        alias="VUPLOAD_CHUNK_SIZE",
        description="Part size in bytes"
    )
    parallel_uploads: int = Field(
        default=3,
        alias="VUPLOAD_PARALLEL_UPLOADS",
        description="Maximum number of part uploads in flight per batch"
    )
    upload_timeout: int = Field(
        default=120,
        alias="VUPLOAD_UPLOAD_TIMEOUT",
        description="Timeout for a single HTTP request in seconds"
    )
    max_file_size_bytes: int = Field(
        default=2 * GIB,
        alias="VUPLOAD_MAX_FILE_SIZE",
        description="Files larger than this are rejected before the init call"
    )
    content_type: str = Field(
        default="video/mp4",
        alias="VUPLOAD_CONTENT_TYPE",
    )
    simple_upload_threshold: Optional[int] = Field(
        default=None,
        alias="VUPLOAD_SIMPLE_UPLOAD_THRESHOLD",
        description="Files up to this many bytes are sent in one request; defaults to the chunk size"
    )

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("chunk_size_bytes", "parallel_uploads", "upload_timeout", "max_file_size_bytes")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return v

    @model_validator(mode="after")
    def _default_simple_threshold(self) -> "Settings":
        """Fall back to one chunk when no simple-upload threshold is given."""
        if self.simple_upload_threshold is None:
            self.simple_upload_threshold = self.chunk_size_bytes
        return self

    model_config = {
        "env_prefix": "",
        "populate_by_name": True,
        "extra": "ignore",
        "env_file": ["vupload.env", ".env"],
        "env_file_encoding": "utf-8",
    }


# Global settings instance
settings = Settings()
