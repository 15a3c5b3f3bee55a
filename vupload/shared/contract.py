"""Wire models for the upload control-plane endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

INIT_PATH = "/upload/init"
COMPLETE_PATH = "/upload/complete"
SIMPLE_UPLOAD_PATH = "/upload/video"
DEFAULT_FILE_NAME = "video.mp4"


class InitUploadRequest(BaseModel):
    """Body of ``POST /upload/init``."""

    model_config = ConfigDict(populate_by_name=True)

    container_id: str = Field(alias="containerId")
    file_name: str = Field(alias="fileName")
    file_size_bytes: int = Field(alias="fileSizeBytes", ge=0)
    total_parts: int = Field(alias="totalParts", ge=1)
    content_type: str = Field(alias="contentType")


class InitUploadResponse(BaseModel):
    """Body returned by ``POST /upload/init``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    upload_id: str = Field(alias="uploadId")
    part_upload_urls: list[str] = Field(alias="partUploadUrls")

    @field_validator("upload_id")
    @classmethod
    def validate_upload_id(cls, value: str) -> str:
        if not value:
            raise ValueError("uploadId must not be empty")
        return value


class CompletedPart(BaseModel):
    """One entry of the ``parts`` list sent on completion."""

    model_config = ConfigDict(populate_by_name=True)

    part_number: int = Field(alias="partNumber", ge=1)
    entity_tag: str | None = Field(default=None, alias="entityTag")


class CompleteUploadRequest(BaseModel):
    """Body of ``POST /upload/complete``."""

    model_config = ConfigDict(populate_by_name=True)

    upload_id: str = Field(alias="uploadId")
    container_id: str = Field(alias="containerId")
    file_name: str = Field(alias="fileName")
    parts: list[CompletedPart]

    @field_validator("parts")
    @classmethod
    def validate_parts_sorted(cls, value: list[CompletedPart]) -> list[CompletedPart]:
        numbers = [part.part_number for part in value]
        if numbers != sorted(set(numbers)):
            raise ValueError("parts must be unique and sorted by partNumber")
        return value


class UploadedAsset(BaseModel):
    """Body returned by the complete call and by the single-request upload."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str
    asset_id: str | None = Field(default=None, alias="assetId")
