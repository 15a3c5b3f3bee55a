"""Data models for vupload using Pydantic."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PartSpec(BaseModel):
    """One contiguous byte range of the source file, uploaded independently.

    ``index`` is the 0-based position in the plan and the authoritative
    ordering key for receipts.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(ge=0)
    offset_start: int = Field(ge=0)
    offset_end: int = Field(ge=0)
    size_bytes: int = Field(ge=0)

    @model_validator(mode="after")
    def check_range(self) -> "PartSpec":
        if self.offset_end - self.offset_start != self.size_bytes:
            raise ValueError("size_bytes must equal offset_end - offset_start")
        return self

    @property
    def part_number(self) -> int:
        """1-based part number used on the wire."""
        return self.index + 1


class TransferSession(BaseModel):
    """Server-side multi-part session returned by the init call."""

    model_config = ConfigDict(frozen=True)

    upload_id: str
    destinations: tuple[str, ...]


class PartReceipt(BaseModel):
    """Completion receipt for a single uploaded part."""

    model_config = ConfigDict(frozen=True)

    part_number: int = Field(ge=1)
    entity_tag: str | None = None


class SessionMetadata(BaseModel):
    """Caller-supplied description of the upload, forwarded to init and complete."""

    container_id: str = Field(min_length=1)
    file_name: str | None = None
    content_type: str | None = None


class UploadPhase(str, Enum):
    PREPARING = "preparing"
    UPLOADING = "uploading"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressSnapshot(BaseModel):
    """Point-in-time view of an upload attempt, handed to progress callbacks."""

    model_config = ConfigDict(frozen=True)

    total_bytes: int = 0
    uploaded_bytes: int = 0
    percentage: int = Field(default=0, ge=0, le=100)
    current_part_count: int = 0
    total_part_count: int = 0
    phase: UploadPhase = UploadPhase.PREPARING

    @classmethod
    def build(
        cls,
        phase: UploadPhase,
        total_bytes: int = 0,
        uploaded_bytes: int = 0,
        current_part_count: int = 0,
        total_part_count: int = 0,
    ) -> "ProgressSnapshot":
        """Create a snapshot, deriving the rounded percentage.

        An empty file counts as 100% once its single part is done.
        """
        if total_bytes > 0:
            # Halves round up
            percentage = (uploaded_bytes * 200 + total_bytes) // (2 * total_bytes)
        elif total_part_count and current_part_count >= total_part_count:
            percentage = 100
        else:
            percentage = 0
        return cls(
            total_bytes=total_bytes,
            uploaded_bytes=uploaded_bytes,
            percentage=min(percentage, 100),
            current_part_count=current_part_count,
            total_part_count=total_part_count,
            phase=phase,
        )


class UploadResult(BaseModel):
    """Terminal outcome of one upload attempt."""

    success: bool
    remote_url: str | None = None
    asset_id: str | None = None
    error_message: str | None = None
    error_code: str | None = None
