from __future__ import annotations


class UploadError(Exception):
    """Base class for failures that abort an upload attempt."""

    code = "upload_failed"


class InitFailure(UploadError):
    code = "init_failed"


class PartUploadFailure(UploadError):
    code = "part_upload_failed"

    def __init__(self, part_index: int, reason: str):
        super().__init__(f"Part {part_index} upload failed: {reason}")
        self.part_index = part_index


class FinalizeFailure(UploadError):
    code = "finalize_failed"


class SourceReadFailure(UploadError):
    code = "source_read_failed"


class UploadCancelled(UploadError):
    code = "cancelled"

    def __init__(self, message: str = "Upload cancelled"):
        super().__init__(message)
