"""HTTP client for the upload control plane and presigned part destinations."""

import logging
from pathlib import Path
from typing import Optional, Sequence

import requests
from pydantic import ValidationError

from vupload.client.errors import (
    FinalizeFailure,
    InitFailure,
    PartUploadFailure,
    SourceReadFailure,
    UploadError,
)
from vupload.shared.config import settings
from vupload.shared.contract import (
    COMPLETE_PATH,
    INIT_PATH,
    SIMPLE_UPLOAD_PATH,
    CompletedPart,
    CompleteUploadRequest,
    InitUploadRequest,
    InitUploadResponse,
    UploadedAsset,
)
from vupload.shared.models import PartReceipt, TransferSession

logger = logging.getLogger(__name__)

_ERROR_BODY_LIMIT = 200


def _describe_failure(response: requests.Response) -> str:
    body = (response.text or "").strip()
    if len(body) > _ERROR_BODY_LIMIT:
        body = body[:_ERROR_BODY_LIMIT] + "..."
    return f"HTTP {response.status_code}" + (f" - {body}" if body else "")


def _is_success(response: requests.Response) -> bool:
    return 200 <= response.status_code < 300


def normalize_entity_tag(raw: Optional[str]) -> Optional[str]:
    """Strip the quotes servers wrap around ETag values."""
    if raw is None:
        return None
    tag = raw.replace('"', "").strip()
    return tag or None


class UploadAPI:
    """Client for the init / complete endpoints and the per-part PUTs.

    The bearer token goes to the control plane only; part destinations are
    pre-authorized URLs and receive no credentials.

    Attributes:
        api_url: Base URL for the control-plane endpoints.
        access_token: Bearer token for init, complete and single-request uploads.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.api_url = (api_url or settings.api_url).rstrip("/")
        self.access_token = settings.access_token if access_token is None else access_token
        self.timeout = timeout or settings.upload_timeout

    def _auth_headers(self) -> dict[str, str]:
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    def init_upload(
        self,
        container_id: str,
        file_name: str,
        file_size_bytes: int,
        total_parts: int,
        content_type: str,
    ) -> TransferSession:
        """Open a multi-part session and fetch one destination per part.

        Raises:
            InitFailure: On transport errors, non-2xx responses, malformed
                bodies, or a destination count that differs from total_parts.
        """
        body = InitUploadRequest(
            container_id=container_id,
            file_name=file_name,
            file_size_bytes=file_size_bytes,
            total_parts=total_parts,
            content_type=content_type,
        )
        try:
            response = requests.post(
                f"{self.api_url}{INIT_PATH}",
                json=body.model_dump(by_alias=True),
                headers=self._auth_headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise InitFailure(f"Failed to init upload: {e}") from e

        if not _is_success(response):
            raise InitFailure(f"Failed to init upload: {_describe_failure(response)}")

        try:
            parsed = InitUploadResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise InitFailure(f"Failed to init upload: malformed response ({e})") from e

        if len(parsed.part_upload_urls) != total_parts:
            raise InitFailure(
                f"Failed to init upload: expected {total_parts} part URLs, "
                f"got {len(parsed.part_upload_urls)}"
            )
        return TransferSession(
            upload_id=parsed.upload_id, destinations=tuple(parsed.part_upload_urls)
        )

    def put_part(self, part_index: int, url: str, data: bytes) -> Optional[str]:
        """Upload one part to its presigned destination.

        Returns:
            The part's entity tag, or None when the response carries no ETag.

        Raises:
            PartUploadFailure: On transport errors or non-2xx responses.
        """
        headers = {
            "Content-Type": "application/octet-stream",
            "Content-Length": str(len(data)),
        }
        try:
            response = requests.put(url, data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise PartUploadFailure(part_index, str(e)) from e

        if not _is_success(response):
            raise PartUploadFailure(part_index, _describe_failure(response))

        etag = normalize_entity_tag(response.headers.get("ETag"))
        if etag is None:
            logger.warning("Part %s uploaded without an ETag", part_index)
        return etag

    def complete_upload(
        self,
        session: TransferSession,
        container_id: str,
        file_name: str,
        receipts: Sequence[PartReceipt],
    ) -> UploadedAsset:
        """Commit the multi-part upload.

        Args:
            receipts: Part receipts, already sorted by part number.

        Raises:
            FinalizeFailure: On transport errors, non-2xx or malformed responses.
        """
        body = CompleteUploadRequest(
            upload_id=session.upload_id,
            container_id=container_id,
            file_name=file_name,
            parts=[
                CompletedPart(part_number=r.part_number, entity_tag=r.entity_tag)
                for r in receipts
            ],
        )
        try:
            response = requests.post(
                f"{self.api_url}{COMPLETE_PATH}",
                json=body.model_dump(by_alias=True),
                headers=self._auth_headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise FinalizeFailure(f"Failed to complete upload: {e}") from e

        if not _is_success(response):
            raise FinalizeFailure(f"Failed to complete upload: {_describe_failure(response)}")

        try:
            return UploadedAsset.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise FinalizeFailure(f"Failed to complete upload: malformed response ({e})") from e

    def upload_file(
        self, file_path: Path, container_id: str, content_type: str
    ) -> UploadedAsset:
        """Send a whole file in one multipart/form-data request.

        Raises:
            SourceReadFailure: If the file cannot be opened.
            UploadError: On transport errors, non-2xx or malformed responses.
        """
        try:
            fh = open(file_path, "rb")
        except OSError as e:
            raise SourceReadFailure(f"Cannot open {file_path}: {e}") from e

        with fh:
            try:
                response = requests.post(
                    f"{self.api_url}{SIMPLE_UPLOAD_PATH}",
                    files={"file": (Path(file_path).name, fh, content_type)},
                    data={"containerId": container_id},
                    headers=self._auth_headers(),
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                raise UploadError(f"Upload failed: {e}") from e

        if not _is_success(response):
            raise UploadError(f"Upload failed: {_describe_failure(response)}")
        try:
            return UploadedAsset.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise UploadError(f"Upload failed: malformed response ({e})") from e
