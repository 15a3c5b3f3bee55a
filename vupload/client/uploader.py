"""High-level upload entry points for vupload.

``upload_video`` picks a strategy by file size: small files go in a single
multipart request, larger ones through the chunked parallel coordinator.
"""

import logging
import threading
from os import PathLike
from pathlib import Path
from typing import Optional, Union

from vupload.client.api import UploadAPI
from vupload.client.coordinator import ChunkedUploadCoordinator, ProgressCallback
from vupload.client.errors import UploadError
from vupload.client.source import FileSource
from vupload.shared.config import settings
from vupload.shared.models import ProgressSnapshot, SessionMetadata, UploadPhase, UploadResult

logger = logging.getLogger(__name__)


def _notify(on_progress: Optional[ProgressCallback], snapshot: ProgressSnapshot) -> None:
    if on_progress is None:
        return
    try:
        on_progress(snapshot)
    except Exception:
        logger.exception("Progress callback raised; ignoring")


def upload_video_with_chunks(
    video_path: Union[str, PathLike],
    container_id: str,
    access_token: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
    chunk_size_bytes: Optional[int] = None,
    parallelism: Optional[int] = None,
    cancel_event: Optional[threading.Event] = None,
    api: Optional[UploadAPI] = None,
) -> UploadResult:
    """Upload a video in parallel chunks.

    Args:
        video_path: Local file to upload.
        container_id: Project/container the asset belongs to.
        access_token: Bearer token; defaults to settings.access_token.
        on_progress: Called with a ProgressSnapshot on every state change.
        chunk_size_bytes: Part size; defaults to settings.chunk_size_bytes.
        parallelism: Parts per batch; defaults to settings.parallel_uploads.
        cancel_event: Set it to stop scheduling new parts.
        api: Preconfigured UploadAPI (overrides access_token).

    Returns:
        The attempt's UploadResult.
    """
    coordinator = ChunkedUploadCoordinator(
        api=api or UploadAPI(access_token=access_token),
        chunk_size_bytes=chunk_size_bytes,
        parallelism=parallelism,
        cancel_event=cancel_event,
    )
    return coordinator.upload(
        FileSource(video_path),
        SessionMetadata(container_id=container_id),
        on_progress=on_progress,
    )


def upload_video_simple(
    video_path: Union[str, PathLike],
    container_id: str,
    access_token: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
    api: Optional[UploadAPI] = None,
) -> UploadResult:
    """Upload a video in one multipart/form-data request.

    Returns:
        The attempt's UploadResult.
    """
    api = api or UploadAPI(access_token=access_token)
    source = FileSource(video_path)
    total = 0
    try:
        total = source.size()
        _notify(
            on_progress,
            ProgressSnapshot.build(UploadPhase.UPLOADING, total_bytes=total, total_part_count=1),
        )
        asset = api.upload_file(Path(video_path), container_id, settings.content_type)
    except UploadError as e:
        logger.error("Simple upload failed | file=%s | %s", video_path, e)
        _notify(
            on_progress,
            ProgressSnapshot.build(UploadPhase.FAILED, total_bytes=total, total_part_count=1),
        )
        return UploadResult(success=False, error_message=str(e), error_code=e.code)

    _notify(
        on_progress,
        ProgressSnapshot.build(
            UploadPhase.COMPLETED,
            total_bytes=total,
            uploaded_bytes=total,
            current_part_count=1,
            total_part_count=1,
        ),
    )
    logger.info("Simple upload complete | file=%s | url=%s", video_path, asset.url)
    return UploadResult(success=True, remote_url=asset.url, asset_id=asset.asset_id)


def upload_video(
    video_path: Union[str, PathLike],
    container_id: str,
    access_token: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[threading.Event] = None,
    api: Optional[UploadAPI] = None,
) -> UploadResult:
    """Upload a video, choosing single-request or chunked transfer by size."""
    try:
        size = FileSource(video_path).size()
    except UploadError as e:
        logger.error("Cannot upload %s: %s", video_path, e)
        return UploadResult(success=False, error_message=str(e), error_code=e.code)

    if size <= settings.simple_upload_threshold:
        logger.debug("Using single-request upload | size=%s", size)
        return upload_video_simple(
            video_path,
            container_id,
            access_token=access_token,
            on_progress=on_progress,
            api=api,
        )
    return upload_video_with_chunks(
        video_path,
        container_id,
        access_token=access_token,
        on_progress=on_progress,
        cancel_event=cancel_event,
        api=api,
    )
