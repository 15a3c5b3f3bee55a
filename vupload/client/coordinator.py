"""Parallel upload coordinator.

Drives one chunked upload attempt through its lifecycle:

    preparing -> uploading -> finalizing -> completed | failed

Parts are pushed in batches of at most ``parallelism`` concurrent requests;
a batch must fully settle before the next one starts. The first failure
aborts the attempt and no commit is issued.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from os import PathLike
from typing import Callable, Optional, Union

from vupload.client.api import UploadAPI
from vupload.client.errors import (
    FinalizeFailure,
    SourceReadFailure,
    UploadCancelled,
    UploadError,
)
from vupload.client.planner import plan_parts
from vupload.client.source import FileSource
from vupload.shared.config import settings
from vupload.shared.contract import DEFAULT_FILE_NAME
from vupload.shared.models import (
    PartReceipt,
    PartSpec,
    ProgressSnapshot,
    SessionMetadata,
    TransferSession,
    UploadPhase,
    UploadResult,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressSnapshot], None]


class ChunkedUploadCoordinator:
    """Runs a single chunked upload attempt.

    Counters, receipts and the plan belong to the instance, so independent
    coordinators can upload concurrently. An instance is not reusable: a
    retry constructs a new coordinator and starts from a fresh session.

    Attributes:
        api: HTTP client for the control plane and part destinations.
        chunk_size_bytes: Part size.
        parallelism: Maximum number of parts in flight per batch.
        phase: Current lifecycle phase, None before upload() is called.
    """

    def __init__(
        self,
        api: Optional[UploadAPI] = None,
        chunk_size_bytes: Optional[int] = None,
        parallelism: Optional[int] = None,
        max_file_size_bytes: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.api = api or UploadAPI()
        self.chunk_size_bytes = (
            settings.chunk_size_bytes if chunk_size_bytes is None else chunk_size_bytes
        )
        self.parallelism = settings.parallel_uploads if parallelism is None else parallelism
        self.max_file_size_bytes = (
            settings.max_file_size_bytes if max_file_size_bytes is None else max_file_size_bytes
        )
        if self.chunk_size_bytes <= 0:
            raise ValueError("chunk_size_bytes must be a positive integer")
        if self.parallelism <= 0:
            raise ValueError("parallelism must be a positive integer")
        if self.max_file_size_bytes <= 0:
            raise ValueError("max_file_size_bytes must be a positive integer")
        self.cancel_event = cancel_event or threading.Event()

        self.phase: Optional[UploadPhase] = None
        self._started = False
        self._on_progress: Optional[ProgressCallback] = None

        # Serializes callback delivery; always taken before _lock
        self._delivery_lock = threading.Lock()
        # Guarded by _lock
        self._lock = threading.Lock()
        self._total_bytes = 0
        self._total_parts = 0
        self._uploaded_bytes = 0
        self._parts_done = 0
        self._receipts: dict[int, PartReceipt] = {}

    def cancel(self) -> None:
        """Request cancellation. In-flight parts settle, no new batch starts."""
        logger.info("Cancellation requested")
        self.cancel_event.set()

    @property
    def uploaded_bytes(self) -> int:
        with self._lock:
            return self._uploaded_bytes

    def upload(
        self,
        source: Union[FileSource, str, PathLike],
        metadata: SessionMetadata,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Upload a local file and return the terminal result.

        Upload errors never escape: they are logged and reported as
        ``UploadResult(success=False)``.

        Raises:
            RuntimeError: If this coordinator already ran an attempt.
        """
        if self._started:
            raise RuntimeError("ChunkedUploadCoordinator instances serve a single attempt")
        self._started = True
        self._on_progress = on_progress
        if not isinstance(source, FileSource):
            source = FileSource(source)

        started_at = time.monotonic()
        try:
            result = self._run(source, metadata)
        except UploadError as e:
            self._set_phase(UploadPhase.FAILED)
            self._emit_snapshot()
            logger.error("Upload failed | file=%s | code=%s | %s", source.path, e.code, e)
            return UploadResult(success=False, error_message=str(e), error_code=e.code)

        logger.info(
            "Upload complete | file=%s | parts=%s | elapsed=%.2fs | url=%s",
            source.path,
            self._total_parts,
            time.monotonic() - started_at,
            result.remote_url,
        )
        return result

    def _run(self, source: FileSource, metadata: SessionMetadata) -> UploadResult:
        self._set_phase(UploadPhase.PREPARING)
        self._emit_snapshot()
        self._check_cancelled()

        file_size = source.size()
        if file_size > self.max_file_size_bytes:
            raise SourceReadFailure(
                f"File too large: {file_size} bytes exceeds limit of {self.max_file_size_bytes}"
            )
        file_name = metadata.file_name or source.name or DEFAULT_FILE_NAME
        content_type = metadata.content_type or settings.content_type

        plan = plan_parts(file_size, self.chunk_size_bytes)
        with self._lock:
            self._total_bytes = file_size
            self._total_parts = len(plan)
        logger.info(
            "Starting chunked upload | file=%s | size=%s | parts=%s | parallel=%s",
            file_name,
            file_size,
            len(plan),
            self.parallelism,
        )

        session = self.api.init_upload(
            container_id=metadata.container_id,
            file_name=file_name,
            file_size_bytes=file_size,
            total_parts=len(plan),
            content_type=content_type,
        )
        logger.info(
            "Upload session opened | upload_id=%s | destinations=%s",
            session.upload_id,
            len(session.destinations),
        )

        self._set_phase(UploadPhase.UPLOADING)
        self._emit_snapshot()
        self._upload_parts(source, session, plan)

        self._check_cancelled()
        self._set_phase(UploadPhase.FINALIZING)
        self._emit_snapshot()
        receipts = self._sorted_receipts(plan)
        asset = self.api.complete_upload(
            session=session,
            container_id=metadata.container_id,
            file_name=file_name,
            receipts=receipts,
        )

        self._set_phase(UploadPhase.COMPLETED)
        self._emit_snapshot()
        return UploadResult(success=True, remote_url=asset.url, asset_id=asset.asset_id)

    def _upload_parts(
        self, source: FileSource, session: TransferSession, plan: list[PartSpec]
    ) -> None:
        with ThreadPoolExecutor(
            max_workers=self.parallelism, thread_name_prefix="vupload-part"
        ) as pool:
            for batch_start in range(0, len(plan), self.parallelism):
                self._check_cancelled()
                batch = plan[batch_start : batch_start + self.parallelism]
                futures = {
                    pool.submit(self._upload_part, source, session, part): part
                    for part in batch
                }
                done, pending = wait(futures, return_when=FIRST_EXCEPTION)
                if pending:
                    for future in pending:
                        future.cancel()
                    wait(pending)
                self._raise_first_failure(futures)

    @staticmethod
    def _raise_first_failure(futures: dict[Future, PartSpec]) -> None:
        """Re-raise the failure of the lowest-index part, preferring real errors over cancellation."""
        failures = []
        for future, part in sorted(futures.items(), key=lambda item: item[1].index):
            if future.cancelled():
                continue
            exc = future.exception()
            if exc is not None:
                failures.append(exc)
        if not failures:
            return
        for exc in failures:
            if not isinstance(exc, UploadCancelled):
                raise exc
        raise failures[0]

    def _upload_part(self, source: FileSource, session: TransferSession, part: PartSpec) -> None:
        self._check_cancelled()
        data = source.read_part(part)
        entity_tag = self.api.put_part(part.index, session.destinations[part.index], data)
        receipt = PartReceipt(part_number=part.part_number, entity_tag=entity_tag)

        with self._lock:
            if receipt.part_number in self._receipts:
                raise RuntimeError(f"Duplicate receipt for part {receipt.part_number}")
            self._receipts[receipt.part_number] = receipt
            self._uploaded_bytes += part.size_bytes
            self._parts_done += 1
            logger.debug(
                "Part %s/%s done | uploaded=%s/%s bytes",
                self._parts_done,
                self._total_parts,
                self._uploaded_bytes,
                self._total_bytes,
            )
        self._emit_snapshot()

    def _sorted_receipts(self, plan: list[PartSpec]) -> list[PartReceipt]:
        with self._lock:
            receipts = sorted(self._receipts.values(), key=lambda r: r.part_number)
        expected = [part.part_number for part in plan]
        if [r.part_number for r in receipts] != expected:
            missing = sorted(set(expected) - {r.part_number for r in receipts})
            raise FinalizeFailure(f"Missing receipts for parts {missing}")
        return receipts

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise UploadCancelled()

    def _set_phase(self, phase: UploadPhase) -> None:
        logger.debug("Phase %s -> %s", self.phase.value if self.phase else "idle", phase.value)
        self.phase = phase

    def _snapshot(self, phase: UploadPhase) -> ProgressSnapshot:
        return ProgressSnapshot.build(
            phase,
            total_bytes=self._total_bytes,
            uploaded_bytes=self._uploaded_bytes,
            current_part_count=self._parts_done,
            total_part_count=self._total_parts,
        )

    def _emit_snapshot(self) -> None:
        # Taken and delivered under _delivery_lock so callbacks see snapshots
        # in order; the callback itself runs outside _lock.
        with self._delivery_lock:
            with self._lock:
                snapshot = self._snapshot(self.phase)
            self._deliver(snapshot)

    def _deliver(self, snapshot: ProgressSnapshot) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(snapshot)
        except Exception:
            logger.exception("Progress callback raised; ignoring")
