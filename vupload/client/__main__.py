"""vupload client entry point.

Launch with: python -m vupload.client VIDEO --container-id ID

Uploads a local video to the configured backend, chunked and in parallel,
and prints the resulting URL and asset id.
"""

import argparse
import signal
import sys
import threading
from pathlib import Path

from vupload.shared.config import settings
from vupload.shared.logging_config import configure_logging

logger = configure_logging("vupload.client")

from vupload.client.api import UploadAPI
from vupload.client.uploader import upload_video, upload_video_simple, upload_video_with_chunks
from vupload.shared.models import ProgressSnapshot, UploadPhase, UploadResult


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m vupload.client",
        description="Upload a video file using chunked parallel transfer.",
    )
    parser.add_argument("video", type=Path, help="Path of the video file to upload.")
    parser.add_argument(
        "--container-id",
        required=True,
        help="Project/container the uploaded asset belongs to.",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help=f"Control-plane base URL (default: {settings.api_url}).",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Bearer token (default: VUPLOAD_ACCESS_TOKEN).",
    )
    parser.add_argument(
        "--chunk-size",
        type=_positive_int,
        default=None,
        help=f"Part size in bytes (default: {settings.chunk_size_bytes}).",
    )
    parser.add_argument(
        "--parallel",
        type=_positive_int,
        default=None,
        help=f"Parts uploaded concurrently (default: {settings.parallel_uploads}).",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--simple",
        action="store_true",
        help="Send the whole file in a single request.",
    )
    mode.add_argument(
        "--chunked",
        action="store_true",
        help="Always use chunked transfer, even for small files.",
    )
    return parser.parse_args(argv)


def log_progress(snapshot: ProgressSnapshot) -> None:
    if snapshot.phase is UploadPhase.UPLOADING:
        logger.info(
            "📤 [%3d%%] part %s/%s | %.1f/%.1f MB",
            snapshot.percentage,
            snapshot.current_part_count,
            snapshot.total_part_count,
            snapshot.uploaded_bytes / (1024 * 1024),
            snapshot.total_bytes / (1024 * 1024),
        )
    else:
        logger.info("Upload phase: %s", snapshot.phase.value)


def _dispatch(args: argparse.Namespace, cancel_event: threading.Event) -> UploadResult:
    api = UploadAPI(api_url=args.api_url, access_token=args.token)
    tuned = args.chunk_size is not None or args.parallel is not None

    if args.simple:
        return upload_video_simple(
            args.video, args.container_id, on_progress=log_progress, api=api
        )
    if args.chunked or tuned:
        return upload_video_with_chunks(
            args.video,
            args.container_id,
            on_progress=log_progress,
            chunk_size_bytes=args.chunk_size,
            parallelism=args.parallel,
            cancel_event=cancel_event,
            api=api,
        )
    return upload_video(
        args.video,
        args.container_id,
        on_progress=log_progress,
        cancel_event=cancel_event,
        api=api,
    )


def main(argv: list[str] | None = None) -> int:
    """Run one upload attempt. Returns the process exit code."""
    args = parse_args(argv)

    logger.info("=" * 50)
    logger.info("vupload client")
    logger.info("=" * 50)
    logger.info(f"File: {args.video}")
    logger.info(f"Server API: {args.api_url or settings.api_url}")
    logger.info(f"Chunk size: {settings.chunk_size_bytes if args.chunk_size is None else args.chunk_size} bytes")
    logger.info(f"Parallel uploads: {settings.parallel_uploads if args.parallel is None else args.parallel}")
    logger.info(f"Upload timeout: {settings.upload_timeout}s")
    logger.info("=" * 50)

    cancel_event = threading.Event()

    def shutdown_handler(signum, frame):
        if cancel_event.is_set():
            return
        logger.info("Received shutdown signal, cancelling upload...")
        cancel_event.set()

    previous_handlers = {
        sig: signal.signal(sig, shutdown_handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        result = _dispatch(args, cancel_event)
    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)

    if result.success:
        logger.info("✅ Upload complete | url=%s | asset_id=%s", result.remote_url, result.asset_id)
        print(result.remote_url)
        return 0

    logger.error("Upload failed: %s", result.error_message)
    return 1


if __name__ == "__main__":
    sys.exit(main())
