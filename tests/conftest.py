import os
import sys
import threading
import time
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest


_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT))

# The settings singleton is built at import time; pin it to the defaults so
# the developer's shell or a stray vupload.env/.env cannot leak in.
for _key in [k for k in os.environ if k.startswith("VUPLOAD_")]:
    del os.environ[_key]
_TEST_ENV = {
    "VUPLOAD_DEBUG": "false",
    "VUPLOAD_API_URL": "http://localhost:8000",
    "VUPLOAD_ACCESS_TOKEN": "",
    "VUPLOAD_CHUNK_SIZE": str(5 * 1024 * 1024),
    "VUPLOAD_PARALLEL_UPLOADS": "3",
    "VUPLOAD_UPLOAD_TIMEOUT": "120",
    "VUPLOAD_MAX_FILE_SIZE": str(2 * 1024 * 1024 * 1024),
    "VUPLOAD_CONTENT_TYPE": "video/mp4",
    "VUPLOAD_SIMPLE_UPLOAD_THRESHOLD": str(5 * 1024 * 1024),
}
os.environ.update(_TEST_ENV)


def _response(status_code: int, payload: Any = None, headers: dict | None = None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.headers = headers or {}
    response.text = text
    return response


class FakeUploadServer:
    """In-memory stand-in for the control plane and the presigned part URLs.

    Replaces ``requests.post``/``requests.put`` as seen by vupload.client.api
    and records every call.
    """

    STORAGE_URL = "https://storage.test"

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.upload_id = "upload-abc123"
        self.init_calls: list[dict[str, Any]] = []
        self.complete_calls: list[dict[str, Any]] = []
        self.simple_calls: list[dict[str, Any]] = []
        self.put_calls: list[dict[str, Any]] = []
        self.received: dict[int, bytes] = {}
        self.events: list[tuple[str, int]] = []
        self.active = 0
        self.max_active = 0

        self.init_status = 200
        self.init_url_count: int | None = None
        self.complete_status = 200
        self.simple_status = 200
        self.part_status: dict[int, int] = {}
        self.part_delay: dict[int, float] = {}
        self.part_exception: dict[int, Exception] = {}
        self.omit_etag: set[int] = set()

    def part_url(self, index: int) -> str:
        return f"{self.STORAGE_URL}/{self.upload_id}/part-{index}"

    def post(self, url: str, **kwargs: Any) -> MagicMock:
        if url.endswith("/upload/init"):
            with self.lock:
                self.init_calls.append({"url": url, **kwargs})
            if self.init_status != 200:
                return _response(self.init_status, text="init rejected")
            count = kwargs["json"]["totalParts"]
            if self.init_url_count is not None:
                count = self.init_url_count
            return _response(
                200,
                {
                    "uploadId": self.upload_id,
                    "partUploadUrls": [self.part_url(i) for i in range(count)],
                },
            )
        if url.endswith("/upload/complete"):
            with self.lock:
                self.complete_calls.append({"url": url, **kwargs})
            if self.complete_status != 200:
                return _response(self.complete_status, text="complete rejected")
            return _response(
                200, {"url": f"https://cdn.test/{self.upload_id}.mp4", "assetId": "asset-42"}
            )
        if url.endswith("/upload/video"):
            name, fh, content_type = kwargs["files"]["file"]
            with self.lock:
                self.simple_calls.append(
                    {"url": url, "name": name, "body": fh.read(), "content_type": content_type, **kwargs}
                )
            if self.simple_status != 200:
                return _response(self.simple_status, text="upload rejected")
            return _response(200, {"url": "https://cdn.test/simple.mp4", "assetId": "asset-7"})
        raise AssertionError(f"Unexpected POST {url}")

    def put(self, url: str, data: bytes = b"", headers: dict | None = None, **kwargs: Any) -> MagicMock:
        index = int(url.rsplit("-", 1)[1])
        with self.lock:
            self.put_calls.append({"url": url, "index": index, "headers": headers or {}, **kwargs})
            self.events.append(("start", index))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            time.sleep(self.part_delay.get(index, 0.01))
            if index in self.part_exception:
                raise self.part_exception[index]
            status = self.part_status.get(index, 200)
            if status == 200:
                with self.lock:
                    self.received[index] = bytes(data)
            etag_headers = {} if index in self.omit_etag else {"ETag": f'"etag-{index}"'}
            return _response(status, headers=etag_headers if status == 200 else {}, text="denied")
        finally:
            with self.lock:
                self.active -= 1
                self.events.append(("end", index))

    def assembled(self) -> bytes:
        return b"".join(self.received[i] for i in sorted(self.received))


@pytest.fixture
def fake_server(monkeypatch: pytest.MonkeyPatch) -> FakeUploadServer:
    import vupload.client.api

    server = FakeUploadServer()
    monkeypatch.setattr(vupload.client.api.requests, "post", server.post)
    monkeypatch.setattr(vupload.client.api.requests, "put", server.put)
    return server


@pytest.fixture
def make_video(tmp_path: Path):
    """Create a file of the given size with a position-dependent byte pattern."""

    def _make(size: int, name: str = "clip.mp4") -> Path:
        path = tmp_path / name
        pattern = bytes(range(251))
        repeats, rest = divmod(size, len(pattern))
        path.write_bytes(pattern * repeats + pattern[:rest])
        return path

    return _make


@pytest.fixture
def api():
    from vupload.client.api import UploadAPI

    return UploadAPI(api_url="http://api.test", access_token="test-token", timeout=5)
