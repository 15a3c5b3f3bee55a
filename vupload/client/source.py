"""Local file access for chunked uploads.

Parts are read concurrently from worker threads, so every read opens its own
file handle and never shares a stream cursor with another part.
"""

import logging
import os
from pathlib import Path
from typing import Union

from vupload.client.errors import SourceReadFailure
from vupload.shared.models import PartSpec

logger = logging.getLogger(__name__)


class FileSource:
    """Read-only view of a local file addressed by byte offset."""

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return self.path.name

    def size(self) -> int:
        """Return the file size in bytes.

        Raises:
            SourceReadFailure: If the file cannot be stat'ed or is not a regular file.
        """
        try:
            stat = self.path.stat()
        except OSError as e:
            raise SourceReadFailure(f"Cannot stat {self.path}: {e}") from e
        if not self.path.is_file():
            raise SourceReadFailure(f"Not a regular file: {self.path}")
        return stat.st_size

    def read_range(self, offset: int, size: int) -> bytes:
        """Read exactly ``size`` bytes starting at ``offset``.

        Raises:
            SourceReadFailure: On I/O errors or when the file is shorter than expected.
        """
        try:
            with open(self.path, "rb") as fh:
                fh.seek(offset)
                data = fh.read(size)
        except OSError as e:
            raise SourceReadFailure(
                f"Cannot read {size} bytes at offset {offset} from {self.path}: {e}"
            ) from e
        if len(data) != size:
            raise SourceReadFailure(
                f"Short read from {self.path}: expected {size} bytes at offset {offset}, got {len(data)}"
            )
        return data

    def read_part(self, part: PartSpec) -> bytes:
        logger.debug(
            "Reading part %s | offset=%s | size=%s", part.index, part.offset_start, part.size_bytes
        )
        return self.read_range(part.offset_start, part.size_bytes)
