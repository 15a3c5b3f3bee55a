"""Chunk planning: split a byte length into fixed-size parts."""

from vupload.shared.models import PartSpec


def count_parts(total_size_bytes: int, chunk_size_bytes: int) -> int:
    """Number of parts for a file, never less than one."""
    if chunk_size_bytes <= 0:
        raise ValueError("chunk_size_bytes must be a positive integer")
    if total_size_bytes < 0:
        raise ValueError("total_size_bytes must not be negative")
    return max(1, -(-total_size_bytes // chunk_size_bytes))


def plan_parts(total_size_bytes: int, chunk_size_bytes: int) -> list[PartSpec]:
    """Compute the ordered byte ranges of a chunked upload.

    Ranges are contiguous, disjoint and cover exactly ``[0, total_size_bytes)``.
    An empty file still yields one zero-length part so that downstream
    counting never divides by zero.

    Args:
        total_size_bytes: Length of the source in bytes.
        chunk_size_bytes: Size of every part but the last.

    Returns:
        PartSpec list ordered by index.

    Raises:
        ValueError: If chunk_size_bytes is not positive or the size is negative.
    """
    parts = []
    for index in range(count_parts(total_size_bytes, chunk_size_bytes)):
        start = index * chunk_size_bytes
        end = min(start + chunk_size_bytes, total_size_bytes)
        parts.append(
            PartSpec(index=index, offset_start=start, offset_end=end, size_bytes=end - start)
        )
    return parts
