"""
Part Planner

Design Decision: Who Picks the Part Size
=========================================

Options Considered:
| Source           | Pros                              | Cons                          |
|------------------|-----------------------------------|-------------------------------|
| Client constant  | Simple, no negotiation needed     | Server limits unknown (S3 5MB)|
| Client heuristic | Adapts to file size               | Still guesses server limits   |
| Server-issued    | Server knows storage limits       | Extra round trip              |

Decision: Server-issued
- The upload session already costs a round trip, and it returns the part
  size together with one presigned URL per part
- The client only does the arithmetic below

Layout
======
For a file of size S and part size P:
- part count = ceil(S / P)
- part i starts at i * P
- every part is P bytes long except the last, which is S - (n - 1) * P

Parts are read through independent file handles (open, seek, read), so
worker threads never share a file position.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Tuple


@dataclass(frozen=True)
class PartJob:
    """A single byte range of the source file and where to send it."""
    index: int   # 0-based
    offset: int  # Byte offset in the source file
    length: int  # Bytes to read
    target: str = ''  # Presigned URL

    @property
    def part_number(self) -> int:
        """1-based number used by the multipart API."""
        return self.index + 1


class FileChunker:
    """
    Splits a file into fixed-size parts for multipart upload.

    Features:
    - Part size supplied by the upload session
    - Exact coverage: no gaps, no overlap, last part clamped
    - Per-part reads with their own file handle
    """

    def __init__(self, part_size: int):
        if part_size <= 0:
            raise ValueError(f"part size must be positive, got {part_size}")
        self.part_size = part_size

    def get_part_count(self, file_size: int) -> int:
        """Calculate number of parts for a file of given size."""
        return (file_size + self.part_size - 1) // self.part_size

    def get_part_bounds(self, part_index: int, file_size: int) -> Tuple[int, int]:
        """
        Get byte range for a specific part.

        Returns:
            (start_offset, length) tuple
        """
        start = part_index * self.part_size
        length = max(0, min(self.part_size, file_size - start))
        return start, length

    def iter_parts(self, file_size: int, part_count: int = None) -> Iterator[PartJob]:
        """
        Yield a PartJob for every part index.

        part_count defaults to what the file size implies; pass the
        negotiated count to plan against the server's layout.
        """
        if part_count is None:
            part_count = self.get_part_count(file_size)

        for part_index in range(part_count):
            start, length = self.get_part_bounds(part_index, file_size)
            yield PartJob(index=part_index, offset=start, length=length)

    def plan(self, file_size: int, targets: List[str]) -> List[PartJob]:
        """Pair each part of the file with its upload target."""
        return [
            PartJob(index=job.index, offset=job.offset, length=job.length,
                    target=targets[job.index])
            for job in self.iter_parts(file_size, len(targets))
        ]

    def read_part(self, file_path: Path, job: PartJob) -> bytes:
        """
        Read one part from disk using a fresh file handle.

        Raises:
            OSError: if the file cannot be opened or is shorter than expected
        """
        with open(file_path, 'rb') as f:
            f.seek(job.offset)
            data = f.read(job.length)

        if len(data) != job.length:
            raise OSError(
                f"short read for part {job.part_number}: "
                f"expected {job.length} bytes, got {len(data)}"
            )
        return data
