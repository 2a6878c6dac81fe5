"""
Part Uploader

Design Decision: Worker Model
=============================

Options Considered:
1. One thread per part
   - Simple, but a 2GB file at 8MB parts is 256 threads
2. ThreadPoolExecutor.map over parts
   - Bounded, but a failure can't stop queued parts from starting
3. Fixed worker threads pulling from a shared queue
   - Bounded, first-available-worker scheduling
   - A shared Event stops workers from taking new parts after a failure

Decision: Fixed worker threads + queue.Queue + threading.Event
- Part PUTs are blocking network I/O, so threads give real parallelism
- Each worker reads its part through its own file handle
- Results go into a list pre-sized to the part count; a worker only
  writes its own index, so the manifest comes out in part order

Failure Handling:
- A failing worker records the failure on an unbounded error queue,
  sets the cancel event and exits. Nothing is retried.
- Parts already in flight finish (or fail) on their own; no new part is
  started once the event is set.
- After all workers are joined every recorded failure is reported,
  sorted by part index.

Upload Flow:
1. Plan one PartJob per presigned URL
2. Workers: read part -> PUT to URL -> keep the ETag
3. Join all workers
4. Any failure -> PartTransferFailed, else the ordered PartResults
"""

import logging
import os
import queue
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import httpx

from ..errors import PartFailure, PartTransferFailed
from ..file import FileChunker, PartJob
from .progress import ProgressCallback, ProgressTracker
from .session import UploadSession

logger = logging.getLogger(__name__)

# Worker count when the host reports a single CPU
DEFAULT_CONCURRENCY = 5


def system_concurrency() -> int:
    """Number of workers to use when none is configured."""
    cores = os.cpu_count() or 1
    if cores > 1:
        return cores
    return DEFAULT_CONCURRENCY


def parse_etag(value: str) -> str:
    """Strip the quotes S3-style servers put around ETag values."""
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


@dataclass(frozen=True)
class PartResult:
    """A part that reached storage, and the token proving it."""
    part_number: int  # 1-based
    etag: str

    def to_dict(self) -> dict:
        return {'part_number': self.part_number, 'etag': self.etag}


class PartUploadError(Exception):
    """A single part could not be transferred."""


class PartUploader:
    """
    Transfers one part to its presigned URL.

    The HTTP client is shared between worker threads; httpx.Client is
    thread-safe.
    """

    def __init__(self, http: httpx.Client, chunker: FileChunker):
        self.http = http
        self.chunker = chunker

    def upload(self, file_path: Path, job: PartJob) -> PartResult:
        """
        Read and PUT a single part.

        Raises:
            PartUploadError: on read, transport or HTTP status failure, or
                when the response has no ETag
        """
        try:
            data = self.chunker.read_part(file_path, job)
        except OSError as e:
            raise PartUploadError(f"failed to read file: {e}") from e

        try:
            response = self.http.put(job.target, content=data)
        except httpx.HTTPError as e:
            raise PartUploadError(str(e) or type(e).__name__) from e

        if not response.is_success:
            raise PartUploadError(f"received non-success status code {response.status_code}")

        etag = response.headers.get('ETag')
        if not etag:
            raise PartUploadError("no ETag returned")

        logger.debug(f"Uploaded part {job.part_number} ({len(data):,} bytes)")
        return PartResult(part_number=job.part_number, etag=parse_etag(etag))


class TransferPool:
    """
    Uploads every part of a session with a bounded number of workers.

    At most `concurrency` parts are in flight at any time.
    """

    def __init__(self, http: httpx.Client, concurrency: Optional[int] = None,
                 progress_callback: ProgressCallback = None):
        """
        Args:
            http: Client used for the part PUTs (no API credentials)
            concurrency: Worker count (default: derived from CPU count)
            progress_callback: Optional observer for part completions
        """
        if concurrency is not None and concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        self.http = http
        self.concurrency = concurrency or system_concurrency()
        self.progress_callback = progress_callback

    def transfer_all(self, session: UploadSession, file_path: Path,
                     file_size: int) -> List[PartResult]:
        """
        Upload all parts of a file.

        Returns:
            One PartResult per part, ordered by part number

        Raises:
            PartTransferFailed: if any part failed
        """
        tracker = ProgressTracker(total_parts=session.part_count)
        tracker.subscribe(self.progress_callback)

        if session.part_count == 0:
            tracker.start()
            return []

        chunker = FileChunker(session.part_size)
        uploader = PartUploader(self.http, chunker)

        # Work queue: every part is enqueued up front
        jobs: queue.Queue = queue.Queue(maxsize=session.part_count)
        for job in chunker.plan(file_size, list(session.part_targets)):
            jobs.put_nowait(job)

        errors: queue.Queue = queue.Queue()
        results: List[Optional[PartResult]] = [None] * session.part_count
        cancel = threading.Event()

        def worker():
            while not cancel.is_set():
                try:
                    job = jobs.get_nowait()
                except queue.Empty:
                    return

                try:
                    results[job.index] = uploader.upload(file_path, job)
                except Exception as e:
                    errors.put(PartFailure(index=job.index, reason=str(e)))
                    cancel.set()
                    return

                tracker.part_completed(job.part_number, job.length)

        worker_count = min(self.concurrency, session.part_count)
        logger.info(f"Uploading {session.part_count} parts with {worker_count} workers")

        tracker.start()
        threads = [
            threading.Thread(target=worker, name=f"part-worker-{i}", daemon=True)
            for i in range(worker_count)
        ]
        for thread in threads:
            thread.start()

        try:
            for thread in threads:
                thread.join()
        except KeyboardInterrupt:
            cancel.set()
            raise

        failures: List[PartFailure] = []
        while True:
            try:
                failures.append(errors.get_nowait())
            except queue.Empty:
                break

        if failures:
            skipped = sum(1 for r in results if r is None) - len(failures)
            logger.error(f"{len(failures)} part(s) failed, {skipped} not attempted")
            raise PartTransferFailed(failures)

        missing = [i for i, result in enumerate(results) if result is None]
        if missing:
            raise PartTransferFailed(
                [PartFailure(index=i, reason='no result recorded') for i in missing]
            )

        return results
