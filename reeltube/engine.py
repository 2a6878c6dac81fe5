"""
Upload Engine - Main Controller

Orchestrates one multipart upload:
1. Negotiate an upload session with the control plane
2. Upload all parts in parallel (progress reported to observers)
3. Finalize with the ordered part manifest

Any stage failure ends the upload. Finalization only ever runs after
every part has been uploaded.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from .api import ReeltubeClient
from .errors import UploadError
from .file import InspectedFile
from .transfer import (
    CompletionFinalizer,
    ProgressCallback,
    SessionNegotiator,
    TransferPool,
)

logger = logging.getLogger(__name__)


@dataclass
class UploadOutcome:
    """Terminal state of one upload."""
    success: bool
    file_name: str
    file_size: int
    media_upload_id: Optional[str] = None
    part_count: int = 0
    elapsed_seconds: float = 0.0
    stage: Optional[str] = None  # Failing stage: negotiate, transfer, finalize
    error: Optional[UploadError] = None

    @property
    def reason(self) -> Optional[str]:
        return str(self.error) if self.error else None


class UploadEngine:
    """
    Uploads a validated file to ReelTube.

    Combines the negotiator, transfer pool and finalizer:
    - upload(file): run the upload, raising the failing stage's error
    - run(file): same, but failures come back as an UploadOutcome
    """

    def __init__(self, client: ReeltubeClient, concurrency: Optional[int] = None,
                 http: Optional[httpx.Client] = None):
        """
        Args:
            client: Control-plane API client
            concurrency: Part upload workers (default: derived from CPU count)
            http: Client for presigned part PUTs (default: created per upload)
        """
        self.client = client
        self.concurrency = concurrency
        self.http = http

        self.negotiator = SessionNegotiator(client)
        self.finalizer = CompletionFinalizer(client)

    def upload(self, file: InspectedFile, upload_name: Optional[str] = None,
               progress_callback: ProgressCallback = None) -> UploadOutcome:
        """
        Upload a file.

        Args:
            file: File that passed FileInspector.inspect()
            upload_name: Name to register the upload under (default: file name)
            progress_callback: Optional observer for part completions

        Raises:
            NegotiationFailed, PartTransferFailed, FinalizationFailed
        """
        name = upload_name or file.name
        start = time.monotonic()

        logger.info(f"Uploading {file.path} as {name}")

        session = self.negotiator.open_session(name, file.size)

        http = self.http or httpx.Client(timeout=self.client.config.timeout)
        try:
            pool = TransferPool(
                http,
                concurrency=self.concurrency,
                progress_callback=progress_callback,
            )
            parts = pool.transfer_all(session, file.path, file.size)
        finally:
            if self.http is None:
                http.close()

        self.finalizer.finalize(session.media_upload_id, session.upload_id, parts)

        return UploadOutcome(
            success=True,
            file_name=name,
            file_size=file.size,
            media_upload_id=session.media_upload_id,
            part_count=session.part_count,
            elapsed_seconds=time.monotonic() - start,
        )

    def run(self, file: InspectedFile, upload_name: Optional[str] = None,
            progress_callback: ProgressCallback = None) -> UploadOutcome:
        """Like upload(), but report failure as an outcome instead of raising."""
        start = time.monotonic()
        try:
            return self.upload(file, upload_name, progress_callback)
        except UploadError as e:
            logger.error(f"Upload failed during {e.stage}: {e}")
            return UploadOutcome(
                success=False,
                file_name=upload_name or file.name,
                file_size=file.size,
                elapsed_seconds=time.monotonic() - start,
                stage=e.stage,
                error=e,
            )
