"""
Upload Session Negotiation

Opens a multipart upload on the control plane. The response fixes the
part layout (size and count) and carries one presigned URL per part.

The layout is checked before any byte is sent: the targets must match the
part count, and the parts must cover the file exactly, otherwise the
finalized object would be truncated or padded.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from ..api import ReeltubeClient
from ..errors import APIError, NegotiationFailed
from ..file import FileChunker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadSession:
    """Control-plane context for one multipart upload attempt."""
    media_upload_id: str
    upload_id: str
    part_size: int
    part_count: int
    part_targets: Tuple[str, ...]

    def validate(self, file_size: int):
        """
        Check the session layout against the file being uploaded.

        Raises:
            NegotiationFailed: if the layout does not cover the file exactly
        """
        if self.part_count < 0:
            raise NegotiationFailed(f"invalid part count {self.part_count}")

        if len(self.part_targets) != self.part_count:
            raise NegotiationFailed(
                f"expected {self.part_count} upload targets, got {len(self.part_targets)}"
            )

        if self.part_count == 0:
            if file_size != 0:
                raise NegotiationFailed(f"no parts issued for a {file_size}-byte file")
            return

        if self.part_size <= 0:
            raise NegotiationFailed(f"invalid part size {self.part_size}")

        expected = FileChunker(self.part_size).get_part_count(file_size)
        if expected != self.part_count:
            raise NegotiationFailed(
                f"part layout mismatch: {file_size} bytes at {self.part_size} bytes "
                f"per part needs {expected} parts, server issued {self.part_count}"
            )


class SessionNegotiator:
    """Registers uploads with the control plane."""

    def __init__(self, client: ReeltubeClient):
        self.client = client

    def open_session(self, file_name: str, file_size: int) -> UploadSession:
        """
        Open an upload session for a file.

        Raises:
            NegotiationFailed: API unreachable, non-2xx, undecodable body,
                or a layout that does not match the file
        """
        logger.debug(f"Opening upload session for {file_name} ({file_size:,} bytes)")

        try:
            response = self.client.create_media_upload(file_name, file_size)
        except APIError as e:
            raise NegotiationFailed(f"failed to get presigned URLs from API: {e}") from e

        session = UploadSession(
            media_upload_id=response.media_upload.id,
            upload_id=response.upload_id,
            part_size=response.part_size,
            part_count=response.num_parts,
            part_targets=tuple(response.presigned_urls),
        )
        session.validate(file_size)

        logger.info(f"Upload session {session.media_upload_id}: "
                    f"{session.part_count} parts of {session.part_size:,} bytes")
        return session
