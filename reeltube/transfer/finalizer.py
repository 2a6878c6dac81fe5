"""
Upload Finalization

Reports the completed part manifest to the control plane, which then
assembles the parts into the final object.

The manifest must list every part number from 1 to n exactly once, in
ascending order. A manifest that doesn't is refused locally; sending it
would either fail on the server or produce a corrupt object.
"""

import logging
from typing import List, Sequence

from ..api import ReeltubeClient, CompleteUploadResponse
from ..errors import APIError, FinalizationFailed
from .uploader import PartResult

logger = logging.getLogger(__name__)


def order_manifest(parts: Sequence[PartResult]) -> List[PartResult]:
    """
    Sort parts by part number and check there are no gaps or duplicates.

    Raises:
        FinalizationFailed: if the part numbers are not exactly 1..n
    """
    ordered = sorted(parts, key=lambda p: p.part_number)
    numbers = [p.part_number for p in ordered]
    expected = list(range(1, len(ordered) + 1))
    if numbers != expected:
        raise FinalizationFailed(
            f"incomplete part manifest: expected parts 1-{len(ordered)}, got {numbers}"
        )
    return ordered


class CompletionFinalizer:
    """Completes multipart uploads on the control plane."""

    def __init__(self, client: ReeltubeClient):
        self.client = client

    def finalize(self, media_upload_id: str, upload_id: str,
                 parts: Sequence[PartResult]) -> CompleteUploadResponse:
        """
        Send the part manifest and finalize the upload.

        Raises:
            FinalizationFailed: invalid manifest, transport error or non-2xx
        """
        manifest = order_manifest(parts)

        logger.debug(f"Completing upload {media_upload_id} with {len(manifest)} parts")

        try:
            response = self.client.complete_multipart_upload(
                media_upload_id, upload_id, manifest
            )
        except APIError as e:
            raise FinalizationFailed(f"failed to complete multipart upload: {e}") from e

        logger.info(f"Upload {media_upload_id} completed")
        return response
