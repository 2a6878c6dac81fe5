"""
Error Types

Every failure the client can report derives from ReeltubeError, so the CLI
can catch one type and map it to an exit code.

    ReeltubeError
    ├── ConfigError
    ├── APIError
    ├── ValidationError
    │   ├── InvalidPath
    │   ├── DisallowedExtension
    │   └── DisallowedContentType
    └── UploadError
        ├── NegotiationFailed
        ├── PartTransferFailed
        └── FinalizationFailed

Upload errors carry the stage that failed. Nothing is retried: the first
failing stage aborts the whole upload.
"""

from dataclasses import dataclass
from typing import List, Optional


class ReeltubeError(Exception):
    """Base class for all client errors."""


class ConfigError(ReeltubeError):
    """Missing or invalid configuration."""


class APIError(ReeltubeError):
    """The control-plane API could not be reached or returned an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        if status_code is not None:
            super().__init__(f"API error ({status_code}): {message}")
        else:
            super().__init__(f"API error: {message}")


# === Local file validation ===

class ValidationError(ReeltubeError):
    """The local file cannot be uploaded."""


class InvalidPath(ValidationError):
    def __init__(self, path: str, reason: str = 'file does not exist'):
        self.path = path
        super().__init__(f"{reason}: {path}")


class DisallowedExtension(ValidationError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"file type not allowed: {extension or '(none)'}")


class DisallowedContentType(ValidationError):
    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(f"MIME type not allowed: {mime_type}")


# === Upload pipeline ===

class UploadError(ReeltubeError):
    """A stage of the multipart upload failed."""

    stage = 'upload'


class NegotiationFailed(UploadError):
    stage = 'negotiate'


@dataclass
class PartFailure:
    """Why a single part could not be transferred."""
    index: int  # 0-based part index
    reason: str

    @property
    def part_number(self) -> int:
        return self.index + 1

    def __str__(self) -> str:
        return f"part {self.part_number}: {self.reason}"


class PartTransferFailed(UploadError):
    """
    One or more parts failed to transfer.

    All recorded failures are kept, sorted by part index; the message
    reports the lowest-indexed one.
    """

    stage = 'transfer'

    def __init__(self, failures: List[PartFailure]):
        self.failures = sorted(failures, key=lambda f: f.index)
        first = self.failures[0] if self.failures else None
        message = f"failed to upload {first}" if first else "failed to upload parts"
        if len(self.failures) > 1:
            message += f" (and {len(self.failures) - 1} more)"
        super().__init__(message)


class FinalizationFailed(UploadError):
    stage = 'finalize'
