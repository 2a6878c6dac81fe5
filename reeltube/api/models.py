"""
API Models

Pydantic models for the ReelTube control-plane JSON bodies. Unknown fields
in responses are ignored so that server additions don't break the client.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


# === Profile ===

class Profile(BaseModel):
    """The authenticated user's profile."""
    id: str
    handle: str
    bio: Optional[str] = None
    image_path: Optional[str] = None
    is_business: bool = False
    is_verified: bool = False


class MeResponse(BaseModel):
    profile: Profile


# === Multipart uploads ===

class MediaUpload(BaseModel):
    id: str


class CreateMediaUploadRequest(BaseModel):
    """Request to open a multipart upload session."""
    filename: str
    size: int = Field(ge=0)


class CreateMediaUploadResponse(BaseModel):
    """Upload session issued by the control plane."""
    upload_id: str
    part_size: int
    num_parts: int
    presigned_urls: List[str] = Field(default_factory=list)
    media_upload: MediaUpload


class CompletedPart(BaseModel):
    """One entry of the completion manifest."""
    part_number: int = Field(ge=1)
    etag: str


class CompleteUploadRequest(BaseModel):
    """Request to finalize a multipart upload."""
    id: str
    upload_id: str
    parts: List[CompletedPart]


class CompleteUploadResponse(BaseModel):
    media_upload: Optional[MediaUpload] = None
