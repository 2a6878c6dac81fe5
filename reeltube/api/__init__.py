"""
API Module - ReelTube control-plane client
"""

from .client import ReeltubeClient
from .models import (
    MeResponse,
    Profile,
    MediaUpload,
    CreateMediaUploadResponse,
    CompletedPart,
    CompleteUploadResponse,
)

__all__ = [
    'ReeltubeClient',
    'MeResponse',
    'Profile',
    'MediaUpload',
    'CreateMediaUploadResponse',
    'CompletedPart',
    'CompleteUploadResponse',
]
