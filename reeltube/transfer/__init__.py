"""
Transfer Module - Multipart Upload

Negotiates upload sessions, uploads parts in parallel and finalizes.
"""

from .session import SessionNegotiator, UploadSession
from .uploader import (
    PartResult,
    PartUploader,
    TransferPool,
    system_concurrency,
    DEFAULT_CONCURRENCY,
)
from .progress import ProgressTracker, UploadProgress, ProgressCallback
from .finalizer import CompletionFinalizer, order_manifest

__all__ = [
    'SessionNegotiator',
    'UploadSession',
    'PartResult',
    'PartUploader',
    'TransferPool',
    'system_concurrency',
    'DEFAULT_CONCURRENCY',
    'ProgressTracker',
    'UploadProgress',
    'ProgressCallback',
    'CompletionFinalizer',
    'order_manifest',
]
