"""
File Module - Validation and Part Layout

This module handles local file operations for multipart uploads.
"""

from .chunker import FileChunker, PartJob
from .inspector import (
    FileInspector,
    InspectedFile,
    ALLOWED_EXTENSIONS,
    ALLOWED_MIME_TYPES,
    sniff_content_type,
)

__all__ = [
    'FileChunker',
    'PartJob',
    'FileInspector',
    'InspectedFile',
    'ALLOWED_EXTENSIONS',
    'ALLOWED_MIME_TYPES',
    'sniff_content_type',
]
