"""
File Inspector

Validates a local file before anything touches the network:
1. The path exists and is a regular file (resolved to an absolute path)
2. The extension is on the allow-list
3. The MIME type is on the allow-list

The MIME type comes from a static extension map first. Only when the
extension is unknown to the map are the first 512 bytes sniffed for a
content signature.

Design Decision: Static Extension Map
=====================================
mimetypes.guess_type() consults the host's mime.types files, so the same
file can classify differently on two machines. A fresh MimeTypes()
instance only carries Python's built-in table, which is what we use.
"""

import logging
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Optional

from ..errors import DisallowedContentType, DisallowedExtension, InvalidPath

logger = logging.getLogger(__name__)

SNIFF_LENGTH = 512

ALLOWED_EXTENSIONS: FrozenSet[str] = frozenset({
    '.jpg', '.jpeg', '.png', '.gif',
    '.mp4', '.mov', '.avi', '.mkv',
})

ALLOWED_MIME_TYPES: FrozenSet[str] = frozenset({
    'image/jpeg', 'image/png', 'image/gif',
    'video/mp4', 'video/quicktime', 'video/x-msvideo', 'video/x-matroska',
})

# Python's built-in extension table, without the host's mime.types
DEFAULT_TYPE_MAP: Dict[str, str] = dict(mimetypes.MimeTypes().types_map[True])

# ISO base media file format major brands
_QUICKTIME_BRANDS = {b'qt  '}
_AUDIO_MP4_BRANDS = {b'M4A ', b'M4B ', b'M4P '}
_3GPP_PREFIX = b'3gp'


def _is_binary(data: bytes) -> bool:
    """True when data contains bytes that never appear in plain text."""
    for byte in data:
        if byte < 0x20 and byte not in (0x09, 0x0a, 0x0c, 0x0d, 0x1b):
            return True
    return False


def sniff_content_type(data: bytes) -> str:
    """
    Infer a MIME type from the leading bytes of a file.

    Recognizes the media formats we accept plus a few common others, so
    that rejections name a meaningful type. Unknown binary content is
    application/octet-stream.
    """
    head = data[:SNIFF_LENGTH]

    if head.startswith(b'\xff\xd8\xff'):
        return 'image/jpeg'
    if head.startswith(b'\x89PNG\r\n\x1a\n'):
        return 'image/png'
    if head.startswith((b'GIF87a', b'GIF89a')):
        return 'image/gif'
    if head.startswith(b'BM'):
        return 'image/bmp'

    # ISO-BMFF: [4-byte box size]['ftyp'][4-byte major brand]
    if len(head) >= 12 and head[4:8] == b'ftyp':
        brand = head[8:12]
        if brand in _QUICKTIME_BRANDS:
            return 'video/quicktime'
        if brand in _AUDIO_MP4_BRANDS:
            return 'audio/mp4'
        if brand.startswith(_3GPP_PREFIX):
            return 'video/3gpp'
        return 'video/mp4'

    if head.startswith(b'RIFF') and len(head) >= 12:
        form = head[8:12]
        if form == b'AVI ':
            return 'video/x-msvideo'
        if form == b'WAVE':
            return 'audio/wav'
        if form == b'WEBP':
            return 'image/webp'

    # EBML header; the DocType tells Matroska and WebM apart
    if head.startswith(b'\x1a\x45\xdf\xa3'):
        if b'webm' in head:
            return 'video/webm'
        return 'video/x-matroska'

    if head.startswith(b'%PDF-'):
        return 'application/pdf'
    if head.startswith(b'PK\x03\x04'):
        return 'application/zip'
    if head.startswith(b'\x1f\x8b\x08'):
        return 'application/x-gzip'

    if not _is_binary(head):
        return 'text/plain'

    return 'application/octet-stream'


@dataclass(frozen=True)
class InspectedFile:
    """A local file that passed validation."""
    path: Path  # Absolute
    size: int
    extension: str
    mime_type: str

    @property
    def name(self) -> str:
        return self.path.name


class FileInspector:
    """
    Validates media files against extension and MIME allow-lists.

    Both lists and the extension map can be replaced, mostly so tests can
    force the content-sniffing path.
    """

    def __init__(self,
                 allowed_extensions: FrozenSet[str] = ALLOWED_EXTENSIONS,
                 allowed_mime_types: FrozenSet[str] = ALLOWED_MIME_TYPES,
                 type_map: Optional[Dict[str, str]] = None):
        self.allowed_extensions = frozenset(e.lower() for e in allowed_extensions)
        self.allowed_mime_types = frozenset(allowed_mime_types)
        self.type_map = DEFAULT_TYPE_MAP if type_map is None else type_map

    def resolve(self, path) -> Path:
        """Resolve to an absolute path of an existing regular file."""
        if not path:
            raise InvalidPath('', reason='file path is required')

        try:
            abs_path = Path(os.path.abspath(os.path.expanduser(str(path))))
            exists = abs_path.exists()
            is_file = abs_path.is_file()
        except (OSError, ValueError) as e:
            raise InvalidPath(str(path), reason=f"invalid file path ({e})") from e

        if not exists:
            raise InvalidPath(str(abs_path))
        if not is_file:
            raise InvalidPath(str(abs_path), reason='not a regular file')

        return abs_path

    def detect_mime_type(self, head: bytes, extension: str) -> str:
        """Extension map first, content sniffing as the fallback."""
        mime_type = self.type_map.get(extension)
        if mime_type:
            return mime_type

        mime_type = sniff_content_type(head)
        logger.debug(f"No MIME mapping for '{extension}', sniffed {mime_type}")
        return mime_type

    def inspect(self, path) -> InspectedFile:
        """
        Validate a file for upload.

        Raises:
            InvalidPath: missing, unresolvable, unreadable or not a regular file
            DisallowedExtension: extension not on the allow-list
            DisallowedContentType: MIME type not on the allow-list
        """
        abs_path = self.resolve(path)

        extension = abs_path.suffix.lower()
        if extension not in self.allowed_extensions:
            raise DisallowedExtension(extension)

        try:
            with open(abs_path, 'rb') as f:
                head = f.read(SNIFF_LENGTH)
            size = abs_path.stat().st_size
        except OSError as e:
            raise InvalidPath(str(abs_path), reason=f"unable to read file ({e})") from e

        mime_type = self.detect_mime_type(head, extension)
        if mime_type not in self.allowed_mime_types:
            raise DisallowedContentType(mime_type)

        logger.debug(f"Inspected {abs_path} ({size:,} bytes, {mime_type})")

        return InspectedFile(
            path=abs_path,
            size=size,
            extension=extension,
            mime_type=mime_type,
        )
