"""Detect the type of uploaded file content from its leading bytes"""

import logging
import mimetypes
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Bytes needed for the deeper libmagic inspection
SNIFF_WINDOW = 8192


@dataclass(frozen=True)
class FileKind:
    mime_type: str
    extension: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_audio(self) -> bool:
        return self.mime_type.startswith("audio/")


MAGIC_BYTES = {
    b"\x89PNG\r\n\x1a\n": FileKind("image/png", "png"),
    b"\xff\xd8\xff": FileKind("image/jpeg", "jpg"),
    b"GIF87a": FileKind("image/gif", "gif"),
    b"GIF89a": FileKind("image/gif", "gif"),
    b"BM": FileKind("image/bmp", "bmp"),
    b"ID3": FileKind("audio/mpeg", "mp3"),
    b"\xff\xfb": FileKind("audio/mpeg", "mp3"),
    b"\xff\xf3": FileKind("audio/mpeg", "mp3"),
    b"\xff\xf2": FileKind("audio/mpeg", "mp3"),
    b"OggS": FileKind("audio/ogg", "ogg"),
    b"fLaC": FileKind("audio/x-flac", "flac"),
    b"#!AMR": FileKind("audio/amr", "amr"),
}

# RIFF containers are identified by the form type at offset 8
RIFF_FORMS = {
    b"WEBP": FileKind("image/webp", "webp"),
    b"WAVE": FileKind("audio/x-wav", "wav"),
}

# ISO base media files are identified by the brand at offset 8
FTYP_BRANDS = {
    b"M4A ": FileKind("audio/m4a", "m4a"),
    b"M4B ": FileKind("audio/m4a", "m4a"),
}


def _match_signature(data: bytes) -> Optional[FileKind]:
    if data.startswith(b"RIFF") and len(data) >= 12:
        return RIFF_FORMS.get(data[8:12])

    if data[4:8] == b"ftyp":
        return FTYP_BRANDS.get(data[8:12])

    for magic_bytes, kind in MAGIC_BYTES.items():
        if data.startswith(magic_bytes):
            return kind

    return None


def _inspect_with_libmagic(data: bytes) -> Optional[FileKind]:
    import magic

    mime_type = magic.Magic(mime=True).from_buffer(data[:SNIFF_WINDOW])
    if not mime_type or mime_type in ("application/octet-stream", "application/x-empty"):
        return None

    extension = (mimetypes.guess_extension(mime_type) or "").lstrip(".")
    return FileKind(mime_type, extension or mime_type.split("/")[-1])


def detect(data: bytes) -> Optional[FileKind]:
    """Return the detected kind of `data`, or None if it is not recognised.

    Known image and audio signatures are matched first; anything else is
    handed to libmagic (python-magic).
    """
    if not data:
        return None

    kind = _match_signature(data)
    if kind is None:
        kind = _inspect_with_libmagic(data)
        logger.debug("libmagic detected %s", kind.mime_type if kind else "nothing")
    return kind


def is_image(data: bytes) -> bool:
    kind = detect(data)
    return kind is not None and kind.is_image


def is_audio(data: bytes) -> bool:
    kind = detect(data)
    return kind is not None and kind.is_audio
