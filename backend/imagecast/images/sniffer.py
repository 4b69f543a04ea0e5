"""Content-type sniffing from the leading bytes of a file.

Implements the signature table of the WHATWG MIME Sniffing standard (the same
table browsers and most HTTP stacks use): at most the first 512 bytes are
inspected, signatures are tried in order, and anything left over is labelled
either ``text/plain; charset=utf-8`` or ``application/octet-stream``.

Only the leading bytes matter, so callers can pass a short sample::

    >>> detect_content_type(b"\\x89PNG\\r\\n\\x1a\\n" + b"\\x00" * 8)
    'image/png'
    >>> detect_content_type(b"MZ\\x90\\x00\\x03\\x00")
    'application/octet-stream'
"""
from dataclasses import dataclass
from typing import Optional, Tuple

SNIFF_LEN = 512

GENERIC_BINARY = "application/octet-stream"
PLAIN_TEXT = "text/plain; charset=utf-8"

_WHITESPACE = b"\t\n\x0c\r "
_TAG_TERMINATORS = b" >"


@dataclass(frozen=True)
class _ExactSig:
    prefix: bytes
    content_type: str

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if data.startswith(self.prefix):
            return self.content_type
        return None


@dataclass(frozen=True)
class _MaskedSig:
    """Pattern compared under a byte mask; zero mask bytes are wildcards."""
    pattern: bytes
    mask: bytes
    content_type: str
    skip_ws: bool = False

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if self.skip_ws:
            data = data[first_non_ws:]
        if len(data) < len(self.pattern):
            return None
        for pat, mask, byte in zip(self.pattern, self.mask, data):
            if byte & mask != pat:
                return None
        return self.content_type


@dataclass(frozen=True)
class _HtmlSig:
    """Case-insensitive tag opener that must be followed by space or '>'."""
    tag: bytes

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        data = data[first_non_ws:]
        if len(data) < len(self.tag) + 1:
            return None
        for expected, byte in zip(self.tag, data):
            if ord("A") <= expected <= ord("Z"):
                byte &= 0xDF
            if expected != byte:
                return None
        if data[len(self.tag)] not in _TAG_TERMINATORS:
            return None
        return "text/html; charset=utf-8"


class _Mp4Sig:
    """ISO base media file with an ``mp4*`` brand in its ``ftyp`` box."""

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        if len(data) < 12:
            return None
        box_size = int.from_bytes(data[:4], "big")
        if len(data) < box_size or box_size % 4 != 0:
            return None
        if data[4:8] != b"ftyp":
            return None
        for start in range(8, box_size, 4):
            if start == 12:
                # minor version, not a brand
                continue
            if data[start:start + 3] == b"mp4":
                return "video/mp4"
        return None


class _TextSig:
    """Matches when no binary control bytes follow the leading whitespace."""

    def match(self, data: bytes, first_non_ws: int) -> Optional[str]:
        for byte in data[first_non_ws:]:
            if (
                byte <= 0x08
                or byte == 0x0B
                or 0x0E <= byte <= 0x1A
                or 0x1C <= byte <= 0x1F
            ):
                return None
        return PLAIN_TEXT


def _riff(kind: bytes, content_type: str) -> _MaskedSig:
    return _MaskedSig(
        pattern=b"RIFF\x00\x00\x00\x00" + kind,
        mask=b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00" + b"\xFF" * len(kind),
        content_type=content_type,
    )


_HTML_TAGS = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1",
    b"<DIV", b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B",
    b"<BODY", b"<BR", b"<P", b"<!--",
)

_SIGNATURES: Tuple = (
    *(_HtmlSig(tag) for tag in _HTML_TAGS),
    _MaskedSig(b"<?xml", b"\xFF" * 5, "text/xml; charset=utf-8", skip_ws=True),
    _ExactSig(b"%PDF-", "application/pdf"),
    _ExactSig(b"%!PS-Adobe-", "application/postscript"),

    # Byte-order marks
    _MaskedSig(b"\xFE\xFF\x00\x00", b"\xFF\xFF\x00\x00", "text/plain; charset=utf-16be"),
    _MaskedSig(b"\xFF\xFE\x00\x00", b"\xFF\xFF\x00\x00", "text/plain; charset=utf-16le"),
    _MaskedSig(b"\xEF\xBB\xBF\x00", b"\xFF\xFF\xFF\x00", PLAIN_TEXT),

    # Images
    _ExactSig(b"\x00\x00\x01\x00", "image/x-icon"),
    _ExactSig(b"\x00\x00\x02\x00", "image/x-icon"),
    _ExactSig(b"BM", "image/bmp"),
    _ExactSig(b"GIF87a", "image/gif"),
    _ExactSig(b"GIF89a", "image/gif"),
    _riff(b"WEBPVP", "image/webp"),
    _ExactSig(b"\x89PNG\x0D\x0A\x1A\x0A", "image/png"),
    _ExactSig(b"\xFF\xD8\xFF", "image/jpeg"),

    # Audio and video
    _MaskedSig(
        b"FORM\x00\x00\x00\x00AIFF",
        b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF",
        "audio/aiff",
    ),
    _ExactSig(b"ID3", "audio/mpeg"),
    _ExactSig(b"OggS\x00", "application/ogg"),
    _ExactSig(b"MThd\x00\x00\x00\x06", "audio/midi"),
    _riff(b"AVI ", "video/avi"),
    _riff(b"WAVE", "audio/wave"),
    _Mp4Sig(),
    _ExactSig(b"\x1A\x45\xDF\xA3", "video/webm"),

    # Fonts
    _MaskedSig(b"\x00" * 34 + b"LP", b"\x00" * 34 + b"\xFF\xFF", "application/vnd.ms-fontobject"),
    _ExactSig(b"\x00\x01\x00\x00", "font/ttf"),
    _ExactSig(b"OTTO", "font/otf"),
    _ExactSig(b"ttcf", "font/collection"),
    _ExactSig(b"wOFF", "font/woff"),
    _ExactSig(b"wOF2", "font/woff2"),

    # Archives
    _ExactSig(b"\x1F\x8B\x08", "application/x-gzip"),
    _ExactSig(b"PK\x03\x04", "application/zip"),
    _ExactSig(b"Rar!\x1A\x07\x00", "application/x-rar-compressed"),
    _ExactSig(b"Rar!\x1A\x07\x01\x00", "application/x-rar-compressed"),
    _ExactSig(b"\x00asm", "application/wasm"),

    _TextSig(),
)


def detect_content_type(data: bytes) -> str:
    """Return the sniffed MIME type of *data*.

    Never fails: unrecognised binary content is ``application/octet-stream``
    and empty input counts as plain text.
    """
    data = bytes(data[:SNIFF_LEN])

    first_non_ws = 0
    while first_non_ws < len(data) and data[first_non_ws] in _WHITESPACE:
        first_non_ws += 1

    for sig in _SIGNATURES:
        content_type = sig.match(data, first_non_ws)
        if content_type:
            return content_type
    return GENERIC_BINARY
