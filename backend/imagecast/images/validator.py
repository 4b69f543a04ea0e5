"""Upload validation by content sniffing.

The client-declared Content-Type is ignored; only the leading bytes of the
upload decide whether it is accepted.
"""
import io
import logging
from typing import BinaryIO, FrozenSet, Mapping

from .errors import ReadError, UnsupportedTypeError
from .schemas import ALLOWED_MIME_TYPES
from .sniffer import GENERIC_BINARY, SNIFF_LEN, detect_content_type

logger = logging.getLogger(__name__)


class UploadValidator:
    """Checks upload streams against a MIME allow-list.

    Args:
        allow_generic_binary: Accept content sniffed as
            ``application/octet-stream``. When False only recognised image
            formats pass.
        allowed_types: Allow-list to start from (defaults to
            ``ALLOWED_MIME_TYPES``).
    """

    def __init__(
        self,
        allow_generic_binary: bool = True,
        allowed_types: Mapping[str, bool] = ALLOWED_MIME_TYPES,
    ) -> None:
        allowed = {mime for mime, permitted in allowed_types.items() if permitted}
        if not allow_generic_binary:
            allowed.discard(GENERIC_BINARY)
        self._allowed: FrozenSet[str] = frozenset(allowed)

    @property
    def allowed_types(self) -> FrozenSet[str]:
        return self._allowed

    def is_allowed(self, mime_type: str) -> bool:
        return mime_type in self._allowed

    def validate(self, stream: BinaryIO) -> str:
        """Sniff *stream* and rewind it to the start.

        Returns:
            The detected MIME type.

        Raises:
            ReadError: If the stream is empty, unreadable or cannot be rewound.
            UnsupportedTypeError: If the detected type is not allowed.
        """
        sample = self._read_sample(stream)
        # Short uploads are sniffed as a zero-filled SNIFF_LEN buffer.
        mime_type = detect_content_type(sample.ljust(SNIFF_LEN, b"\x00"))

        if not self.is_allowed(mime_type):
            logger.warning("Rejected upload with sniffed type %s", mime_type)
            raise UnsupportedTypeError(mime_type)

        try:
            stream.seek(0, io.SEEK_SET)
        except (OSError, ValueError) as exc:
            logger.error("Failed to rewind upload stream: %s", exc)
            raise ReadError("Error processing file") from exc

        logger.debug("Upload accepted as %s (%d byte sample)", mime_type, len(sample))
        return mime_type

    @staticmethod
    def _read_sample(stream: BinaryIO) -> bytes:
        """Read up to SNIFF_LEN bytes, tolerating short reads."""
        sample = b""
        try:
            while len(sample) < SNIFF_LEN:
                chunk = stream.read(SNIFF_LEN - len(sample))
                if not chunk:
                    break
                sample += chunk
        except (OSError, ValueError) as exc:
            logger.error("Failed to read upload sample: %s", exc)
            raise ReadError("Error reading file content") from exc

        if not sample:
            raise ReadError("Error reading file content")
        return sample
