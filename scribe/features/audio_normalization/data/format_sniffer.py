import logging
from pathlib import Path
from typing import BinaryIO, Union

from scribe.core.common.enums import AudioFormat
from scribe.core.exceptions import InvalidAsset

logger = logging.getLogger(__name__)

HEADER_SIZE = 12

ByteSource = Union[Path, str, BinaryIO]


def read_header(source: ByteSource) -> bytes:
    """
    Peeks at the first 12 bytes of a file or binary stream.

    Streams are rewound to where they were, so the caller can re-read them.

    Raises:
        InvalidAsset: If fewer than 12 bytes are available.
    """
    if isinstance(source, (str, Path)):
        with open(source, "rb") as f:
            header = f.read(HEADER_SIZE)
    else:
        position = source.tell()
        try:
            header = source.read(HEADER_SIZE)
        finally:
            source.seek(position)

    if len(header) < HEADER_SIZE:
        raise InvalidAsset(f"File too small to be a valid audio file ({len(header)} bytes)")
    return header


def classify_header(header: bytes) -> AudioFormat:
    if header[0:4] == b"RIFF" and header[8:12] == b"WAVE":
        return AudioFormat.WAV
    if header[0:4] == b"caff":
        return AudioFormat.CAF
    return AudioFormat.UNKNOWN


def describe_header(header: bytes) -> str:
    """Renders the two container tags as text for logs, e.g. 'RIFF/WAVE'."""
    first = header[0:4].decode("ascii", errors="replace")
    second = header[8:12].decode("ascii", errors="replace")
    return f"{first}/{second}"


def sniff_format(source: ByteSource) -> AudioFormat:
    header = read_header(source)
    audio_format = classify_header(header)
    logger.debug(f"Audio header {describe_header(header)} -> {audio_format.value}")
    return audio_format
