# File: scribe/features/chunked_session/service/reassembler.py

import logging
import re
from threading import Lock
from typing import Iterable

from ..domain.models import NO_SPEECH_PLACEHOLDER, ChunkSession

logger = logging.getLogger(__name__)

BLANK_AUDIO_MARKER = "[BLANK_AUDIO]"

# "00:00:01.5->00:00:02: " at the start of a formatted segment
_TIMESTAMP_PREFIX = re.compile(r"^\d{2}:\d{2}:\d{2}(?:\.\d+)?->\d{2}:\d{2}:\d{2}(?:\.\d+)?:\s*")


def clean_transcription_text(text: str) -> str:
    """Strips the segment timestamp prefix and a leading dialogue dash."""
    cleaned = _TIMESTAMP_PREFIX.sub("", text.strip())
    if cleaned.startswith("- "):
        cleaned = cleaned[2:]
    return cleaned.strip()


def extract_chunk_text(lines: Iterable[str]) -> str:
    """Collapses one chunk's formatted segments into a single display line."""
    parts = [clean_transcription_text(line) for line in lines]
    text = " ".join(part for part in parts if part)
    if not text or text == BLANK_AUDIO_MARKER:
        return NO_SPEECH_PLACEHOLDER
    return text


class ChunkReassembler:
    """
    Per-session buffer that presents out-of-order chunk results in chunk order.

    store() may be called from any worker thread; render() drains every
    contiguous index starting at next_expected_index and returns the whole
    transcript rendered so far, one line per chunk.
    """

    def __init__(self, session_id: str):
        self._lock = Lock()
        self._session = ChunkSession(session_id=session_id)

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def next_expected_index(self) -> int:
        return self._session.next_expected_index

    @property
    def pending_indices(self):
        with self._lock:
            return sorted(self._session.pending)

    def reset(self) -> None:
        with self._lock:
            self._session = ChunkSession(session_id=self._session.session_id)

    def store(self, chunk_index: int, text: str) -> None:
        if chunk_index < 0:
            raise ValueError(f"Chunk index must be non-negative, got {chunk_index}")
        with self._lock:
            if chunk_index < self._session.next_expected_index:
                # Already rendered; the display line cannot move
                logger.warning(f"Session {self.session_id}: ignoring late duplicate of chunk {chunk_index}")
                return
            self._session.pending[chunk_index] = text

    def render(self) -> str:
        with self._lock:
            session = self._session
            while session.next_expected_index in session.pending:
                session.rendered.append(session.pending.pop(session.next_expected_index))
                session.next_expected_index += 1
            return "".join(f"{line}\n" for line in session.rendered)
