# File: scribe/features/chunked_session/domain/models.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional

NO_SPEECH_PLACEHOLDER = "[No speech detected]"


def chunk_error_text(chunk_index: int, message: str) -> str:
    return f"Error in chunk {chunk_index}: {message}"


@dataclass
class ChunkSession:
    """
    Reassembly state of one live recording.

    Invariant: after a render pass, `pending` holds no index below
    `next_expected_index`; drained texts live in `rendered`, in chunk order.
    """
    session_id: str
    next_expected_index: int = 0
    pending: Dict[int, str] = field(default_factory=dict)
    rendered: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChunkResult:
    """
    What a single chunk submission produced.
    `transcript` is the full ordered transcript of the session so far.
    """
    session_id: str
    chunk_index: int
    text: str
    transcript: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
