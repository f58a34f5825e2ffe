import logging
import uuid
from threading import Lock
from typing import Dict, Optional

from scribe.core.exceptions import SessionUnknown
from .reassembler import ChunkReassembler

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps session ids to their reassemblers. Sessions live until the registry does."""

    def __init__(self):
        self._lock = Lock()
        self._sessions: Dict[str, ChunkReassembler] = {}

    def open(self, session_id: Optional[str] = None) -> ChunkReassembler:
        """Starts a session, resetting it if the id is already known."""
        session_id = session_id or str(uuid.uuid4())
        with self._lock:
            reassembler = self._sessions.get(session_id)
            if reassembler is None:
                reassembler = ChunkReassembler(session_id)
                self._sessions[session_id] = reassembler
                logger.info(f"Opened transcription session {session_id}")
            else:
                reassembler.reset()
                logger.info(f"Reset transcription session {session_id}")
            return reassembler

    def get(self, session_id: str) -> ChunkReassembler:
        with self._lock:
            reassembler = self._sessions.get(session_id)
        if reassembler is None:
            raise SessionUnknown(session_id)
        return reassembler

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions
