from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

class IChunkSource(ABC):
    """
    Contract for whatever slices a live recording into chunk files
    (microphone recorder, file splitter, test fixture).
    """
    @abstractmethod
    def record_chunk(self, session_id: str, chunk_index: int) -> Optional[Path]:
        """
        Closes the audio captured since the previous call into a file.

        Returns:
            Path to the chunk, or None if nothing was captured this interval.
        """
        pass

    def discard_chunk(self, path: Path) -> None:
        """Called once the chunk has been transcribed. Default: delete it."""
        path.unlink(missing_ok=True)
