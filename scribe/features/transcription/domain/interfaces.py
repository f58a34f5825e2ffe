from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator
from .models import TranscriptSegment

class IRecognitionEngine(ABC):
    """
    Contract for any ASR (Automatic Speech Recognition) engine.
    Allows us to swap Whisper for Faster-Whisper or API-based solutions later.
    """
    @abstractmethod
    def process(self, audio_path: Path) -> Iterator[TranscriptSegment]:
        """
        Recognizes speech in a 16 kHz mono PCM WAV file.

        Args:
            audio_path: Path to the normalized audio.

        Returns:
            A finite, single-use iterator of segments in time order.
        """
        pass

    @abstractmethod
    def release(self) -> None:
        """Drops the loaded model. The engine is unusable afterwards."""
        pass
