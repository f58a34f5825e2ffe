from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

class ITranscoder(ABC):
    """
    Contract for the external tool that turns arbitrary audio into
    recognition-ready WAV.
    """

    @abstractmethod
    def convert(self, input_path: Path) -> str:
        """
        Converts the input to 16 kHz mono PCM WAV.

        Returns:
            Path of the new WAV file, or "" when conversion failed.
            Failure is signalled by the empty string, never by raising.
        """
        pass

    @abstractmethod
    def probe_duration(self, path: Path) -> Optional[float]:
        """Returns the media duration in seconds, or None if it cannot be determined."""
        pass
