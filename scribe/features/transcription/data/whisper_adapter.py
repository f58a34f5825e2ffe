# File: scribe/features/transcription/data/whisper_adapter.py
import whisper
import torch
import logging
from pathlib import Path
from typing import Iterator, Optional
from scribe.core.config.settings import settings
from ..domain.interfaces import IRecognitionEngine
from ..domain.models import TranscriptSegment

logger = logging.getLogger(__name__)

class WhisperEngine(IRecognitionEngine):
    def __init__(self, model, device: str, language: Optional[str] = None):
        self._model = model
        self.device = device
        # Whisper detects the language itself when given None
        self.language = None if not language or language == "auto" else language

    @classmethod
    def load(cls, model_path: Path, device: Optional[str] = None,
             language: Optional[str] = None) -> "WhisperEngine":
        """Engine factory handed to EngineManager. Raises whatever Whisper raises on a bad checkpoint."""
        device = device or settings.WHISPER_DEVICE
        if device == "cuda" and not torch.cuda.is_available():
            logger.warning("CUDA requested but not available, falling back to CPU")
            device = "cpu"

        logger.debug(f"Loading Whisper checkpoint {model_path} into {device}...")
        model = whisper.load_model(str(model_path), device=device)
        return cls(model, device, language or settings.WHISPER_LANGUAGE)

    def process(self, audio_path: Path) -> Iterator[TranscriptSegment]:
        if self._model is None:
            raise RuntimeError("Whisper model has been released")

        logger.info(f"Running Whisper on {audio_path} (language: {self.language or 'auto'})...")
        result_raw = self._model.transcribe(
            str(audio_path),
            fp16=(self.device == "cuda"),
            language=self.language
        )

        for seg in result_raw.get('segments', []):
            yield TranscriptSegment(
                start=float(seg['start']),
                end=float(seg['end']),
                text=seg['text'].strip()
            )

    def release(self) -> None:
        self._model = None
