# File: scribe/features/transcription/service/api.py

import logging
import uuid
from pathlib import Path
from threading import Event
from typing import List, Optional, Union

from scribe.core.common.enums import TranscriptionType
from scribe.core.config.settings import settings
from scribe.core.exceptions import InvalidAsset, ScribeError
from scribe.core.model_lifecycle.orchestrator import EngineManager
from scribe.core.model_lifecycle.types import ModelDetails, ModelInfo
from scribe.core.shared_types import AudioAsset
from scribe.features.audio_normalization.service.normalizer import AudioNormalizer
from scribe.features.chunked_session.domain.models import ChunkResult, chunk_error_text
from scribe.features.chunked_session.service.reassembler import extract_chunk_text
from scribe.features.chunked_session.service.registry import SessionRegistry
from scribe.features.metrics.data.json_store import JsonMetricsStore
from scribe.features.metrics.domain.interfaces import IMetricsStore
from scribe.features.metrics.domain.models import MetricsRecord
from ..data.whisper_adapter import WhisperEngine
from ..domain.models import TranscriptionOutcome
from .coordinator import TranscriptionCoordinator

logger = logging.getLogger(__name__)


class TranscriptionService:
    """
    Public surface of the pipeline, consumed by the request layer and the CLI.
    Thread-safe: one instance serves every concurrent request.
    """

    def __init__(self,
                 engine_manager: Optional[EngineManager] = None,
                 normalizer: Optional[AudioNormalizer] = None,
                 metrics_store: Optional[IMetricsStore] = None,
                 sessions: Optional[SessionRegistry] = None,
                 upload_dir: Optional[Path] = None):
        self.engine_manager = engine_manager or EngineManager(WhisperEngine.load, models_dir=settings.MODELS_DIR)
        self.normalizer = normalizer or AudioNormalizer()
        self.metrics_store = metrics_store or JsonMetricsStore()
        self.sessions = sessions or SessionRegistry()
        self.upload_dir = Path(upload_dir or settings.TRANSCODE_DIR)
        self.coordinator = TranscriptionCoordinator(self.normalizer, self.engine_manager, self.metrics_store)

    # --- Transcription ---

    def transcribe(self,
                   path: Union[str, Path],
                   transcription_type: Union[TranscriptionType, str] = TranscriptionType.FILE_UPLOAD,
                   session_id: Optional[str] = None,
                   chunk_index: Optional[int] = None,
                   cancel_event: Optional[Event] = None) -> TranscriptionOutcome:
        """Full outcome (segments, metrics record, cancellation flag) for one file."""
        return self.coordinator.transcribe(
            AudioAsset(Path(path)),
            transcription_type=transcription_type,
            session_id=session_id,
            chunk_index=chunk_index,
            cancel_event=cancel_event
        )

    def transcribe_one_shot(self,
                            path: Union[str, Path],
                            transcription_type: Union[TranscriptionType, str] = TranscriptionType.FILE_UPLOAD,
                            session_id: Optional[str] = None,
                            chunk_index: Optional[int] = None,
                            cancel_event: Optional[Event] = None) -> List[str]:
        """Returns segments formatted as "HH:MM:SS->HH:MM:SS: text"."""
        return self.transcribe(path, transcription_type, session_id, chunk_index, cancel_event).lines

    def transcribe_upload(self,
                          data: bytes,
                          filename: str,
                          transcription_type: Union[TranscriptionType, str] = TranscriptionType.FILE_UPLOAD,
                          session_id: Optional[str] = None,
                          chunk_index: Optional[int] = None,
                          cancel_event: Optional[Event] = None) -> List[str]:
        """
        One-shot transcription of in-memory bytes. The bytes are spooled to a
        uniquely named temp file that is always removed afterwards.
        """
        if not data:
            raise InvalidAsset("No audio file provided")

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        temp_path = self.upload_dir / f"{uuid.uuid4().hex}_{Path(filename).name or 'upload'}"
        try:
            temp_path.write_bytes(data)
            return self.transcribe_one_shot(temp_path, transcription_type, session_id, chunk_index, cancel_event)
        finally:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to delete temporary upload {temp_path}: {e}")

    # --- Chunked sessions ---

    def open_session(self, session_id: Optional[str] = None) -> str:
        """Starts (or restarts) a live session and returns its id."""
        return self.sessions.open(session_id).session_id

    def transcribe_chunk(self, path: Union[str, Path], session_id: str, chunk_index: int) -> ChunkResult:
        """
        Transcribes one chunk of a live session and folds it into the session's transcript.

        A failing chunk is stored as an error line so later chunks still render;
        the failure is reported through ChunkResult.error.

        Raises:
            SessionUnknown: If the session was never opened.
        """
        reassembler = self.sessions.get(session_id)

        error = None
        try:
            outcome = self.coordinator.transcribe(
                AudioAsset(Path(path)),
                transcription_type=TranscriptionType.STREAMING,
                session_id=session_id,
                chunk_index=chunk_index
            )
            text = extract_chunk_text(outcome.lines)
        except (ScribeError, OSError) as e:
            logger.error(f"Error processing chunk {chunk_index} of session {session_id}: {e}")
            error = str(e)
            text = chunk_error_text(chunk_index, error)

        reassembler.store(chunk_index, text)
        transcript = reassembler.render()
        logger.debug(f"Session {session_id}: stored chunk {chunk_index}, "
                     f"next expected {reassembler.next_expected_index}")
        return ChunkResult(session_id=session_id, chunk_index=chunk_index,
                           text=text, transcript=transcript, error=error)

    def render_session(self, session_id: str) -> str:
        return self.sessions.get(session_id).render()

    # --- Models ---

    def switch_model(self, name: str) -> ModelDetails:
        self.engine_manager.switch_model(name)
        return self.engine_manager.details()

    def list_models(self) -> List[ModelInfo]:
        return self.engine_manager.list_models()

    def get_model_details(self) -> ModelDetails:
        return self.engine_manager.details()

    # --- Metrics ---

    def get_metrics(self) -> List[MetricsRecord]:
        return self.metrics_store.read_all()

    def clear_metrics(self) -> None:
        self.metrics_store.clear()

    def export_metrics(self, path: Optional[Path] = None) -> Path:
        return self.metrics_store.export(path)

    def shutdown(self) -> None:
        self.engine_manager.shutdown()
