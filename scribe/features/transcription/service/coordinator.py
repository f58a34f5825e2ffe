# File: scribe/features/transcription/service/coordinator.py

import logging
import time
import uuid
from threading import Event
from typing import List, Optional, Union

from scribe.core.common.enums import TranscriptionType
from scribe.core.exceptions import InvalidAsset, ScribeError, TranscriptionCancelled, TranscriptionFailed
from scribe.core.model_lifecycle.orchestrator import EngineManager
from scribe.core.shared_types import AudioAsset
from scribe.features.audio_normalization.service.normalizer import AudioNormalizer
from scribe.features.metrics.domain.interfaces import IMetricsStore
from scribe.features.metrics.domain.models import MetricsRecord
from ..domain.models import TranscriptSegment, TranscriptionOutcome

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Transcription cancelled"


def _elapsed_ms(since: float) -> int:
    return int((time.perf_counter() - since) * 1000)


class _Attempt:
    """Mutable scratchpad for one call; frozen into a MetricsRecord at the end."""

    def __init__(self, asset: AudioAsset):
        self.started = time.perf_counter()
        self.file_size_bytes = asset.size_bytes
        self.duration_seconds: Optional[float] = None
        self.preprocessing_ms = 0
        self.transcription_ms = 0
        self.segments: List[TranscriptSegment] = []
        self.model_name: Optional[str] = None
        self.interrupted = False


class TranscriptionCoordinator:
    """
    Request-scoped unit of work: normalize -> borrow engine -> recognize -> record metrics.

    Every attempt that gets past input validation leaves exactly one MetricsRecord,
    including failed ones. Telemetry is best-effort: a store failure is logged and
    the transcription result is still returned.
    """

    def __init__(self,
                 normalizer: AudioNormalizer,
                 engine_manager: EngineManager,
                 metrics_store: IMetricsStore):
        self.normalizer = normalizer
        self.engine_manager = engine_manager
        self.metrics_store = metrics_store

    def transcribe(self,
                   asset: AudioAsset,
                   transcription_type: Union[TranscriptionType, str] = TranscriptionType.FILE_UPLOAD,
                   session_id: Optional[str] = None,
                   chunk_index: Optional[int] = None,
                   cancel_event: Optional[Event] = None) -> TranscriptionOutcome:
        """
        Transcribes one asset.

        Cancellation is cooperative: if `cancel_event` is set before any step
        completes, TranscriptionCancelled is raised and nothing is recorded.
        Later, the call stops pulling segments and returns what it has with
        `cancelled=True`; the partial attempt is recorded as unsuccessful.

        Raises:
            InvalidAsset: Missing or empty input (no metrics are written).
            ConversionFailed, ModelNotFound, EngineConstructionFailed, TranscriptionFailed:
                After a failure record has been appended.
        """
        if not asset.exists():
            raise InvalidAsset(f"Audio file not found: {asset.path}")
        if asset.is_empty():
            raise InvalidAsset(f"Audio file is empty: {asset.path}")

        kind = transcription_type.value if isinstance(transcription_type, TranscriptionType) else transcription_type
        session_id = session_id or str(uuid.uuid4())
        cancelled = cancel_event.is_set if cancel_event is not None else (lambda: False)

        attempt = _Attempt(asset)
        normalized: Optional[AudioAsset] = None
        try:
            if cancelled():
                raise TranscriptionCancelled(f"Cancelled before processing {asset.path}")

            # 1. Duration (best-effort)
            attempt.duration_seconds = self._probe_duration(asset)

            # 2. Normalize
            step_start = time.perf_counter()
            normalized = self.normalizer.normalize(asset)
            attempt.preprocessing_ms = _elapsed_ms(step_start)

            # 3. Recognize
            if cancelled():
                attempt.interrupted = True
            else:
                step_start = time.perf_counter()
                self._recognize(normalized, attempt, cancelled)
                attempt.transcription_ms = _elapsed_ms(step_start)

        except TranscriptionCancelled:
            logger.info(f"Transcription of {asset.path} cancelled before any work was done")
            raise
        except InvalidAsset:
            # Unreadable header: nothing was attempted
            raise
        except ScribeError as e:
            self._record(self._build_record(attempt, kind, session_id, chunk_index, error=str(e)))
            raise
        except Exception as e:
            logger.exception(f"Unexpected error transcribing {asset.path}")
            self._record(self._build_record(attempt, kind, session_id, chunk_index, error=str(e) or type(e).__name__))
            raise TranscriptionFailed(f"Transcription failed: {e}") from e
        finally:
            # 4. Cleanup, success or failure
            self.normalizer.cleanup(asset, normalized)

        # 5. Record
        was_cancelled = attempt.interrupted
        if was_cancelled:
            logger.info(f"Transcription of {asset.path} cancelled after {len(attempt.segments)} segment(s)")
        record = self._build_record(
            attempt, kind, session_id, chunk_index,
            error=CANCELLED_MESSAGE if was_cancelled else None
        )
        self._record(record)
        return TranscriptionOutcome(segments=list(attempt.segments), metrics=record, cancelled=was_cancelled)

    def _recognize(self, normalized: AudioAsset, attempt: _Attempt, cancelled) -> None:
        with self.engine_manager.lease() as handle:
            # The model that actually served this call, even if a switch lands meanwhile
            attempt.model_name = handle.model_name
            try:
                for segment in handle.engine.process(normalized.path):
                    attempt.segments.append(segment)
                    if cancelled():
                        attempt.interrupted = True
                        break
            except ScribeError:
                raise
            except Exception as e:
                logger.error(f"Recognition failed for {normalized.path}: {e}")
                raise TranscriptionFailed(f"Transcription failed: {e}") from e
        logger.info(f"Recognized {len(attempt.segments)} segment(s) from {normalized.path}")

    def _probe_duration(self, asset: AudioAsset) -> Optional[float]:
        if asset.duration_seconds is not None:
            return asset.duration_seconds
        try:
            return self.normalizer.transcoder.probe_duration(asset.path)
        except Exception as e:
            logger.warning(f"Could not determine audio duration for {asset.path}: {e}")
            return None

    def _build_record(self, attempt: _Attempt, kind: str, session_id: str,
                      chunk_index: Optional[int], error: Optional[str] = None) -> MetricsRecord:
        return MetricsRecord(
            model_name=attempt.model_name or self.engine_manager.current_model_name,
            transcription_type=kind,
            session_id=session_id,
            chunk_index=chunk_index,
            file_size_bytes=attempt.file_size_bytes,
            audio_duration_seconds=attempt.duration_seconds,
            total_time_ms=_elapsed_ms(attempt.started),
            preprocessing_time_ms=attempt.preprocessing_ms,
            transcription_time_ms=attempt.transcription_ms,
            success=error is None,
            error_message=error,
            transcribed_text=" ".join(segment.text for segment in attempt.segments)
        )

    def _record(self, record: MetricsRecord) -> None:
        try:
            self.metrics_store.append(record)
        except Exception:
            logger.exception("Failed to record transcription metrics")
