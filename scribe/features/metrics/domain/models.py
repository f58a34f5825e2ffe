# File: scribe/features/metrics/domain/models.py
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now():
    return datetime.now(timezone.utc)


# Persisted keys are camelCase; attributes stay snake_case.
_JSON_KEYS = {
    "timestamp": "timestamp",
    "model_name": "modelName",
    "transcription_type": "transcriptionType",
    "session_id": "sessionId",
    "chunk_index": "chunkIndex",
    "file_size_bytes": "fileSizeBytes",
    "audio_duration_seconds": "audioDurationSeconds",
    "total_time_ms": "totalTimeMs",
    "preprocessing_time_ms": "preprocessingTimeMs",
    "transcription_time_ms": "transcriptionTimeMs",
    "success": "success",
    "error_message": "errorMessage",
    "transcribed_text": "transcribedText",
}


@dataclass(frozen=True)
class MetricsRecord:
    """
    Telemetry for one transcription attempt, successful or not.
    Never mutated after it is appended to the store.
    """
    model_name: str
    transcription_type: str
    session_id: str
    file_size_bytes: int
    total_time_ms: int
    preprocessing_time_ms: int
    transcription_time_ms: int
    success: bool
    transcribed_text: str = ""
    chunk_index: Optional[int] = None
    audio_duration_seconds: Optional[float] = None
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return {_JSON_KEYS[key]: value for key, value in data.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricsRecord":
        values = {attr: data.get(key) for attr, key in _JSON_KEYS.items()}
        timestamp = values.pop("timestamp")
        return cls(
            model_name=values["model_name"] or "",
            transcription_type=values["transcription_type"] or "",
            session_id=values["session_id"] or "",
            file_size_bytes=int(values["file_size_bytes"] or 0),
            total_time_ms=int(values["total_time_ms"] or 0),
            preprocessing_time_ms=int(values["preprocessing_time_ms"] or 0),
            transcription_time_ms=int(values["transcription_time_ms"] or 0),
            success=bool(values["success"]),
            transcribed_text=values["transcribed_text"] or "",
            chunk_index=values["chunk_index"],
            audio_duration_seconds=values["audio_duration_seconds"],
            error_message=values["error_message"],
            timestamp=datetime.fromisoformat(timestamp) if timestamp else utc_now()
        )
