# File: scribe/features/transcription/domain/models.py
from dataclasses import dataclass, field
from typing import List, Optional

from scribe.features.metrics.domain.models import MetricsRecord


def format_offset(seconds: float) -> str:
    """
    Renders an offset as HH:MM:SS, or HH:MM:SS.ffffff when it has a fractional part.
    Hours are not wrapped at 24.
    """
    micros_total = int(round(seconds * 1_000_000))
    whole, micros = divmod(micros_total, 1_000_000)
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    text = f"{hours:02d}:{minutes:02d}:{secs:02d}"
    if micros:
        text += f".{micros:06d}"
    return text


@dataclass(frozen=True)
class TranscriptSegment:
    """
    A phrase with its start/end offsets (seconds) inside the recognized audio.
    """
    start: float
    end: float
    text: str

    def formatted(self) -> str:
        return f"{format_offset(self.start)}->{format_offset(self.end)}: {self.text}"


@dataclass(frozen=True)
class TranscriptionOutcome:
    """
    Result of one recognition pass plus the telemetry written for it.
    `metrics` is None only if the record could not be built.
    """
    segments: List[TranscriptSegment] = field(default_factory=list)
    metrics: Optional[MetricsRecord] = None
    cancelled: bool = False

    @property
    def lines(self) -> List[str]:
        return [segment.formatted() for segment in self.segments]

    @property
    def texts(self) -> List[str]:
        return [segment.text for segment in self.segments]

    @property
    def text(self) -> str:
        # One-shot rendering: formatted segments back to back
        return "".join(self.lines)
