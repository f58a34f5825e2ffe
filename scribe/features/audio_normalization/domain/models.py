from dataclasses import dataclass
from enum import Enum
from typing import Optional

from scribe.core.common.enums import AudioFormat
from scribe.core.shared_types import AudioAsset

@dataclass(frozen=True)
class TranscodeConfig:
    """
    Target encoding for the recognition engine.
    Whisper expects 16 kHz mono signed 16-bit PCM.
    """
    sample_rate_hz: int = 16000
    channels: int = 1
    codec: str = "pcm_s16le"

class NormalizationKind(str, Enum):
    WAV = "wav"
    CONVERTED = "converted"
    FAILED = "failed"

@dataclass(frozen=True)
class NormalizationResult:
    """
    Tagged outcome of the normalization cascade.

    WAV: the original asset is usable as-is (recovered=True when that was only
    discovered after a failed conversion).
    CONVERTED: asset points at a new temporary WAV owned by the caller.
    FAILED: reason explains why, asset is None.
    """
    kind: NormalizationKind
    detected_format: AudioFormat
    asset: Optional[AudioAsset] = None
    reason: Optional[str] = None
    recovered: bool = False

    @classmethod
    def wav(cls, asset: AudioAsset, detected_format: AudioFormat = AudioFormat.WAV, recovered: bool = False):
        return cls(NormalizationKind.WAV, detected_format, asset=asset, recovered=recovered)

    @classmethod
    def converted(cls, asset: AudioAsset, detected_format: AudioFormat):
        return cls(NormalizationKind.CONVERTED, detected_format, asset=asset)

    @classmethod
    def failed(cls, detected_format: AudioFormat, reason: str):
        return cls(NormalizationKind.FAILED, detected_format, reason=reason)

    @property
    def ok(self) -> bool:
        return self.kind != NormalizationKind.FAILED
