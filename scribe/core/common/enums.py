# File: scribe/core/common/enums.py

from enum import Enum, unique

@unique
class AudioFormat(str, Enum):
    WAV = "wav"
    CAF = "caf"
    UNKNOWN = "unknown"

@unique
class TranscriptionType(str, Enum):
    FILE_UPLOAD = "File Upload"
    STREAMING = "Streaming"
