"""Error taxonomy for the transcription pipeline."""


class ScribeError(Exception):
    """Base class for every pipeline failure."""
    pass


class InvalidAsset(ScribeError):
    """The input audio is missing, empty, or too short to classify."""
    pass


class ConversionFailed(ScribeError):
    """Normalization exhausted its fallback cascade."""
    pass


class ModelNotFound(ScribeError):
    """The configured or requested model file does not exist."""
    pass


class EngineConstructionFailed(ScribeError):
    """The recognition engine rejected the model file."""
    pass


class TranscriptionFailed(ScribeError):
    """The recognition pass itself failed."""
    pass


class TranscriptionCancelled(ScribeError):
    """The caller cancelled the call before any step completed."""
    pass


class SessionUnknown(ScribeError):
    """A chunk or render request addressed a session that was never opened."""

    def __init__(self, session_id: str):
        super().__init__(f"Unknown transcription session: {session_id}")
        self.session_id = session_id
