# File: scribe/core/config/settings.py

import os
import shutil
import tempfile
from pathlib import Path


class Settings:
    # --- Paths ---
    # scribe/core/config/settings.py -> scribe/core/config -> scribe/core -> scribe -> ROOT
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    TRANSCODE_DIR: Path = Path(os.getenv("SCRIBE_TRANSCODE_DIR", tempfile.gettempdir()))

    # --- External Tools ---
    # Auto-detect ffmpeg/ffprobe or use env var
    FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY_PATH", shutil.which("ffmpeg") or "ffmpeg")
    FFPROBE_BINARY: str = os.getenv("FFPROBE_BINARY_PATH", shutil.which("ffprobe") or "ffprobe")

    # --- Model Configuration ---
    MODELS_DIR: Path = Path(os.getenv("SCRIBE_MODELS_DIR", str(BASE_DIR / "models" / "whisper")))
    WHISPER_MODEL_PATH: str = os.getenv("WHISPER_MODEL_PATH", "models/whisper/base.pt")
    WHISPER_MODEL_SUFFIX: str = os.getenv("WHISPER_MODEL_SUFFIX", ".pt")
    WHISPER_DEVICE: str = "cuda" if os.getenv("USE_CUDA", "true").lower() == "true" else "cpu"
    # "auto" lets Whisper detect the spoken language
    WHISPER_LANGUAGE: str = os.getenv("WHISPER_LANGUAGE", "auto")

    # --- Metrics ---
    METRICS_PATH: Path = Path(os.getenv("METRICS_PATH", "Metrics/transcription-metrics.json"))

    # --- Streaming Sessions ---
    CHUNK_INTERVAL_SECONDS: float = float(os.getenv("CHUNK_INTERVAL_SECONDS", "2.0"))
    CHUNK_WORKERS: int = int(os.getenv("CHUNK_WORKERS", "4"))

    def resolve_model_path(self, model_path: str) -> Path:
        """
        Resolves a configured model path.
        Relative paths are anchored at the project root, not the working directory.
        """
        path = Path(model_path)
        if path.is_absolute():
            return path
        return (self.BASE_DIR / path).resolve()

    def ensure_dirs(self):
        """Creates necessary data directories if they don't exist."""
        self.MODELS_DIR.mkdir(parents=True, exist_ok=True)
        self.TRANSCODE_DIR.mkdir(parents=True, exist_ok=True)
        self.METRICS_PATH.parent.mkdir(parents=True, exist_ok=True)


settings = Settings()
