# File: tests/conftest.py

import pytest
import shutil
import struct
import threading
import time
import uuid
import wave
from pathlib import Path
from typing import List, Optional

from scribe.core.model_lifecycle.orchestrator import EngineManager
from scribe.features.audio_normalization.domain.interfaces import ITranscoder
from scribe.features.audio_normalization.service.normalizer import AudioNormalizer
from scribe.features.metrics.data.json_store import JsonMetricsStore
from scribe.features.transcription.domain.interfaces import IRecognitionEngine
from scribe.features.transcription.domain.models import TranscriptSegment
from scribe.features.transcription.service.api import TranscriptionService


# --- Audio fixture writers ---

def write_wav(path: Path, seconds: float = 1.0, sample_rate: int = 16000) -> Path:
    """Writes 16-bit mono silence."""
    path.parent.mkdir(parents=True, exist_ok=True)
    frames = int(seconds * sample_rate)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b"\x00\x00" * frames)
    return path


def write_caf(path: Path, payload_bytes: int = 256) -> Path:
    """Writes something that sniffs as CAF. Not playable, only the header matters."""
    path.parent.mkdir(parents=True, exist_ok=True)
    header = b"caff" + struct.pack(">HH", 1, 0) + b"desc"
    path.write_bytes(header + b"\x00" * payload_bytes)
    return path


def wav_duration(path: Path) -> float:
    with wave.open(str(path), "rb") as wav:
        return wav.getnframes() / float(wav.getframerate())


# --- Fakes ---

class FakeEngine(IRecognitionEngine):
    """Recognition engine that replays canned segments."""

    def __init__(self, model_path: Path, segments: Optional[List[TranscriptSegment]] = None,
                 fail_with: Optional[Exception] = None, delay: float = 0.0):
        self.model_path = Path(model_path)
        self.segments = segments if segments is not None else [
            TranscriptSegment(0.0, 1.5, f"hello from {self.model_path.stem}")
        ]
        self.fail_with = fail_with
        self.delay = delay
        self.released = False
        self.calls = 0

    def process(self, audio_path: Path):
        if self.released:
            raise RuntimeError("engine used after release")
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        for segment in self.segments:
            yield segment

    def release(self) -> None:
        self.released = True


class FakeEngineFactory:
    """Builds FakeEngines and remembers them; model stems listed in `broken` fail to load."""

    def __init__(self, **engine_kwargs):
        self.engine_kwargs = engine_kwargs
        self.created: List[FakeEngine] = []
        self.broken = set()
        self._lock = threading.Lock()

    def __call__(self, model_path: Path) -> FakeEngine:
        if Path(model_path).stem in self.broken:
            raise ValueError(f"corrupt checkpoint: {model_path}")
        engine = FakeEngine(model_path, **self.engine_kwargs)
        with self._lock:
            self.created.append(engine)
        return engine


class FakeTranscoder(ITranscoder):
    """
    Stands in for ffmpeg. convert() emits a 1s silent WAV unless `working` is False,
    in which case it returns "" like a missing ffmpeg would.
    """

    def __init__(self, output_dir: Path, working: bool = True, seconds: float = 1.0):
        self.output_dir = Path(output_dir)
        self.working = working
        self.seconds = seconds
        self.convert_calls: List[Path] = []

    def convert(self, input_path: Path) -> str:
        self.convert_calls.append(Path(input_path))
        if not self.working:
            return ""
        return str(write_wav(self.output_dir / f"{uuid.uuid4().hex}.wav", self.seconds))

    def probe_duration(self, path: Path) -> Optional[float]:
        try:
            return wav_duration(Path(path))
        except (wave.Error, EOFError, OSError):
            return None


def ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None and shutil.which("ffprobe") is not None


# --- Fixtures ---

@pytest.fixture
def models_dir(tmp_path):
    """A models directory with two (fake) checkpoints."""
    directory = tmp_path / "models"
    directory.mkdir()
    (directory / "tiny.pt").write_bytes(b"\x00" * 1536)
    (directory / "base-q5_k.pt").write_bytes(b"\x00" * 2048)
    return directory


@pytest.fixture
def engine_factory():
    return FakeEngineFactory()


@pytest.fixture
def engine_manager(models_dir, engine_factory):
    manager = EngineManager(engine_factory, model_path=str(models_dir / "tiny.pt"),
                            models_dir=models_dir, model_suffix=".pt")
    yield manager
    manager.shutdown()


@pytest.fixture
def transcoder(tmp_path):
    return FakeTranscoder(tmp_path / "converted")


@pytest.fixture
def normalizer(transcoder):
    return AudioNormalizer(transcoder=transcoder)


@pytest.fixture
def metrics_store(tmp_path):
    return JsonMetricsStore(tmp_path / "Metrics" / "transcription-metrics.json")


@pytest.fixture
def service(engine_manager, normalizer, metrics_store, tmp_path):
    return TranscriptionService(
        engine_manager=engine_manager,
        normalizer=normalizer,
        metrics_store=metrics_store,
        upload_dir=tmp_path / "uploads"
    )


@pytest.fixture
def silent_wav(tmp_path):
    return write_wav(tmp_path / "silence.wav", seconds=3.0)


@pytest.fixture
def caf_file(tmp_path):
    return write_caf(tmp_path / "recording.caf")


@pytest.fixture
def make_wav():
    return write_wav


@pytest.fixture
def make_caf():
    return write_caf


@pytest.fixture
def fakes():
    """Access to the fake classes without importing conftest."""
    class _Fakes:
        Engine = FakeEngine
        EngineFactory = FakeEngineFactory
        Transcoder = FakeTranscoder
        wav_duration = staticmethod(wav_duration)
        ffmpeg_available = staticmethod(ffmpeg_available)
    return _Fakes
