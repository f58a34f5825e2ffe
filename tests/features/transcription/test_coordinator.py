import pytest
import threading
from pathlib import Path

from scribe.core.exceptions import (
    ConversionFailed,
    InvalidAsset,
    ModelNotFound,
    TranscriptionCancelled,
    TranscriptionFailed,
)
from scribe.core.model_lifecycle.orchestrator import EngineManager
from scribe.core.shared_types import AudioAsset
from scribe.features.audio_normalization.service.normalizer import AudioNormalizer
from scribe.features.transcription.domain.models import TranscriptSegment
from scribe.features.transcription.service.coordinator import CANCELLED_MESSAGE, TranscriptionCoordinator

# --- Fixtures ---

@pytest.fixture
def coordinator(normalizer, engine_manager, metrics_store):
    return TranscriptionCoordinator(normalizer, engine_manager, metrics_store)


def make_manager(models_dir, factory):
    return EngineManager(factory, model_path=str(models_dir / "tiny.pt"), models_dir=models_dir)

# --- Tests ---

def test_successful_transcription_records_metrics(coordinator, metrics_store, silent_wav):
    """
    Verifies:
    1. Segments come back in order.
    2. Exactly one successful record with the file's facts.
    """
    outcome = coordinator.transcribe(AudioAsset(silent_wav), session_id="abc")

    assert outcome.texts == ["hello from tiny"]
    assert outcome.cancelled is False

    records = metrics_store.read_all()
    assert len(records) == 1
    record = records[0]
    assert record == outcome.metrics
    assert record.success is True
    assert record.error_message is None
    assert record.model_name == "tiny"
    assert record.transcription_type == "File Upload"
    assert record.session_id == "abc"
    assert record.chunk_index is None
    assert record.file_size_bytes == silent_wav.stat().st_size
    assert record.audio_duration_seconds == pytest.approx(3.0)
    assert record.transcribed_text == "hello from tiny"
    assert record.total_time_ms >= record.transcription_time_ms


def test_missing_session_id_gets_generated(coordinator, silent_wav):
    outcome = coordinator.transcribe(AudioAsset(silent_wav))

    assert len(outcome.metrics.session_id) == 36


def test_invalid_asset_writes_no_metrics(coordinator, metrics_store, tmp_path):
    with pytest.raises(InvalidAsset):
        coordinator.transcribe(AudioAsset(tmp_path / "missing.wav"))

    assert metrics_store.read_all() == []


def test_engine_failure_records_exactly_one_failure(models_dir, normalizer, metrics_store, silent_wav, fakes):
    """A call that throws partway through still leaves one failed record, then re-raises."""
    factory = fakes.EngineFactory(fail_with=RuntimeError("decoder exploded"))
    coordinator = TranscriptionCoordinator(normalizer, make_manager(models_dir, factory), metrics_store)

    with pytest.raises(TranscriptionFailed) as exc:
        coordinator.transcribe(AudioAsset(silent_wav))

    assert "decoder exploded" in str(exc.value)
    records = metrics_store.read_all()
    assert len(records) == 1
    assert records[0].success is False
    assert "decoder exploded" in records[0].error_message


def test_conversion_failure_is_recorded(engine_manager, metrics_store, caf_file, tmp_path, fakes):
    normalizer = AudioNormalizer(transcoder=fakes.Transcoder(tmp_path / "out", working=False))
    coordinator = TranscriptionCoordinator(normalizer, engine_manager, metrics_store)

    with pytest.raises(ConversionFailed):
        coordinator.transcribe(AudioAsset(caf_file))

    [record] = metrics_store.read_all()
    assert record.success is False
    assert record.error_message


def test_missing_model_is_recorded(tmp_path, normalizer, metrics_store, silent_wav, fakes):
    manager = EngineManager(fakes.EngineFactory(), model_path=str(tmp_path / "absent.pt"), models_dir=tmp_path)
    coordinator = TranscriptionCoordinator(normalizer, manager, metrics_store)

    with pytest.raises(ModelNotFound):
        coordinator.transcribe(AudioAsset(silent_wav))

    [record] = metrics_store.read_all()
    assert record.success is False


def test_converted_file_is_cleaned_up_on_success_and_failure(models_dir, normalizer, metrics_store,
                                                             transcoder, caf_file, fakes):
    ok = TranscriptionCoordinator(normalizer, make_manager(models_dir, fakes.EngineFactory()), metrics_store)
    ok.transcribe(AudioAsset(caf_file))

    failing_factory = fakes.EngineFactory(fail_with=RuntimeError("nope"))
    failing = TranscriptionCoordinator(normalizer, make_manager(models_dir, failing_factory), metrics_store)
    with pytest.raises(TranscriptionFailed):
        failing.transcribe(AudioAsset(caf_file))

    assert len(transcoder.convert_calls) == 2
    assert list(transcoder.output_dir.glob("*.wav")) == []
    assert caf_file.exists()


def test_metrics_failure_does_not_hide_result(normalizer, engine_manager, silent_wav):
    class BrokenStore:
        def append(self, record):
            raise OSError("disk full")

    coordinator = TranscriptionCoordinator(normalizer, engine_manager, BrokenStore())

    outcome = coordinator.transcribe(AudioAsset(silent_wav))

    assert outcome.texts == ["hello from tiny"]


def test_cancel_before_start_raises_and_records_nothing(coordinator, metrics_store, silent_wav):
    cancel = threading.Event()
    cancel.set()

    with pytest.raises(TranscriptionCancelled):
        coordinator.transcribe(AudioAsset(silent_wav), cancel_event=cancel)

    assert metrics_store.read_all() == []


def test_cancel_mid_recognition_keeps_partial_segments(models_dir, normalizer, metrics_store, silent_wav):
    """
    Verifies:
    1. Segments already produced are kept.
    2. No further segments are pulled after cancellation.
    3. The partial attempt is recorded as unsuccessful.
    """
    cancel = threading.Event()
    pulled = []

    class StreamingEngine:
        def process(self, audio_path: Path):
            for i in range(5):
                pulled.append(i)
                if i == 1:
                    cancel.set()
                yield TranscriptSegment(float(i), float(i + 1), f"part {i}")

        def release(self):
            pass

    manager = make_manager(models_dir, lambda path: StreamingEngine())
    coordinator = TranscriptionCoordinator(normalizer, manager, metrics_store)

    outcome = coordinator.transcribe(AudioAsset(silent_wav), cancel_event=cancel)

    assert outcome.cancelled is True
    assert outcome.texts == ["part 0", "part 1"]
    assert pulled == [0, 1]

    [record] = metrics_store.read_all()
    assert record.success is False
    assert record.error_message == CANCELLED_MESSAGE
    assert record.transcribed_text == "part 0 part 1"
