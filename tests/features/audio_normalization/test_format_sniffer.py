import io
import pytest

from scribe.core.common.enums import AudioFormat
from scribe.core.exceptions import InvalidAsset
from scribe.features.audio_normalization.data.format_sniffer import (
    classify_header,
    describe_header,
    read_header,
    sniff_format,
)


@pytest.mark.parametrize("header, expected", [
    (b"RIFF\x24\x00\x00\x00WAVE", AudioFormat.WAV),
    (b"caff\x00\x01\x00\x00desc", AudioFormat.CAF),
    (b"RIFF\x24\x00\x00\x00AVI ", AudioFormat.UNKNOWN),
    (b"ID3\x04\x00\x00\x00\x00\x00\x00\x00\x00", AudioFormat.UNKNOWN),
])
def test_classify_header(header, expected):
    assert classify_header(header) == expected


def test_sniff_real_wav_file(silent_wav):
    assert sniff_format(silent_wav) == AudioFormat.WAV
    assert sniff_format(str(silent_wav)) == AudioFormat.WAV


def test_sniff_caf_file(caf_file):
    assert sniff_format(caf_file) == AudioFormat.CAF


def test_stream_position_is_restored():
    """The peek must not consume the stream for whoever reads it next."""
    stream = io.BytesIO(b"RIFF\x24\x00\x00\x00WAVEfmt payload")

    # 1. Peek
    assert sniff_format(stream) == AudioFormat.WAV

    # 2. Nothing consumed
    assert stream.tell() == 0
    assert stream.read(4) == b"RIFF"


def test_short_input_is_an_error_not_unknown(tmp_path):
    tiny = tmp_path / "tiny.bin"
    tiny.write_bytes(b"RIFF1234")

    with pytest.raises(InvalidAsset):
        sniff_format(tiny)


def test_describe_header():
    assert describe_header(b"RIFF\x24\x00\x00\x00WAVE") == "RIFF/WAVE"


def test_short_stream_is_rewound_before_raising():
    stream = io.BytesIO(b"caff")

    with pytest.raises(InvalidAsset):
        read_header(stream)
    assert stream.tell() == 0
