import pytest
from pathlib import Path

from scribe.core.shared_types import AudioAsset


def test_asset_reports_size_from_disk(tmp_path):
    path = tmp_path / "a.wav"
    path.write_bytes(b"1234")
    asset = AudioAsset(str(path))

    assert isinstance(asset.path, Path)
    assert asset.exists()
    assert asset.size_bytes == 4
    assert not asset.is_empty()

    path.write_bytes(b"")
    assert asset.is_empty()


def test_missing_asset_has_zero_size(tmp_path):
    asset = AudioAsset(tmp_path / "missing.wav")

    assert not asset.exists()
    assert asset.size_bytes == 0
    asset.delete()


def test_empty_path_is_rejected():
    with pytest.raises(ValueError):
        AudioAsset("")


def test_same_file(tmp_path):
    assert AudioAsset(tmp_path / "x.wav").same_file(AudioAsset(str(tmp_path / "x.wav")))
    assert not AudioAsset(tmp_path / "x.wav").same_file(AudioAsset(tmp_path / "y.wav"))
