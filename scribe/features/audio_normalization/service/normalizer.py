# File: scribe/features/audio_normalization/service/normalizer.py

import logging
from pathlib import Path
from typing import Callable, Optional

from scribe.core.common.enums import AudioFormat
from scribe.core.exceptions import ConversionFailed, InvalidAsset
from scribe.core.shared_types import AudioAsset
from ..data.ffmpeg_adapter import FFmpegTranscoder
from ..data.format_sniffer import sniff_format
from ..domain.interfaces import ITranscoder
from ..domain.models import NormalizationKind, NormalizationResult

logger = logging.getLogger(__name__)

TRANSCODER_HINT = (
    "Please ensure ffmpeg/ffprobe are installed and accessible "
    "(set FFMPEG_BINARY_PATH / FFPROBE_BINARY_PATH if they are not on PATH)."
)


class AudioNormalizer:
    """
    Turns an upload of unknown container format into WAV the engine can read.

    Cascade, in order:
      1. Missing or empty input      -> InvalidAsset
      2. Already WAV                 -> original asset, no transcoder call
      3. CAF / unknown               -> transcoder output, if it is a real non-empty file
      4. Transcoder gave nothing     -> re-sniff the original; WAV after all -> original
      5. Otherwise                   -> FAILED with a remediation hint

    Converted files belong to the caller, who removes them with cleanup().
    """

    def __init__(self,
                 transcoder: Optional[ITranscoder] = None,
                 sniffer: Callable[[Path], AudioFormat] = sniff_format):
        self.transcoder = transcoder or FFmpegTranscoder()
        self.sniffer = sniffer

    def resolve(self, asset: AudioAsset) -> NormalizationResult:
        """Runs the cascade and returns a tagged result instead of raising on conversion problems."""
        # 1. Validate
        if not asset.exists():
            raise InvalidAsset(f"Audio file not found: {asset.path}")
        if asset.is_empty():
            raise InvalidAsset(f"Audio file is empty: {asset.path}")

        logger.info(f"Processing file: {asset.path}, Size: {asset.size_bytes} bytes")

        # 2. Sniff
        detected = self.sniffer(asset.path)

        # 3. Nothing to do
        if detected == AudioFormat.WAV:
            logger.info("File is already in WAV format")
            return NormalizationResult.wav(asset)

        # 4. Convert
        logger.info(f"File is {detected.value.upper()}, converting to WAV")
        converted = self.transcoder.convert(asset.path)
        if converted:
            converted_asset = AudioAsset(Path(converted), duration_seconds=asset.duration_seconds)
            if converted_asset.exists() and not converted_asset.is_empty():
                logger.info(f"Successfully converted audio file: {converted_asset.path}")
                return NormalizationResult.converted(converted_asset, detected)
            logger.error(f"Transcoder returned an unusable file: {converted}")

        # 5. Recover from a misdetection or a missing transcoder
        return self._recover(asset, detected)

    def normalize(self, asset: AudioAsset) -> AudioAsset:
        """
        Returns a WAV-ready asset (possibly the same object).

        Raises:
            InvalidAsset: If the input is missing, empty or unreadable.
            ConversionFailed: If no WAV could be produced.
        """
        result = self.resolve(asset)
        if result.kind == NormalizationKind.FAILED:
            raise ConversionFailed(result.reason)
        return result.asset

    def cleanup(self, original: AudioAsset, normalized: Optional[AudioAsset]) -> None:
        """Deletes a converted file. The original upload is never touched."""
        if normalized is None or normalized.same_file(original):
            return
        try:
            normalized.delete()
            logger.info(f"Cleaned up converted file: {normalized.path}")
        except OSError as e:
            logger.warning(f"Failed to clean up converted file {normalized.path}: {e}")

    def _recover(self, asset: AudioAsset, detected: AudioFormat) -> NormalizationResult:
        logger.error("Audio conversion returned no usable output. Usually ffmpeg is missing, "
                     "misconfigured, or the input is corrupt.")
        logger.info("Attempting to use original file as-is")
        try:
            second_look = self.sniffer(asset.path)
        except (InvalidAsset, OSError) as e:
            logger.error(f"Failed to re-read original file {asset.path}: {e}")
            return NormalizationResult.failed(detected, f"Audio conversion failed. {TRANSCODER_HINT}")

        if second_look == AudioFormat.WAV:
            logger.info("Original file is in WAV format after all, using as-is")
            return NormalizationResult.wav(asset, detected_format=detected, recovered=True)

        return NormalizationResult.failed(
            detected,
            f"Audio conversion failed and the file is not WAV (detected {detected.value}). {TRANSCODER_HINT}"
        )
