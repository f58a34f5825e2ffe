import subprocess
import logging
import uuid
from pathlib import Path
from typing import Optional
from scribe.core.config.settings import settings
from ..domain.interfaces import ITranscoder
from ..domain.models import TranscodeConfig

logger = logging.getLogger(__name__)

class FFmpegTranscoder(ITranscoder):
    """
    Concrete implementation of ITranscoder using the ffmpeg/ffprobe binaries.
    Every failure is logged and reported as "" (convert) or None (probe).
    """

    def __init__(self,
                 output_dir: Optional[Path] = None,
                 ffmpeg_binary: Optional[str] = None,
                 ffprobe_binary: Optional[str] = None,
                 config: Optional[TranscodeConfig] = None):
        self.output_dir = Path(output_dir or settings.TRANSCODE_DIR)
        self.ffmpeg_binary = ffmpeg_binary or settings.FFMPEG_BINARY
        self.ffprobe_binary = ffprobe_binary or settings.FFPROBE_BINARY
        self.config = config or TranscodeConfig()

    def convert(self, input_path: Path) -> str:
        input_path = Path(input_path)
        if not input_path.exists():
            logger.error(f"Input file does not exist: {input_path}")
            return ""

        # 1. Make sure there is something to decode
        if not self._has_audio_stream(input_path):
            return ""

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / f"{uuid.uuid4().hex}.wav"

        # FFmpeg command
        # -y: Overwrite output
        # -vn: Drop any video/cover-art stream
        # -ar/-ac: Resample to 16 kHz mono for Whisper
        cmd = [
            self.ffmpeg_binary,
            "-y",
            "-v", "error",
            "-i", str(input_path),
            "-vn",
            "-acodec", self.config.codec,
            "-ar", str(self.config.sample_rate_hz),
            "-ac", str(self.config.channels),
            str(output_path)
        ]

        logger.info(f"Converting audio: {' '.join(cmd)}")

        # 2. Execute
        try:
            subprocess.run(
                cmd,
                check=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE
            )
        except FileNotFoundError:
            logger.error(f"FFmpeg binary not found: {self.ffmpeg_binary}")
            return ""
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.decode(errors="replace") if e.stderr else str(e)
            logger.error(f"FFmpeg conversion failed: {error_msg}")
            output_path.unlink(missing_ok=True)
            return ""

        # 3. Verify the output landed and has content
        if not output_path.exists():
            logger.error(f"FFmpeg reported success but output was not created: {output_path}")
            return ""
        if output_path.stat().st_size == 0:
            logger.error(f"FFmpeg produced an empty file: {output_path}")
            output_path.unlink(missing_ok=True)
            return ""

        logger.info(f"Converted {input_path} -> {output_path} ({output_path.stat().st_size} bytes)")
        return str(output_path)

    def probe_duration(self, path: Path) -> Optional[float]:
        path = Path(path)
        if not path.exists():
            return None

        cmd = [
            self.ffprobe_binary,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(path)
        ]
        output = self._run_probe(cmd)
        if not output:
            return None
        try:
            return float(output.splitlines()[0])
        except ValueError:
            logger.warning(f"Unparseable duration from ffprobe for {path}: {output!r}")
            return None

    def _has_audio_stream(self, path: Path) -> bool:
        cmd = [
            self.ffprobe_binary,
            "-v", "error",
            "-select_streams", "a",
            "-show_entries", "stream=codec_name",
            "-of", "csv=p=0",
            str(path)
        ]
        output = self._run_probe(cmd)
        if not output:
            logger.error(f"No audio stream found in {path} (or ffprobe is unavailable)")
            return False
        logger.debug(f"Audio streams in {path}: {output.splitlines()}")
        return True

    def _run_probe(self, cmd) -> Optional[str]:
        try:
            completed = subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                text=True
            )
        except FileNotFoundError:
            logger.error(f"FFprobe binary not found: {self.ffprobe_binary}")
            return None
        except subprocess.CalledProcessError as e:
            logger.warning(f"FFprobe failed: {e.stderr.strip() if e.stderr else e}")
            return None
        return completed.stdout.strip()
