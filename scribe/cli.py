"""Command-line interface for scribe."""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

from scribe.core.config.settings import settings
from scribe.core.exceptions import ScribeError
from scribe.core.logging_setup import setup_logging
from scribe.features.transcription.service.api import TranscriptionService

logger = logging.getLogger(__name__)


class CLIHandler:
    """Parses arguments and dispatches to the transcription service."""

    def __init__(self, service: Optional[TranscriptionService] = None):
        self.parser = self._create_parser()
        self._service = service

    @property
    def service(self) -> TranscriptionService:
        # Built lazily so `--help` never touches models or ffmpeg
        if self._service is None:
            self._service = TranscriptionService()
        return self._service

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="scribe",
            description="Scribe: transcribe audio files with a swappable Whisper model.",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter
        )
        parser.add_argument(
            "--log-level",
            default="INFO",
            choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            help="Set the logging level for console and file output."
        )
        parser.add_argument(
            "--log-dir",
            default=None,
            help="Also write a rotating log file into this directory."
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        transcribe = subparsers.add_parser("transcribe", help="Transcribe an audio file (WAV, CAF or anything ffmpeg reads).")
        transcribe.add_argument("file", help="Path to the audio file.")
        transcribe.add_argument("--model", default=None, help="Switch to this model before transcribing.")
        transcribe.add_argument("--session-id", default=None, help="Session id recorded in the metrics.")

        subparsers.add_parser("models", help="List model files in the models directory.")

        switch = subparsers.add_parser("switch", help="Load a different model.")
        switch.add_argument("name", help="Model name, with or without the file suffix.")

        metrics = subparsers.add_parser("metrics", help="Show recorded transcription metrics.")
        metrics.add_argument("--clear", action="store_true", help="Delete all recorded metrics.")
        metrics.add_argument("--export", default=None, metavar="PATH", help="Write the metrics document to PATH.")

        subparsers.add_parser("details", help="Show details of the configured model.")
        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Parses arguments, sets up logging and runs the command. Returns the exit code."""
        args = self.parser.parse_args(argv)

        log_level = getattr(logging, args.log_level.upper(), logging.INFO)
        setup_logging(log_level=log_level, log_dir=Path(args.log_dir) if args.log_dir else None)

        handler = getattr(self, f"_cmd_{args.command}")
        try:
            if self._service is None:
                settings.ensure_dirs()
            handler(args)
            return 0
        except ScribeError as e:
            logger.error(f"A scribe error occurred: {e}")
            return 1
        except KeyboardInterrupt:
            logger.warning("Process interrupted by user (Ctrl+C). Exiting.")
            return 1
        except Exception as e:
            logger.critical(f"An unexpected critical error occurred at the top level: {e}", exc_info=True)
            return 2
        finally:
            if self._service is not None:
                self._service.shutdown()

    def _cmd_transcribe(self, args) -> None:
        if args.model:
            self.service.switch_model(args.model)
        outcome = self.service.transcribe(args.file, session_id=args.session_id)
        for line in outcome.lines:
            print(line)
        if outcome.metrics is not None:
            logger.info(f"Done in {outcome.metrics.total_time_ms}ms "
                        f"(preprocessing {outcome.metrics.preprocessing_time_ms}ms, "
                        f"transcription {outcome.metrics.transcription_time_ms}ms)")

    def _cmd_models(self, args) -> None:
        models = self.service.list_models()
        if not models:
            print(f"No models found in {self.service.engine_manager.models_dir}")
            return
        for model in models:
            marker = "*" if model.is_current else " "
            print(f"{marker} {model.name:<30} {model.size_formatted:>10}  {model.model_type:<8} {model.quantization_level}")

    def _cmd_switch(self, args) -> None:
        details = self.service.switch_model(args.name)
        print(f"Switched to {details.name} ({details.size_formatted})")

    def _cmd_metrics(self, args) -> None:
        if args.export:
            target = self.service.export_metrics(Path(args.export))
            print(f"Metrics exported to {target}")
        if args.clear:
            self.service.clear_metrics()
            print("All transcription metrics cleared")
            return
        if not args.export:
            records = [record.to_dict() for record in self.service.get_metrics()]
            print(json.dumps({"transcriptionMetrics": records}, indent=2))

    def _cmd_details(self, args) -> None:
        print(json.dumps(asdict(self.service.get_model_details()), indent=2))


def main(argv: Optional[List[str]] = None) -> None:
    sys.exit(CLIHandler().run(argv))
