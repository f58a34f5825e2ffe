import json
import logging
import os
import tempfile
from pathlib import Path
from threading import Lock
from typing import List, Optional

from scribe.core.config.settings import settings
from ..domain.interfaces import IMetricsStore
from ..domain.models import MetricsRecord

logger = logging.getLogger(__name__)

CONTAINER_KEY = "transcriptionMetrics"


class JsonMetricsStore(IMetricsStore):
    """
    Keeps every record in one JSON document: {"transcriptionMetrics": [...]}.

    Appends are read-modify-write of the whole document, so a single gate
    serializes all operations. Writes go to a sibling temp file and are
    swapped in with os.replace, so a crash mid-write leaves the previous
    document intact.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path or settings.METRICS_PATH)
        self._gate = Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, record: MetricsRecord) -> None:
        with self._gate:
            logger.info(f"Recording metrics for {record.model_name} - "
                        f"Total: {record.total_time_ms}ms, Success: {record.success}")
            records = self._load()
            records.append(record)
            self._save(records, self.path)

    def read_all(self) -> List[MetricsRecord]:
        with self._gate:
            return self._load()

    def clear(self) -> None:
        with self._gate:
            if self.path.exists():
                self.path.unlink()
                logger.info("All transcription metrics cleared")
            else:
                logger.info("No metrics file found to clear")

    def export(self, path: Optional[Path] = None) -> Path:
        target = Path(path) if path else self.path
        with self._gate:
            records = self._load()
            target.parent.mkdir(parents=True, exist_ok=True)
            self._save(records, target)
        logger.info(f"Metrics exported to {target}")
        return target

    def _load(self) -> List[MetricsRecord]:
        """Caller must hold the gate."""
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
            return [MetricsRecord.from_dict(item) for item in document.get(CONTAINER_KEY, [])]
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to load existing metrics, starting with empty store: {e}")
            return []

    @staticmethod
    def _save(records: List[MetricsRecord], target: Path) -> None:
        document = {CONTAINER_KEY: [record.to_dict() for record in records]}
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
