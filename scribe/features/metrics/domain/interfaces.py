from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional
from .models import MetricsRecord

class IMetricsStore(ABC):
    """
    Contract for the append-only transcription telemetry log.
    Implementations serialize every operation; there is no query API beyond a full read.
    """

    @abstractmethod
    def append(self, record: MetricsRecord) -> None:
        """Persists the record before returning."""
        pass

    @abstractmethod
    def read_all(self) -> List[MetricsRecord]:
        """Returns every record in append order. A missing or corrupt store reads as empty."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Removes the persisted store entirely."""
        pass

    @abstractmethod
    def export(self, path: Optional[Path] = None) -> Path:
        """Writes the full document to path (default: the store's own location)."""
        pass
