# File: scribe/core/model_lifecycle/types.py

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class EngineHandle:
    """
    The loaded recognition engine plus the model file it came from.

    Borrowers take a lease for the duration of one call. Once retired, the
    handle refuses new leases and the engine is released by whoever drops
    the last lease (or by the retiring side when nobody holds one).
    """

    def __init__(self, engine: Any, model_path: Path):
        self.engine = engine
        self.model_path = Path(model_path)
        self._guard = threading.Lock()
        self._leases = 0
        self._retired = False

    @property
    def model_name(self) -> str:
        return self.model_path.stem

    @property
    def leases(self) -> int:
        with self._guard:
            return self._leases

    @property
    def retired(self) -> bool:
        with self._guard:
            return self._retired

    def acquire(self) -> bool:
        with self._guard:
            if self._retired:
                return False
            self._leases += 1
            return True

    def release(self) -> bool:
        """Drops one lease. Returns True when the engine should now be disposed."""
        with self._guard:
            self._leases -= 1
            return self._retired and self._leases == 0

    def retire(self) -> bool:
        """Marks the handle dead. Returns True when no lease is outstanding."""
        with self._guard:
            self._retired = True
            return self._leases == 0


@dataclass(frozen=True)
class ModelInfo:
    """One model file found in the models directory."""
    name: str
    file_name: str
    file_path: str
    size_bytes: int
    size_formatted: str
    model_type: str
    quantization_level: str
    is_current: bool = False


@dataclass(frozen=True)
class ModelDetails:
    """Snapshot of the configured model and whether the engine is live."""
    name: str
    path: str
    original_path: str
    size_bytes: int
    size_formatted: str
    quantization_level: str
    model_type: str
    exists: bool
    engine_loaded: bool
