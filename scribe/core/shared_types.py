from dataclasses import dataclass
from pathlib import Path
from typing import Optional

@dataclass(frozen=True)
class AudioAsset:
    """
    Entity representing an audio file on the filesystem.
    Size is read from disk on demand, so a replaced file is never stale.
    """
    path: Path
    duration_seconds: Optional[float] = None

    def __post_init__(self):
        object.__setattr__(self, "path", Path(self.path))
        if str(self.path).strip() == "." or str(self.path).strip() == "":
            raise ValueError("File path cannot be empty.")

    def exists(self) -> bool:
        return self.path.is_file()

    @property
    def size_bytes(self) -> int:
        return self.path.stat().st_size if self.exists() else 0

    def is_empty(self) -> bool:
        return self.size_bytes == 0

    def same_file(self, other: "AudioAsset") -> bool:
        return self.path == other.path

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)
