# File: scribe/core/model_lifecycle/orchestrator.py

import gc
import torch
import logging
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Iterator, List, Optional

from scribe.core.config.settings import settings
from scribe.core.exceptions import EngineConstructionFailed, ModelNotFound
from .catalog import format_file_size, model_type, quantization_level, scan_models
from .types import EngineHandle, ModelDetails, ModelInfo

logger = logging.getLogger(__name__)

EngineFactory = Callable[[Path], Any]


class EngineManager:
    """
    Owns the single live recognition engine.

    - ensure_loaded(): lazy, double-checked load of the configured model.
    - switch_model(): swaps engines under the exclusive lock; nobody ever sees
      a half-built engine.
    - borrow(): leases the current engine for one call. A switch during the
      call retires the old engine, which is released when the lease returns.
    - lease(): the same, yielding the handle so callers can tell which model served them.
    """

    def __init__(self,
                 engine_factory: EngineFactory,
                 model_path: Optional[str] = None,
                 models_dir: Optional[Path] = None,
                 model_suffix: Optional[str] = None):
        self._engine_factory = engine_factory
        self._lock = Lock()
        self._handle: Optional[EngineHandle] = None
        self._configured_path = model_path or settings.WHISPER_MODEL_PATH
        self._model_path = settings.resolve_model_path(self._configured_path)
        self._models_dir = Path(models_dir) if models_dir else self._model_path.parent
        self._model_suffix = model_suffix or settings.WHISPER_MODEL_SUFFIX

    @property
    def current_model_name(self) -> str:
        return self._model_path.stem

    @property
    def current_model_path(self) -> Path:
        return self._model_path

    @property
    def models_dir(self) -> Path:
        return self._models_dir

    @property
    def is_loaded(self) -> bool:
        return self._handle is not None

    def ensure_loaded(self) -> EngineHandle:
        """
        Returns the live handle, loading the configured model on first use.

        Raises:
            ModelNotFound: If the configured model file is missing.
            EngineConstructionFailed: If the engine rejects the model file.
        """
        # Hot path: no lock once loaded
        handle = self._handle
        if handle is not None:
            return handle

        with self._lock:
            if self._handle is None:
                self._handle = self._construct(self._model_path, self._configured_path)
            return self._handle

    def switch_model(self, name: str) -> EngineHandle:
        """
        Replaces the live engine with the model called `name` from the models directory.

        On construction failure no engine is left live; the next ensure_loaded()
        reloads the previously configured model.
        """
        new_path = self.model_path_for(name)
        if not new_path.is_file():
            logger.error(f"Model file not found: {new_path}")
            raise ModelNotFound(f"Model file not found: {new_path}")

        logger.info(f"Switching to model: {new_path}")
        with self._lock:
            # 1. Retire the current engine; in-flight borrowers keep it alive
            if self._handle is not None:
                self._retire(self._handle)
                self._handle = None

            # 2. Build the replacement
            try:
                self._handle = self._construct(new_path, name)
            except EngineConstructionFailed:
                logger.error(f"Switch to {name} failed, engine left unloaded")
                raise

            self._model_path = new_path
            self._configured_path = str(new_path)
            logger.info(f"Successfully switched to model: {new_path}")
            return self._handle

    @contextmanager
    def lease(self) -> Iterator[EngineHandle]:
        """Leases the current handle for one call; its model_name says which model served it."""
        while True:
            handle = self.ensure_loaded()
            if handle.acquire():
                break
            # Retired between read and lease; a switch is in progress or just finished

        try:
            yield handle
        finally:
            if handle.release():
                self._dispose(handle)

    @contextmanager
    def borrow(self) -> Iterator[Any]:
        """Leases the current engine for the duration of one transcription call."""
        with self.lease() as handle:
            yield handle.engine

    def shutdown(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._retire(self._handle)
                self._handle = None

    def model_path_for(self, name: str) -> Path:
        file_name = name if name.endswith(self._model_suffix) else f"{name}{self._model_suffix}"
        return self._models_dir / file_name

    def list_models(self) -> List[ModelInfo]:
        return scan_models(self._models_dir, self._model_suffix, current=self._model_path)

    def details(self) -> ModelDetails:
        path = self._model_path
        exists = path.is_file()
        size = 0
        if exists:
            try:
                size = path.stat().st_size
            except OSError as e:
                logger.error(f"Error getting model file size: {e}")
        return ModelDetails(
            name=path.stem,
            path=str(path),
            original_path=self._configured_path,
            size_bytes=size,
            size_formatted=format_file_size(size) if exists else "Unknown",
            quantization_level=quantization_level(path),
            model_type=model_type(path),
            exists=exists,
            engine_loaded=self.is_loaded
        )

    def _construct(self, model_path: Path, requested: str) -> EngineHandle:
        """Caller must hold self._lock."""
        if not model_path.is_file():
            message = (f"Whisper model not found at path: {model_path} "
                       f"(resolved from: {requested}). "
                       f"Please ensure the model file exists in {self._models_dir}.")
            logger.error(message)
            raise ModelNotFound(message)

        logger.info(f"Loading recognition engine with model: {model_path}")
        try:
            engine = self._engine_factory(model_path)
        except Exception as e:
            logger.error(f"Failed to load model {model_path}: {e}")
            raise EngineConstructionFailed(f"Failed to load model {model_path.name}: {e}") from e
        logger.info(f"Recognition engine ready: {model_path.stem}")
        return EngineHandle(engine, model_path)

    def _retire(self, handle: EngineHandle) -> None:
        if handle.retire():
            self._dispose(handle)
        else:
            logger.info(f"Model {handle.model_name} retired with {handle.leases} call(s) in flight")

    @staticmethod
    def _dispose(handle: EngineHandle) -> None:
        """Frees the engine's memory (and VRAM, when on CUDA)."""
        logger.info(f"Releasing model {handle.model_name}...")
        release = getattr(handle.engine, "release", None)
        if callable(release):
            release()
        handle.engine = None

        gc.collect()
        if torch.cuda.is_available():
            torch.cuda.empty_cache()
