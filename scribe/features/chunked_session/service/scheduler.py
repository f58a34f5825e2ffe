# File: scribe/features/chunked_session/service/scheduler.py

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from scribe.core.config.settings import settings
from ..domain.interfaces import IChunkSource
from ..domain.models import NO_SPEECH_PLACEHOLDER, ChunkResult, chunk_error_text

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[ChunkResult], None]


class LiveChunkSession:
    """
    Drives one live recording: every `interval` seconds a chunk is cut from the
    source and transcribed on a worker pool, so results may finish out of order.
    The session's reassembler keeps the published transcript in chunk order.

    `tick()` runs one cycle on the caller's thread; `start()` adds the timer.
    `stop()` halts chunk production but lets in-flight chunks finish and fold in.
    """

    def __init__(self,
                 service,
                 source: IChunkSource,
                 interval: Optional[float] = None,
                 max_workers: Optional[int] = None,
                 on_update: Optional[UpdateCallback] = None):
        self.service = service
        self.source = source
        self.interval = interval if interval is not None else settings.CHUNK_INTERVAL_SECONDS
        self.max_workers = max_workers or settings.CHUNK_WORKERS
        self.on_update = on_update

        self.session_id: Optional[str] = None
        self._next_index = 0
        self._index_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._stop_event = threading.Event()
        self._timer_thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._timer_thread is not None and self._timer_thread.is_alive()

    def start(self, session_id: Optional[str] = None, run_timer: bool = True) -> str:
        """Opens a fresh session and, unless run_timer is False, starts the chunk timer."""
        if self.is_running or self._executor is not None:
            raise RuntimeError("Live session already running")

        self.session_id = self.service.open_session(session_id)
        with self._index_lock:
            self._next_index = 0
        self._stop_event.clear()
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                            thread_name_prefix=f"chunk-{self.session_id[:8]}")

        if run_timer:
            self._timer_thread = threading.Thread(target=self._timer_loop, daemon=True)
            self._timer_thread.start()
        logger.info(f"Live session {self.session_id} started (interval {self.interval}s)")
        return self.session_id

    def tick(self) -> Optional[Future]:
        """Cuts the next chunk and schedules its transcription."""
        if self._executor is None or self.session_id is None:
            raise RuntimeError("Live session not started")

        session_id = self.session_id
        with self._index_lock:
            chunk_index = self._next_index
            self._next_index += 1

        # Every index taken must be stored, or render() stalls on it
        try:
            path = self.source.record_chunk(session_id, chunk_index)
        except Exception as e:
            logger.error(f"Session {session_id}: failed to record chunk {chunk_index}: {e}")
            self._store(session_id, chunk_index, chunk_error_text(chunk_index, str(e)))
            return None

        if path is None:
            logger.debug(f"Session {session_id}: nothing captured for chunk {chunk_index}")
            self._store(session_id, chunk_index, NO_SPEECH_PLACEHOLDER)
            return None
        return self._executor.submit(self._process, path, session_id, chunk_index)

    def stop(self, wait: bool = True) -> None:
        """Stops producing chunks. The session itself stays open for late results."""
        self._stop_event.set()
        if self._timer_thread is not None:
            self._timer_thread.join(timeout=self.interval + 1)
            self._timer_thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
        logger.info(f"Live session {self.session_id} stopped")

    def transcript(self) -> str:
        if self.session_id is None:
            return ""
        return self.service.render_session(self.session_id)

    def _timer_loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception:
                logger.exception(f"Session {self.session_id}: failed to cut chunk")

    def _store(self, session_id: str, chunk_index: int, text: str) -> None:
        self.service.sessions.get(session_id).store(chunk_index, text)

    def _process(self, path, session_id: str, chunk_index: int) -> ChunkResult:
        try:
            result = self.service.transcribe_chunk(path, session_id, chunk_index)
        finally:
            try:
                self.source.discard_chunk(path)
            except OSError as e:
                logger.warning(f"Failed to discard chunk file {path}: {e}")

        if self.on_update is not None:
            try:
                self.on_update(result)
            except Exception:
                logger.exception(f"Session {session_id}: update callback failed")
        return result
