"""
Scan Session
------------
One end-to-end scan: ``idle -> scanning -> (cancelling) -> complete``.

Threads and hand-offs:

    traversal (os.walk, policy pruning)
        -> path queue (bounded, backpressure on the walk)
        -> WorkerPool (classify, stat, thumbnail)
        -> result queue (bounded)
        -> collector (MediaIndex.insert, batched mediaFound)

All stages share one cancel event. Setting it unblocks every queue operation,
so each thread winds down on its own; records already collected stay in the
index. Whatever the outcome, the last notification of a session is a
ScanProgress with ``is_complete=True``. Sessions are single-use.
"""

from __future__ import annotations

import logging
import os
import threading
from enum import Enum
from typing import List, Optional, Sequence

from poto.schemas.config import AppConfig
from poto.services.bounded_queue import BoundedQueue
from poto.services.media_index import MediaIndex
from poto.services.media_models import MediaFile, ScanProgress
from poto.services.notifications import NotificationSink
from poto.services.scan_policy import PolicyDecision, ScanPolicy, evaluate_directory, normalize_dir
from poto.services.thumbnails_service import ThumbnailSettings, generate_thumbnail
from poto.services.worker_pool import AtomicCounter, Thumbnailer, WorkerPool

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    CANCELLING = "cancelling"
    COMPLETE = "complete"


class ScanSession:
    def __init__(
        self,
        roots: Sequence[str],
        *,
        config: AppConfig,
        index: MediaIndex,
        sink: NotificationSink,
        thumbnailer: Thumbnailer = generate_thumbnail,
    ) -> None:
        self.roots: List[str] = [normalize_dir(root) for root in roots]
        self._index = index
        self._sink = sink
        self._policy = ScanPolicy.from_config(config.scanner)
        self._batch_size = config.performance.batch_size
        self._progress_interval = config.performance.progress_interval

        self._cancel = threading.Event()
        self._running = threading.Event()
        self._state = SessionState.IDLE
        self._state_lock = threading.Lock()

        self.scanned = AtomicCounter()
        self.found = AtomicCounter()
        self._current_dir = ""
        self._last_progress = ScanProgress()

        self._paths: BoundedQueue[str] = BoundedQueue(config.performance.path_queue_size, self._cancel)
        self._results: BoundedQueue[MediaFile] = BoundedQueue(config.performance.result_queue_size, self._cancel)
        self._pool = WorkerPool(
            worker_count=config.performance.worker_threads,
            paths=self._paths,
            results=self._results,
            cancel=self._cancel,
            settings=ThumbnailSettings.from_config(config),
            scanned=self.scanned,
            found=self.found,
            on_scanned=self._on_scanned,
            thumbnailer=thumbnailer,
        )
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def progress(self) -> ScanProgress:
        return self._last_progress

    def start(self) -> None:
        with self._state_lock:
            if self._state is not SessionState.IDLE:
                raise RuntimeError(f"scan session already {self._state.value}; create a new one")
            self._state = SessionState.SCANNING
            self._running.set()
        self._index.clear()
        logger.info("Scan started: %s", ", ".join(self.roots))
        self._thread = threading.Thread(target=self._run, name="scan-session", daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        with self._state_lock:
            if self._state is SessionState.SCANNING:
                self._state = SessionState.CANCELLING
                logger.info("Scan cancellation requested")
        self._cancel.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for teardown; ``True`` once the session is no longer running."""
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        return not self.is_running

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _run(self) -> None:
        collector = threading.Thread(target=self._collect, name="scan-collector", daemon=True)
        try:
            self._pool.start()
            collector.start()
            try:
                for root in self.roots:
                    if self._cancel.is_set():
                        break
                    self._walk(root)
            finally:
                self._paths.close()
                self._pool.join()
                self._results.close()
                collector.join()
        except Exception as exc:
            logger.exception("Scan aborted")
            self._notify_error(f"scan aborted: {exc}")
        finally:
            self._emit_progress(is_complete=True)
            with self._state_lock:
                self._state = SessionState.COMPLETE
                self._running.clear()
            logger.info(
                "Scan finished: scanned=%d found=%d cancelled=%s",
                self.scanned.value,
                self.found.value,
                self._cancel.is_set(),
            )

    def _walk(self, root: str) -> None:
        for dirpath, dirnames, filenames in os.walk(root, topdown=True, onerror=self._on_walk_error):
            if self._cancel.is_set():
                return
            self._current_dir = dirpath
            # pruned entries are never visited by os.walk
            dirnames[:] = [
                name
                for name in sorted(dirnames)
                if evaluate_directory(name, os.path.join(dirpath, name), dirpath, self._policy)
                is PolicyDecision.DESCEND
            ]
            for name in sorted(filenames):
                if not self._paths.put(os.path.join(dirpath, name)):
                    return

    def _on_walk_error(self, err: OSError) -> None:
        if isinstance(err, FileNotFoundError):
            # removed while the walk was under way
            logger.debug("Vanished during scan: %s", err.filename)
            return
        logger.warning("Cannot read directory %s: %s", err.filename, err.strerror or err)
        self._notify_error(f"{err.filename}: {err.strerror or err}")

    def _collect(self) -> None:
        batch: List[MediaFile] = []
        while True:
            media = self._results.get()
            if media is None:
                break
            self._index.insert(media)
            batch.append(media)
            if len(batch) >= self._batch_size:
                self._notify_media(batch)
                batch = []
        if batch:
            self._notify_media(batch)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def _on_scanned(self, count: int) -> None:
        if count % self._progress_interval == 0:
            self._emit_progress(is_complete=False, scanned=count)

    def _emit_progress(self, *, is_complete: bool, scanned: Optional[int] = None) -> None:
        progress = ScanProgress(
            scanned_files=self.scanned.value if scanned is None else scanned,
            found_media=self.found.value,
            current_path=self._current_dir,
            is_complete=is_complete,
        )
        self._last_progress = progress
        try:
            self._sink.scan_progress(progress)
        except Exception:
            logger.exception("Progress notification failed")

    def _notify_media(self, batch: List[MediaFile]) -> None:
        try:
            self._sink.media_found(batch)
        except Exception:
            logger.exception("mediaFound notification failed")

    def _notify_error(self, message: str) -> None:
        try:
            self._sink.scan_error(message)
        except Exception:
            logger.exception("scanError notification failed")
