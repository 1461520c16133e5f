from __future__ import annotations

import logging
import os
import threading
from typing import Callable, List, Optional

from poto.services.bounded_queue import BoundedQueue
from poto.services.classifier import classify_media_type
from poto.services.media_models import MediaFile
from poto.services.thumbnails_service import ThumbnailSettings, generate_thumbnail

logger = logging.getLogger(__name__)

Thumbnailer = Callable[[str, str, ThumbnailSettings], Optional[str]]
ProgressHook = Callable[[int], None]


class AtomicCounter:
    def __init__(self, value: int = 0) -> None:
        self._value = value
        self._lock = threading.Lock()

    def increment(self) -> int:
        with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


class WorkerPool:
    """Fixed set of threads turning candidate paths into MediaFile records.

    Workers drain ``paths`` until it is closed and empty or the shared cancel
    event fires. Per-file problems (stat failure, undecodable preview) drop or
    degrade that one file; they never stop a worker.
    """

    def __init__(
        self,
        *,
        worker_count: int,
        paths: BoundedQueue[str],
        results: BoundedQueue[MediaFile],
        cancel: threading.Event,
        settings: ThumbnailSettings,
        scanned: Optional[AtomicCounter] = None,
        found: Optional[AtomicCounter] = None,
        on_scanned: Optional[ProgressHook] = None,
        thumbnailer: Thumbnailer = generate_thumbnail,
    ) -> None:
        self._worker_count = max(worker_count, 1)
        self._paths = paths
        self._results = results
        self._cancel = cancel
        self._settings = settings
        self.scanned = scanned or AtomicCounter()
        self.found = found or AtomicCounter()
        self._on_scanned = on_scanned
        self._thumbnailer = thumbnailer
        self._workers: List[threading.Thread] = []

    @property
    def worker_count(self) -> int:
        return self._worker_count

    def start(self) -> None:
        if self._workers:
            return
        for idx in range(self._worker_count):
            worker = threading.Thread(target=self._worker_loop, name=f"scan-worker-{idx}", daemon=True)
            worker.start()
            self._workers.append(worker)

    def join(self, timeout: Optional[float] = None) -> None:
        for worker in self._workers:
            worker.join(timeout=timeout)

    def is_alive(self) -> bool:
        return any(worker.is_alive() for worker in self._workers)

    def _worker_loop(self) -> None:
        while True:
            path = self._paths.get()
            if path is None:
                break
            try:
                media = self.process(path)
            except Exception:
                logger.exception("Unexpected failure while processing %s", path)
                continue
            if media is not None and not self._results.put(media):
                break

    def process(self, path: str) -> Optional[MediaFile]:
        """Classify, stat and preview one path; ``None`` means not recorded."""
        count = self.scanned.increment()
        if self._on_scanned is not None:
            self._on_scanned(count)

        kind = classify_media_type(path)
        if kind is None:
            return None
        try:
            st = os.stat(path)
        except OSError as exc:
            logger.debug("stat failed for %s: %s", path, exc)
            return None

        thumbnail = self._thumbnailer(path, kind, self._settings)
        media = MediaFile.from_stat(path, kind, st, thumbnail=thumbnail)
        self.found.increment()
        return media
