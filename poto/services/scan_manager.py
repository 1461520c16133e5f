from __future__ import annotations

import logging
import os
import threading
from datetime import datetime
from typing import List, Optional

from poto.constants import MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO
from poto.schemas.config import AppConfig
from poto.services.config_service import ConfigStore
from poto.services.exceptions import PathNotAllowedError, ScanAlreadyRunningError, ScanPathNotFoundError, ServiceError
from poto.services.filesystem_browser import home_directory
from poto.services.media_index import MediaIndex
from poto.services.media_models import FilterOptions, MediaFile, ScanProgress
from poto.services.notifications import NotificationSink
from poto.services.scan_policy import normalize_dir
from poto.services.scan_session import ScanSession
from poto.services.thumbnails_service import generate_thumbnail
from poto.services.worker_pool import Thumbnailer

logger = logging.getLogger(__name__)


def is_within_roots(path: str, roots: List[str]) -> bool:
    for root in roots:
        if path == root or path.startswith(root.rstrip(os.sep) + os.sep):
            return True
    return False


class ScanManager:
    """Front door of the scanning core.

    Owns the shared MediaIndex and at most one running ScanSession. Starting
    while a session runs is rejected, never queued. Every query method is
    safe to call while a scan is in progress.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        sink: NotificationSink,
        *,
        index: Optional[MediaIndex] = None,
        thumbnailer: Thumbnailer = generate_thumbnail,
    ) -> None:
        self._config_store = config_store
        self._sink = sink
        self._index = index if index is not None else MediaIndex()
        self._thumbnailer = thumbnailer
        self._lock = threading.Lock()
        self._session: Optional[ScanSession] = None

    @property
    def index(self) -> MediaIndex:
        return self._index

    @property
    def session(self) -> Optional[ScanSession]:
        return self._session

    # ------------------------------------------------------------------
    # Scan control
    # ------------------------------------------------------------------

    def start_scan(self, path: str = "") -> ScanSession:
        with self._lock:
            if self._session is not None and self._session.is_running:
                raise ScanAlreadyRunningError("A scan is already in progress")
            config = self._config_store.get()
            roots = self._resolve_roots(path, config)
            session = ScanSession(
                roots,
                config=config,
                index=self._index,
                sink=self._sink,
                thumbnailer=self._thumbnailer,
            )
            self._session = session
            session.start()
        return session

    def _resolve_roots(self, path: str, config: AppConfig) -> List[str]:
        configured = [normalize_dir(d) for d in config.scanner.scan_directories if d.strip()]
        raw = (path or "").strip()

        if not raw:
            if not configured:
                return [home_directory()]
            existing = [d for d in configured if os.path.isdir(d)]
            for missing in sorted(set(configured) - set(existing)):
                logger.warning("Configured scan directory is missing: %s", missing)
            if not existing:
                raise ScanPathNotFoundError("None of the configured scan directories exist")
            return existing

        target = normalize_dir(raw)
        if configured and not is_within_roots(target, configured):
            raise PathNotAllowedError(f"{target} is outside the configured scan directories")
        if not os.path.isdir(target):
            raise ScanPathNotFoundError(f"Directory not found: {target}")
        return [target]

    def stop_scan(self) -> None:
        session = self._session
        if session is not None and session.is_running:
            session.cancel()

    def is_scanning(self) -> bool:
        session = self._session
        return session is not None and session.is_running

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current session tears down; ``True`` if nothing is running."""
        session = self._session
        if session is None:
            return True
        return session.join(timeout)

    def progress(self) -> Optional[ScanProgress]:
        session = self._session
        return session.progress if session is not None else None

    def shutdown(self, timeout: float = 5.0) -> None:
        self.stop_scan()
        if not self.wait(timeout):
            logger.warning("Scan did not stop within %.1fs", timeout)

    def auto_scan_on_startup(self) -> bool:
        if not self._config_store.get().scanner.scan_directories:
            return False
        try:
            self.start_scan()
        except ServiceError as exc:
            logger.warning("Startup scan skipped: %s", exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def filter_media(self, options: FilterOptions) -> List[MediaFile]:
        return self._index.query(options)

    def get_all_media(self) -> List[MediaFile]:
        return self._index.all()

    def get_media_by_folder(self, folder: str) -> List[MediaFile]:
        return self._index.query(FilterOptions(folder_path=folder))

    def get_media_by_type(self, kind: str) -> List[MediaFile]:
        if kind not in (MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO):
            return []
        return self._index.query(FilterOptions(media_type=kind))

    def get_media_by_date_range(self, from_date: Optional[datetime], to_date: Optional[datetime]) -> List[MediaFile]:
        return self._index.query(FilterOptions(from_date=from_date, to_date=to_date))

    def get_recent_media(self, limit: Optional[int] = None) -> List[MediaFile]:
        """Discovery order, newest first."""
        return self._index.recent(limit)
