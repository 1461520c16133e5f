import sys
import threading
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from poto.schemas.config import AppConfig  # noqa: E402


class CollectingSink:
    """Records every scan notification; safe to call from worker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.batches = []
        self.progress = []
        self.errors = []

    def media_found(self, batch):
        with self._lock:
            self.batches.append(list(batch))

    def scan_progress(self, progress):
        with self._lock:
            self.progress.append(progress)

    def scan_error(self, message):
        with self._lock:
            self.errors.append(message)

    @property
    def media(self):
        with self._lock:
            return [m for batch in self.batches for m in batch]


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()


@pytest.fixture
def make_image():
    def _make(path: Path, size=(64, 48), color=(200, 30, 30), fmt=None, mode="RGB") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color).save(path, format=fmt)
        return path

    return _make


@pytest.fixture
def scan_config() -> AppConfig:
    config = AppConfig()
    config.performance.worker_threads = 2
    config.preview.video_thumbnails = False
    return config


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for key in ("POTO_CONFIG", "POTO_WORKER_THREADS", "POTO_BATCH_SIZE", "POTO_IGNORE_HIDDEN",
                "POTO_VIDEO_THUMBNAILS", "POTO_AUTO_SCAN"):
        monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
