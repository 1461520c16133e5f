from __future__ import annotations

import threading
from datetime import datetime, timedelta

import pytest

from poto.services.config_service import ConfigStore
from poto.services.exceptions import PathNotAllowedError, ScanAlreadyRunningError, ScanPathNotFoundError
from poto.services.media_models import FilterOptions
from poto.services.scan_manager import ScanManager, is_within_roots


def _manager(config, sink, **kwargs) -> ScanManager:
    return ScanManager(ConfigStore(config), sink, **kwargs)


def test_is_within_roots():
    roots = ["/data/photos", "/"]
    assert is_within_roots("/data/photos", roots[:1])
    assert is_within_roots("/data/photos/2024", roots[:1])
    assert not is_within_roots("/data/photos2", roots[:1])
    assert is_within_roots("/anything", roots[1:])


def test_scan_explicit_path_and_query(tmp_path, make_image, sink, scan_config):
    make_image(tmp_path / "lib" / "a.jpg")
    make_image(tmp_path / "lib" / "trip" / "b.png")
    (tmp_path / "lib" / "trip" / "c.mp4").write_bytes(b"\x00")
    manager = _manager(scan_config, sink)

    manager.start_scan(str(tmp_path / "lib"))
    assert manager.wait(timeout=30)

    assert not manager.is_scanning()
    assert len(manager.get_all_media()) == 3
    assert [m.name for m in manager.get_media_by_type("video")] == ["c.mp4"]
    assert manager.get_media_by_type("audio") == []
    assert sorted(m.name for m in manager.get_media_by_folder(str(tmp_path / "lib" / "trip"))) == ["b.png", "c.mp4"]
    assert len(manager.filter_media(FilterOptions(search_term="TRIP"))) == 2
    now = datetime.now()
    assert len(manager.get_media_by_date_range(now - timedelta(days=1), now + timedelta(days=1))) == 3
    assert manager.get_media_by_date_range(now + timedelta(days=1), None) == []
    recent = manager.get_recent_media()
    assert sorted(m.path for m in recent) == sorted(m.path for m in manager.get_all_media())
    assert len(manager.get_recent_media(2)) == 2
    assert manager.progress().is_complete


def test_empty_path_scans_configured_directories(tmp_path, make_image, sink, scan_config):
    make_image(tmp_path / "one" / "a.jpg")
    make_image(tmp_path / "two" / "b.jpg")
    make_image(tmp_path / "three" / "c.jpg")
    scan_config.scanner.scan_directories = [str(tmp_path / "one"), str(tmp_path / "two"), str(tmp_path / "missing")]
    manager = _manager(scan_config, sink)

    session = manager.start_scan("")
    assert manager.wait(timeout=30)

    assert session.roots == [str(tmp_path / "one"), str(tmp_path / "two")]
    assert sorted(m.name for m in manager.get_all_media()) == ["a.jpg", "b.jpg"]


def test_empty_path_without_configuration_falls_back_to_home(tmp_path, make_image, sink, scan_config):
    make_image(tmp_path / "home" / "Pictures" / "me.jpg")
    manager = _manager(scan_config, sink)

    session = manager.start_scan()
    assert manager.wait(timeout=30)

    assert session.roots == [str(tmp_path / "home")]
    assert [m.name for m in manager.get_all_media()] == ["me.jpg"]


def test_path_outside_allowed_roots_is_rejected(tmp_path, sink, scan_config):
    (tmp_path / "allowed").mkdir()
    (tmp_path / "other").mkdir()
    scan_config.scanner.scan_directories = [str(tmp_path / "allowed")]
    manager = _manager(scan_config, sink)

    with pytest.raises(PathNotAllowedError) as excinfo:
        manager.start_scan(str(tmp_path / "other"))
    assert excinfo.value.status_code == 403
    assert manager.session is None
    assert not manager.is_scanning()


def test_missing_path_is_rejected(tmp_path, sink, scan_config):
    manager = _manager(scan_config, sink)
    with pytest.raises(ScanPathNotFoundError):
        manager.start_scan(str(tmp_path / "nope"))
    assert manager.session is None


def test_rejected_start_keeps_previous_results(tmp_path, make_image, sink, scan_config):
    make_image(tmp_path / "lib" / "a.jpg")
    manager = _manager(scan_config, sink)
    manager.start_scan(str(tmp_path / "lib"))
    manager.wait(timeout=30)

    with pytest.raises(ScanPathNotFoundError):
        manager.start_scan(str(tmp_path / "nope"))
    assert len(manager.get_all_media()) == 1


def test_second_start_while_running_is_rejected(tmp_path, sink, scan_config):
    root = tmp_path / "lib"
    root.mkdir()
    for i in range(50):
        (root / f"{i}.jpg").write_bytes(b"\x00")
    release = threading.Event()

    def blocking_thumbnailer(path, kind, settings):
        release.wait(10)
        return None

    manager = _manager(scan_config, sink, thumbnailer=blocking_thumbnailer)
    manager.start_scan(str(root))
    try:
        assert manager.is_scanning()
        with pytest.raises(ScanAlreadyRunningError) as excinfo:
            manager.start_scan(str(root))
        assert excinfo.value.status_code == 409
    finally:
        release.set()
    assert manager.wait(timeout=30)


def test_stop_scan_clears_running_flag(tmp_path, sink, scan_config):
    root = tmp_path / "lib"
    root.mkdir()
    for i in range(200):
        (root / f"{i}.jpg").write_bytes(b"\x00")
    release = threading.Event()

    def blocking_thumbnailer(path, kind, settings):
        release.wait(0.05)
        return None

    manager = _manager(scan_config, sink, thumbnailer=blocking_thumbnailer)
    manager.start_scan(str(root))
    manager.stop_scan()

    assert manager.wait(timeout=5)
    assert not manager.is_scanning()
    assert sink.progress[-1].is_complete
    assert len(manager.get_all_media()) < 200


def test_stop_without_session_is_a_no_op(sink, scan_config):
    manager = _manager(scan_config, sink)
    manager.stop_scan()
    assert manager.wait(timeout=0.1)
    assert manager.progress() is None


def test_auto_scan_on_startup(tmp_path, make_image, sink, scan_config):
    make_image(tmp_path / "lib" / "a.jpg")
    assert not _manager(scan_config, sink).auto_scan_on_startup()

    scan_config.scanner.scan_directories = [str(tmp_path / "lib")]
    manager = _manager(scan_config, sink)
    assert manager.auto_scan_on_startup()
    assert manager.wait(timeout=30)
    assert len(manager.get_all_media()) == 1


def test_auto_scan_skips_when_directories_are_gone(tmp_path, sink, scan_config):
    scan_config.scanner.scan_directories = [str(tmp_path / "gone")]
    assert not _manager(scan_config, sink).auto_scan_on_startup()


def test_config_changes_apply_to_next_scan(tmp_path, make_image, sink, scan_config):
    make_image(tmp_path / "lib" / "keep" / "a.jpg")
    make_image(tmp_path / "lib" / "skip" / "b.jpg")
    store = ConfigStore(scan_config)
    manager = ScanManager(store, sink)

    manager.start_scan(str(tmp_path / "lib"))
    manager.wait(timeout=30)
    assert len(manager.get_all_media()) == 2

    store.add_ignore_pattern("sk*")
    manager.start_scan(str(tmp_path / "lib"))
    manager.wait(timeout=30)
    assert [m.name for m in manager.get_all_media()] == ["a.jpg"]
