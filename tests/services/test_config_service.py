from __future__ import annotations

import pytest

from poto.schemas.config import AppConfig, FolderRule
from poto.services.config_service import ConfigStore, apply_env_overrides, load_config, parse_config
from poto.services.exceptions import InvalidConfigError

SAMPLE = """
[scanner]
scan_directories = ["~/Pictures"]
excluded_directories = ["node_modules"]
ignore_patterns = ["cache_*"]
ignore_hidden = false

[scanner.per_folder_rules."/data/photos"]
allowed_subfolders = ["2024"]
scan_recursively = false

[preview]
quality = "large"
jpeg_quality = 90
video_thumbnails = false

[performance]
worker_threads = 3
batch_size = 10

[look]
theme = "dark"
"""


def test_defaults():
    config = AppConfig()
    assert config.preview.quality == "medium"
    assert config.preview.max_dimension == 1200
    assert config.preview.jpeg_quality == 85
    assert config.preview.video_thumbnails is True
    assert config.performance.worker_threads == 8
    assert config.performance.batch_size == 50
    assert config.performance.max_thumbnail_bytes == 100 * 1024 * 1024
    assert config.scanner.ignore_hidden is True
    assert config.look.theme == "light"


def test_parse_full_file():
    config = parse_config(SAMPLE)
    assert config.scanner.scan_directories == ["~/Pictures"]
    assert config.scanner.ignore_hidden is False
    rule = config.scanner.per_folder_rules["/data/photos"]
    assert rule.allowed_subfolders == ["2024"]
    assert rule.scan_recursively is False
    assert config.preview.quality == "high"
    assert config.preview.max_dimension == 2400
    assert config.performance.worker_threads == 3
    assert config.look.theme == "dark"


@pytest.mark.parametrize("raw", ["[scanner\nbroken", "[performance]\nworker_threads = 0\n", "[preview]\nquality = 'huge'\n"])
def test_parse_rejects_bad_input(raw):
    with pytest.raises(InvalidConfigError) as excinfo:
        parse_config(raw)
    assert excinfo.value.status_code == 422


def test_load_config_uses_env_path(tmp_path, monkeypatch):
    path = tmp_path / "poto.toml"
    path.write_text(SAMPLE, encoding="utf-8")
    monkeypatch.setenv("POTO_CONFIG", str(path))
    assert load_config().performance.batch_size == 10


def test_load_config_reads_user_config_dir(tmp_path):
    user_cfg = tmp_path / "home" / ".config" / "Poto" / "config.toml"
    user_cfg.parent.mkdir(parents=True)
    user_cfg.write_text("[look]\ntheme = 'dark'\n", encoding="utf-8")
    assert load_config().look.theme == "dark"


def test_broken_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("not = [valid", encoding="utf-8")
    assert load_config(path) == AppConfig()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("POTO_WORKER_THREADS", "4")
    monkeypatch.setenv("POTO_BATCH_SIZE", "nope")
    monkeypatch.setenv("POTO_IGNORE_HIDDEN", "off")
    monkeypatch.setenv("POTO_VIDEO_THUMBNAILS", "0")
    config = apply_env_overrides(AppConfig())
    assert config.performance.worker_threads == 4
    assert config.performance.batch_size == 50
    assert config.scanner.ignore_hidden is False
    assert config.preview.video_thumbnails is False


def test_invalid_env_override_keeps_values(monkeypatch):
    monkeypatch.setenv("POTO_WORKER_THREADS", "0")
    assert apply_env_overrides(AppConfig()).performance.worker_threads == 8


def test_store_returns_copies():
    store = ConfigStore()
    snapshot = store.get()
    snapshot.scanner.scan_directories.append("/elsewhere")
    assert store.get().scanner.scan_directories == []


def test_store_scan_directory_helpers(tmp_path):
    store = ConfigStore()
    store.add_scan_directory(str(tmp_path))
    store.add_scan_directory(str(tmp_path) + "/")
    assert store.get().scanner.scan_directories == [str(tmp_path)]
    assert store.remove_scan_directory(str(tmp_path) + "/.").scanner.scan_directories == []


def test_store_rule_and_pattern_helpers(tmp_path):
    store = ConfigStore()
    config = store.add_folder_rule(str(tmp_path), FolderRule(blocked_subfolders=["raw"]))
    assert config.scanner.per_folder_rules[str(tmp_path)].blocked_subfolders == ["raw"]
    assert store.remove_folder_rule(str(tmp_path)).scanner.per_folder_rules == {}

    store.add_ignore_pattern("tmp*")
    store.add_ignore_pattern("tmp*")
    assert store.get().scanner.ignore_patterns == ["tmp*"]
    assert store.remove_ignore_pattern("tmp*").scanner.ignore_patterns == []
