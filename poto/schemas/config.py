from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

from poto.constants import QUALITY_ALIASES, QUALITY_MAX_DIMENSION

QualityTier = Literal["low", "medium", "high"]


class FolderRule(BaseModel):
    """Per-directory policy applied to the direct subfolders of the keyed path."""

    allowed_subfolders: List[str] = Field(default_factory=list, description="Empty means allow all.")
    blocked_subfolders: List[str] = Field(default_factory=list)
    scan_recursively: bool = True


class ScannerConfig(BaseModel):
    scan_directories: List[str] = Field(default_factory=list, description="Default roots, also the allowed roots.")
    excluded_directories: List[str] = Field(default_factory=list, description="Directory names, matched case-insensitively.")
    ignore_patterns: List[str] = Field(default_factory=list, description="Wildcard patterns matched against directory names.")
    ignore_hidden: bool = True
    per_folder_rules: Dict[str, FolderRule] = Field(default_factory=dict)


class PreviewConfig(BaseModel):
    quality: QualityTier = "medium"
    jpeg_quality: int = Field(default=85, ge=1, le=100)
    video_thumbnails: bool = True
    video_thumbnail_offset: float = Field(default=1.0, ge=0.0, description="Seconds into the video to sample.")
    video_thumbnail_timeout: float = Field(default=15.0, gt=0.0, description="Seconds before the frame tool is killed.")

    @field_validator("quality", mode="before")
    @classmethod
    def _normalize_quality(cls, value):
        if isinstance(value, str):
            key = value.strip().lower()
            return QUALITY_ALIASES.get(key, key)
        return value

    @property
    def max_dimension(self) -> int:
        return QUALITY_MAX_DIMENSION[self.quality]


class PerformanceConfig(BaseModel):
    worker_threads: int = Field(default=8, ge=1)
    batch_size: int = Field(default=50, ge=1)
    max_thumbnail_size: int = Field(default=100, ge=1, description="Largest source file (MiB) read for a thumbnail.")
    progress_interval: int = Field(default=100, ge=1, description="Scanned-file cadence of progress snapshots.")
    path_queue_size: int = Field(default=200, ge=1)
    result_queue_size: int = Field(default=100, ge=1)

    @property
    def max_thumbnail_bytes(self) -> int:
        return self.max_thumbnail_size * 1024 * 1024


class LookConfig(BaseModel):
    theme: str = "light"


class AppConfig(BaseModel):
    """Top-level configuration, mirrors the sections of ``config.toml``."""

    scanner: ScannerConfig = Field(default_factory=ScannerConfig)
    preview: PreviewConfig = Field(default_factory=PreviewConfig)
    performance: PerformanceConfig = Field(default_factory=PerformanceConfig)
    look: LookConfig = Field(default_factory=LookConfig)


__all__ = [
    "AppConfig",
    "FolderRule",
    "LookConfig",
    "PerformanceConfig",
    "PreviewConfig",
    "QualityTier",
    "ScannerConfig",
]
