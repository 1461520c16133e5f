from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from poto.constants import MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO
from poto.services.media_models import FilterOptions, MediaFile, ScanProgress


MEDIA_TYPE_FILTERS = frozenset({"", "all", MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO})


class MediaItem(BaseModel):
    path: str
    name: str
    size: int
    type: str
    thumbnail: Optional[str] = None
    modifiedTime: datetime
    parentFolder: str

    @classmethod
    def from_domain(cls, media: MediaFile) -> "MediaItem":
        return cls(
            path=media.path,
            name=media.name,
            size=media.size,
            type=media.type,
            thumbnail=media.thumbnail,
            modifiedTime=media.modified_time,
            parentFolder=media.parent_folder,
        )

    def to_payload(self) -> dict:
        # thumbnail is omitted, not null, when generation did not succeed
        return self.model_dump(mode="json", exclude_none=True)


class ScanProgressModel(BaseModel):
    scannedFiles: int = 0
    foundMedia: int = 0
    currentPath: str = ""
    isComplete: bool = False

    @classmethod
    def from_domain(cls, progress: ScanProgress) -> "ScanProgressModel":
        return cls(
            scannedFiles=progress.scanned_files,
            foundMedia=progress.found_media,
            currentPath=progress.current_path,
            isComplete=progress.is_complete,
        )


class FilterRequest(BaseModel):
    folderPath: str = ""
    mediaType: str = Field("", description="image | video | all, empty for any")
    fromDate: Optional[datetime] = None
    toDate: Optional[datetime] = None
    searchTerm: str = ""

    @field_validator("mediaType")
    @classmethod
    def _known_media_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in MEDIA_TYPE_FILTERS:
            raise ValueError(f"mediaType must be one of {sorted(MEDIA_TYPE_FILTERS)}")
        return normalized

    @field_validator("fromDate", "toDate")
    @classmethod
    def _zero_time_is_unset(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Clients send 0001-01-01T00:00:00Z for "no bound".
        if value is not None and value.year <= 1:
            return None
        return value

    def to_options(self) -> FilterOptions:
        return FilterOptions(
            folder_path=self.folderPath,
            media_type=self.mediaType,
            from_date=self.fromDate,
            to_date=self.toDate,
            search_term=self.searchTerm,
        )


class ScanStartRequest(BaseModel):
    path: str = Field("", description="Empty scans the configured directories.")


class ScanStartResponse(BaseModel):
    started: bool
    message: Optional[str] = None


class ScanStatusResponse(BaseModel):
    scanning: bool
    progress: Optional[ScanProgressModel] = None
