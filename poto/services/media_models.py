from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

__all__ = ["FilterOptions", "MediaFile", "ScanProgress"]


@dataclass(frozen=True)
class MediaFile:
    """One discovered media file. Immutable once built by a worker."""

    path: str
    name: str
    size: int
    type: str
    modified_time: datetime
    parent_folder: str
    thumbnail: Optional[str] = None

    @classmethod
    def from_stat(cls, path: str, kind: str, st: os.stat_result, *, thumbnail: Optional[str] = None) -> "MediaFile":
        return cls(
            path=path,
            name=os.path.basename(path),
            size=int(st.st_size),
            type=kind,
            modified_time=datetime.fromtimestamp(st.st_mtime).astimezone(),
            parent_folder=os.path.dirname(path),
            thumbnail=thumbnail,
        )


@dataclass(frozen=True)
class ScanProgress:
    scanned_files: int = 0
    found_media: int = 0
    current_path: str = ""
    is_complete: bool = False


@dataclass(frozen=True)
class FilterOptions:
    """Conjunctive query; every unset field matches everything."""

    folder_path: str = ""
    media_type: str = ""
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    search_term: str = ""

    @property
    def kind(self) -> str:
        return "" if self.media_type == "all" else self.media_type
