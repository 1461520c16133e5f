"""
Media Index
-----------
In-memory store of the media found by the current scan.

- Primary map: path -> MediaFile.
- Derived: parent folder -> paths, kind -> paths, and a recency list.
- The recency list keeps insertion (discovery) order only; it is not sorted by
  modification time. Date-range queries are a linear predicate instead.
- Writers hold the write lock for the whole update of all four structures;
  readers hold the read lock only while copying candidate records.
"""

from __future__ import annotations

import os
from datetime import datetime
from typing import Dict, List, Optional

from poto.services.media_models import FilterOptions, MediaFile
from poto.services.rwlock import ReadWriteLock

__all__ = ["MediaIndex"]

# dict used as an insertion-ordered set
_PathSet = Dict[str, None]


def _folder_prefix(folder: str) -> str:
    return folder if folder.endswith(os.sep) else folder + os.sep


def _in_folder(media: MediaFile, folder: str) -> bool:
    return media.parent_folder == folder or media.parent_folder.startswith(_folder_prefix(folder))


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.astimezone()


class MediaIndex:
    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._media: Dict[str, MediaFile] = {}
        self._by_folder: Dict[str, _PathSet] = {}
        self._by_kind: Dict[str, _PathSet] = {}
        self._recent: List[str] = []

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def clear(self) -> None:
        with self._lock.write():
            self._media = {}
            self._by_folder = {}
            self._by_kind = {}
            self._recent = []

    def insert(self, media: MediaFile) -> None:
        with self._lock.write():
            previous = self._media.get(media.path)
            if previous is not None:
                self._unlink(previous)
            self._media[media.path] = media
            self._by_folder.setdefault(media.parent_folder, {})[media.path] = None
            self._by_kind.setdefault(media.type, {})[media.path] = None
            self._recent.append(media.path)

    def _unlink(self, media: MediaFile) -> None:
        bucket = self._by_folder.get(media.parent_folder)
        if bucket is not None:
            bucket.pop(media.path, None)
            if not bucket:
                del self._by_folder[media.parent_folder]
        bucket = self._by_kind.get(media.type)
        if bucket is not None:
            bucket.pop(media.path, None)
            if not bucket:
                del self._by_kind[media.type]
        try:
            self._recent.remove(media.path)
        except ValueError:
            pass

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._media)

    def __contains__(self, path: object) -> bool:
        with self._lock.read():
            return path in self._media

    def get(self, path: str) -> Optional[MediaFile]:
        with self._lock.read():
            return self._media.get(path)

    def paths(self) -> List[str]:
        with self._lock.read():
            return list(self._media)

    def all(self) -> List[MediaFile]:
        with self._lock.read():
            return list(self._media.values())

    def recent(self, limit: Optional[int] = None) -> List[MediaFile]:
        """Most recently discovered first."""
        with self._lock.read():
            paths = self._recent[::-1] if limit is None else self._recent[: -limit - 1 : -1]
            return [self._media[p] for p in paths]

    def _candidates(self, options: FilterOptions) -> List[MediaFile]:
        folder = os.path.normpath(options.folder_path) if options.folder_path else ""
        with self._lock.read():
            if folder:
                prefix = _folder_prefix(folder)
                paths: List[str] = []
                for key, bucket in self._by_folder.items():
                    if key == folder or key.startswith(prefix):
                        paths.extend(bucket)
            elif options.kind:
                paths = list(self._by_kind.get(options.kind, ()))
            else:
                return list(self._media.values())
            return [self._media[p] for p in paths]

    def query(self, options: FilterOptions) -> List[MediaFile]:
        candidates = self._candidates(options)

        folder = os.path.normpath(options.folder_path) if options.folder_path else ""
        kind = options.kind
        from_date = _aware(options.from_date) if options.from_date else None
        to_date = _aware(options.to_date) if options.to_date else None
        needle = options.search_term.lower()

        results: List[MediaFile] = []
        for media in candidates:
            if folder and not _in_folder(media, folder):
                continue
            if kind and media.type != kind:
                continue
            if from_date is not None and media.modified_time < from_date:
                continue
            if to_date is not None and media.modified_time > to_date:
                continue
            if needle and needle not in media.name.lower() and needle not in media.path.lower():
                continue
            results.append(media)
        return results
