from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from poto.constants import HIDDEN_PREFIX
from poto.services.exceptions import DirectoryBrowseError


@dataclass
class DirectoryListing:
    path: str
    parent: Optional[str] = None
    children: List[str] = field(default_factory=list)


def home_directory() -> str:
    return str(Path.home())


def browse_directory(target: str) -> DirectoryListing:
    """List the visible subdirectories of ``target``; empty input means home."""
    base_path = Path(target or home_directory()).expanduser()
    base_path = Path(os.path.abspath(base_path))
    if not base_path.exists():
        raise DirectoryBrowseError(f"Path does not exist: {base_path}")
    if not base_path.is_dir():
        raise DirectoryBrowseError(f"Path is not a directory: {base_path}")

    listing = DirectoryListing(path=str(base_path))
    parent = base_path.parent
    # at the filesystem root the parent is the path itself
    if parent != base_path:
        listing.parent = str(parent)

    try:
        entries = list(os.scandir(base_path))
    except OSError as exc:
        raise DirectoryBrowseError(f"Cannot read {base_path}: {exc.strerror or exc}") from exc

    children = []
    for entry in entries:
        if entry.name.startswith(HIDDEN_PREFIX):
            continue
        try:
            if entry.is_dir():
                children.append(entry)
        except OSError:
            continue
    children.sort(key=lambda item: item.name.lower())
    listing.children = [os.path.join(str(base_path), entry.name) for entry in children]
    return listing


def common_directories() -> Dict[str, str]:
    home = Path.home()
    # macOS keeps videos under ~/Movies
    videos = "Movies" if platform.system().lower() == "darwin" else "Videos"
    return {
        "home": str(home),
        "documents": str(home / "Documents"),
        "pictures": str(home / "Pictures"),
        "videos": str(home / videos),
        "downloads": str(home / "Downloads"),
        "desktop": str(home / "Desktop"),
    }
