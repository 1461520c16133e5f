from __future__ import annotations

import os
from typing import Optional

from poto.constants import IMAGE_EXTS, MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO, VIDEO_EXTS

__all__ = ["classify_media_type", "is_media_file", "extension_of"]


def extension_of(name: str) -> str:
    return os.path.splitext(name)[1].lower()


def classify_media_type(name: str) -> Optional[str]:
    """Map a file name to ``"image"``, ``"video"`` or ``None`` (not media)."""
    ext = extension_of(name)
    if ext in IMAGE_EXTS:
        return MEDIA_KIND_IMAGE
    if ext in VIDEO_EXTS:
        return MEDIA_KIND_VIDEO
    return None


def is_media_file(name: str) -> bool:
    return classify_media_type(name) is not None
