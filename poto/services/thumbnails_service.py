from __future__ import annotations

"""
Thumbnail Service
-----------------
Builds the inline preview carried by each MediaFile.

- Images: Pillow decodes at most ``max_bytes`` of the source, resizes the
  longest edge to the quality tier bound (LANCZOS) and re-encodes as JPEG.
- Videos: ``ffmpeg`` samples one frame at the configured offset into a temp
  file, which then goes through the same resize/encode path.
- Output is a ``data:image/jpeg;base64,...`` URI, so the consumer needs no
  further I/O to show it.
- Every failure (oversized source, unknown format, corrupted data, missing
  ffmpeg, timeout) yields ``None``; nothing here raises into the scan.
"""

import base64
import logging
import os
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from functools import partial
from io import BytesIO
from typing import Callable, Dict, Optional, Sequence

from PIL import Image

from poto.constants import FRAME_TOOL, MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO
from poto.schemas.config import AppConfig
from poto.services.classifier import extension_of

logger = logging.getLogger(__name__)

_LANCZOS = Image.Resampling.LANCZOS
DATA_URI_PREFIX = "data:image/jpeg;base64,"


@dataclass(frozen=True)
class ThumbnailSettings:
    max_bytes: int = 100 * 1024 * 1024
    max_dimension: int = 1200
    jpeg_quality: int = 85
    video_thumbnails: bool = True
    video_offset: float = 1.0
    video_timeout: float = 15.0

    @classmethod
    def from_config(cls, config: AppConfig) -> "ThumbnailSettings":
        return cls(
            max_bytes=config.performance.max_thumbnail_bytes,
            max_dimension=config.preview.max_dimension,
            jpeg_quality=config.preview.jpeg_quality,
            video_thumbnails=config.preview.video_thumbnails,
            video_offset=config.preview.video_thumbnail_offset,
            video_timeout=config.preview.video_thumbnail_timeout,
        )


@dataclass(frozen=True)
class DecodeResult:
    image: Optional[Image.Image] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.image is not None


Decoder = Callable[[bytes], DecodeResult]


def _decode(data: bytes, formats: Optional[Sequence[str]]) -> DecodeResult:
    try:
        img = Image.open(BytesIO(data), formats=formats)
        img.load()
    except Exception as exc:
        return DecodeResult(error=f"{exc.__class__.__name__}: {exc}")
    return DecodeResult(image=img)


# Adding a codec is one entry here; anything else is sniffed from its header.
DECODERS: Dict[str, Decoder] = {
    ".jpg": partial(_decode, formats=("JPEG",)),
    ".jpeg": partial(_decode, formats=("JPEG",)),
    ".png": partial(_decode, formats=("PNG",)),
    ".gif": partial(_decode, formats=("GIF",)),
    ".bmp": partial(_decode, formats=("BMP",)),
    ".tif": partial(_decode, formats=("TIFF",)),
    ".tiff": partial(_decode, formats=("TIFF",)),
    ".webp": partial(_decode, formats=("WEBP",)),
}
sniff_decoder: Decoder = partial(_decode, formats=None)


def decoder_for(ext: str) -> Decoder:
    return DECODERS.get(ext.lower(), sniff_decoder)


def to_data_uri(jpeg_bytes: bytes) -> str:
    return DATA_URI_PREFIX + base64.b64encode(jpeg_bytes).decode("ascii")


def render_thumbnail(img: Image.Image, settings: ThumbnailSettings) -> Optional[bytes]:
    """Resize within ``settings.max_dimension`` and encode as JPEG."""
    try:
        im = img
        if im.mode in {"P", "PA"}:
            im = im.convert("RGBA")
        im = im.copy()
        im.thumbnail((settings.max_dimension, settings.max_dimension), _LANCZOS)
        if im.mode not in {"RGB", "L"}:
            im = im.convert("RGB")
        buf = BytesIO()
        im.save(buf, format="JPEG", quality=settings.jpeg_quality)
        return buf.getvalue()
    except Exception as exc:
        logger.debug("Thumbnail encode failed: %s", exc)
        return None


def read_bounded(path: str, max_bytes: int) -> Optional[bytes]:
    """Read the whole file if it fits in ``max_bytes``; never reads more than that."""
    try:
        with open(path, "rb") as fh:
            if os.fstat(fh.fileno()).st_size > max_bytes:
                return None
            return fh.read(max_bytes)
    except OSError as exc:
        logger.debug("Cannot read %s: %s", path, exc)
        return None


def generate_image_thumbnail(path: str, settings: ThumbnailSettings) -> Optional[str]:
    data = read_bounded(path, settings.max_bytes)
    if not data:
        return None
    result = decoder_for(extension_of(path))(data)
    if not result.ok:
        logger.debug("Decode failed for %s: %s", path, result.error)
        return None
    try:
        encoded = render_thumbnail(result.image, settings)
    finally:
        result.image.close()
    return to_data_uri(encoded) if encoded else None


def frame_tool_path() -> Optional[str]:
    return shutil.which(FRAME_TOOL)


def _extract_frame(tool: str, src: str, dest: str, settings: ThumbnailSettings) -> bool:
    cmd = [
        tool,
        "-y",
        "-loglevel", "error",
        "-ss", f"{settings.video_offset:.1f}",
        "-i", src,
        "-vframes", "1",
        "-q:v", "2",
        dest,
    ]
    try:
        subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            timeout=settings.video_timeout,
            check=True,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("Frame extraction failed for %s: %s", src, exc)
        return False
    return True


def generate_video_thumbnail(path: str, settings: ThumbnailSettings) -> Optional[str]:
    if not settings.video_thumbnails:
        return None
    tool = frame_tool_path()
    if tool is None:
        return None

    try:
        fd, tmp_path = tempfile.mkstemp(prefix="thumb_", suffix=".jpg")
        os.close(fd)
    except OSError:
        return None
    try:
        if not _extract_frame(tool, path, tmp_path, settings):
            return None
        with open(tmp_path, "rb") as fh:
            frame = fh.read()
        if not frame:
            return None
        result = decoder_for(".jpg")(frame)
        if not result.ok:
            return to_data_uri(frame)
        try:
            encoded = render_thumbnail(result.image, settings)
        finally:
            result.image.close()
        return to_data_uri(encoded or frame)
    except OSError as exc:
        logger.debug("Cannot read sampled frame for %s: %s", path, exc)
        return None
    finally:
        try:
            os.remove(tmp_path)
        except OSError:
            pass


def generate_thumbnail(path: str, kind: str, settings: ThumbnailSettings) -> Optional[str]:
    if kind == MEDIA_KIND_IMAGE:
        return generate_image_thumbnail(path, settings)
    if kind == MEDIA_KIND_VIDEO:
        return generate_video_thumbnail(path, settings)
    return None
