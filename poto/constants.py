"""Shared constants for the scanning core."""

IMAGE_EXTS = frozenset({
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".svg", ".ico",
    ".tiff", ".tif", ".heic", ".heif",
})
VIDEO_EXTS = frozenset({
    ".mp4", ".avi", ".mkv", ".mov", ".wmv", ".flv", ".webm", ".m4v",
    ".mpg", ".mpeg", ".3gp", ".ogv",
})

MEDIA_KIND_IMAGE = "image"
MEDIA_KIND_VIDEO = "video"

# Longest edge of a generated preview, per quality tier.
QUALITY_MAX_DIMENSION = {
    "low": 512,
    "medium": 1200,
    "high": 2400,
}
QUALITY_ALIASES = {"small": "low", "large": "high"}

HIDDEN_PREFIX = "."
FRAME_TOOL = "ffmpeg"

EVENT_MEDIA_FOUND = "mediaFound"
EVENT_SCAN_PROGRESS = "scanProgress"
EVENT_SCAN_ERROR = "scanError"

CONFIG_ENV_KEY = "POTO_CONFIG"
