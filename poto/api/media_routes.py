from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query

from poto.api.deps import get_scan_manager
from poto.schemas.media import FilterRequest, MediaItem
from poto.services.media_models import MediaFile
from poto.services.scan_manager import ScanManager

router = APIRouter(prefix="/media", tags=["media"])


def _items(media: List[MediaFile]) -> List[MediaItem]:
    return [MediaItem.from_domain(m) for m in media]


# Records without a thumbnail leave the field out entirely.
@router.get("", response_model=List[MediaItem], response_model_exclude_none=True)
def get_all_media(manager: ScanManager = Depends(get_scan_manager)):
    return _items(manager.get_all_media())


@router.post("/filter", response_model=List[MediaItem], response_model_exclude_none=True)
def filter_media(payload: FilterRequest, manager: ScanManager = Depends(get_scan_manager)):
    return _items(manager.filter_media(payload.to_options()))


@router.get("/folder", response_model=List[MediaItem], response_model_exclude_none=True)
def get_media_by_folder(
    path: str = Query(..., min_length=1, description="Folder; subfolders are included"),
    manager: ScanManager = Depends(get_scan_manager),
):
    return _items(manager.get_media_by_folder(path))


@router.get("/type/{kind}", response_model=List[MediaItem], response_model_exclude_none=True)
def get_media_by_type(kind: Literal["image", "video"], manager: ScanManager = Depends(get_scan_manager)):
    return _items(manager.get_media_by_type(kind))


@router.get("/date-range", response_model=List[MediaItem], response_model_exclude_none=True)
def get_media_by_date_range(
    from_date: Optional[datetime] = Query(None, alias="from", description="ISO8601, inclusive"),
    to_date: Optional[datetime] = Query(None, alias="to", description="ISO8601, inclusive"),
    manager: ScanManager = Depends(get_scan_manager),
):
    return _items(manager.get_media_by_date_range(from_date, to_date))


@router.get("/recent", response_model=List[MediaItem], response_model_exclude_none=True)
def get_recent_media(
    limit: Optional[int] = Query(None, ge=1, le=10000),
    manager: ScanManager = Depends(get_scan_manager),
):
    return _items(manager.get_recent_media(limit))
