from __future__ import annotations

from typing import Dict

from fastapi import APIRouter, Query

from poto.api.deps import raise_service_error
from poto.schemas.fs import DirectoryListingResponse, HomeDirectoryResponse
from poto.services import filesystem_browser
from poto.services.exceptions import ServiceError

router = APIRouter(prefix="/fs", tags=["fs"])


@router.get("/browse", response_model=DirectoryListingResponse, response_model_exclude_none=True)
def browse(path: str = Query("", description="Absolute path; empty means the home directory")):
    try:
        listing = filesystem_browser.browse_directory(path)
    except ServiceError as exc:
        raise_service_error(exc)
    return DirectoryListingResponse(path=listing.path, parent=listing.parent, children=listing.children)


@router.get("/home", response_model=HomeDirectoryResponse)
def home():
    return HomeDirectoryResponse(path=filesystem_browser.home_directory())


@router.get("/common", response_model=Dict[str, str])
def common():
    return filesystem_browser.common_directories()
