from __future__ import annotations

import os

from fastapi import APIRouter, Depends, Query

from poto.api.deps import get_config_store, raise_service_error
from poto.schemas.config import AppConfig
from poto.schemas.settings import FolderRuleRequest, IgnorePatternRequest, ScanDirectoryRequest
from poto.services.config_service import ConfigStore
from poto.services.exceptions import ScanPathNotFoundError
from poto.services.scan_policy import normalize_dir

router = APIRouter(prefix="/settings", tags=["settings"])

# Changes apply to the next scan; a running session keeps its snapshot.


@router.get("/config", response_model=AppConfig)
def get_config(store: ConfigStore = Depends(get_config_store)):
    return store.get()


@router.put("/config", response_model=AppConfig)
def replace_config(payload: AppConfig, store: ConfigStore = Depends(get_config_store)):
    return store.replace(payload)


@router.post("/scan-directories", response_model=AppConfig)
def add_scan_directory(payload: ScanDirectoryRequest, store: ConfigStore = Depends(get_config_store)):
    target = normalize_dir(payload.path)
    if not os.path.isdir(target):
        raise_service_error(ScanPathNotFoundError(f"Directory not found: {target}"))
    return store.add_scan_directory(target)


@router.delete("/scan-directories", response_model=AppConfig)
def remove_scan_directory(
    path: str = Query(..., min_length=1),
    store: ConfigStore = Depends(get_config_store),
):
    return store.remove_scan_directory(path)


@router.put("/folder-rules", response_model=AppConfig)
def put_folder_rule(payload: FolderRuleRequest, store: ConfigStore = Depends(get_config_store)):
    return store.add_folder_rule(payload.folder, payload.rule)


@router.delete("/folder-rules", response_model=AppConfig)
def delete_folder_rule(
    folder: str = Query(..., min_length=1),
    store: ConfigStore = Depends(get_config_store),
):
    return store.remove_folder_rule(folder)


@router.post("/ignore-patterns", response_model=AppConfig)
def add_ignore_pattern(payload: IgnorePatternRequest, store: ConfigStore = Depends(get_config_store)):
    return store.add_ignore_pattern(payload.pattern.strip())


@router.delete("/ignore-patterns", response_model=AppConfig)
def remove_ignore_pattern(
    pattern: str = Query(..., min_length=1),
    store: ConfigStore = Depends(get_config_store),
):
    return store.remove_ignore_pattern(pattern)
