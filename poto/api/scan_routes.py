from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from poto.api.deps import get_scan_manager, raise_service_error
from poto.schemas.media import ScanProgressModel, ScanStartRequest, ScanStartResponse, ScanStatusResponse
from poto.services.exceptions import ServiceError
from poto.services.scan_manager import ScanManager

router = APIRouter(prefix="/scan", tags=["scan"])


@router.post("/start", response_model=ScanStartResponse)
def start_scan(
    payload: Optional[ScanStartRequest] = None,
    manager: ScanManager = Depends(get_scan_manager),
):
    path = payload.path if payload is not None else ""
    try:
        session = manager.start_scan(path)
    except ServiceError as exc:
        raise_service_error(exc)
    return ScanStartResponse(started=True, message=", ".join(session.roots))


@router.post("/stop", response_model=ScanStatusResponse)
def stop_scan(manager: ScanManager = Depends(get_scan_manager)):
    manager.stop_scan()
    return _status(manager)


@router.get("/status", response_model=ScanStatusResponse)
def scan_status(manager: ScanManager = Depends(get_scan_manager)):
    return _status(manager)


def _status(manager: ScanManager) -> ScanStatusResponse:
    progress = manager.progress()
    return ScanStatusResponse(
        scanning=manager.is_scanning(),
        progress=ScanProgressModel.from_domain(progress) if progress is not None else None,
    )
