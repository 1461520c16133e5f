from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, Request

from poto.services.config_service import ConfigStore
from poto.services.exceptions import ServiceError
from poto.services.notifications import EventHub
from poto.services.scan_manager import ScanManager


def get_scan_manager(request: Request) -> ScanManager:
    return request.app.state.scan_manager


def get_config_store(request: Request) -> ConfigStore:
    return request.app.state.config_store


def get_event_hub(request: Request) -> EventHub:
    return request.app.state.event_hub


def raise_service_error(exc: ServiceError) -> NoReturn:
    detail = str(exc) or exc.__class__.__name__
    raise HTTPException(status_code=exc.status_code, detail=detail)
