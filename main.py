import logging
import os
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from poto import __version__
from poto.api.events_routes import router as events_router
from poto.api.fs_routes import router as fs_router
from poto.api.media_routes import router as media_router
from poto.api.scan_routes import router as scan_router
from poto.api.settings_routes import router as settings_router
from poto.logging_setup import configure_logging
from poto.services.config_service import ConfigStore, load_config
from poto.services.notifications import CompositeSink, EventHub, LoggingSink
from poto.services.scan_manager import ScanManager

logger = logging.getLogger("poto")


def _auto_scan_enabled() -> bool:
    raw = os.environ.get("POTO_AUTO_SCAN")
    if raw is None:
        return True
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def create_app(config_store: Optional[ConfigStore] = None, *, auto_scan: Optional[bool] = None) -> FastAPI:
    app = FastAPI(title="Poto API", version=__version__)

    store = config_store if config_store is not None else ConfigStore(load_config())
    hub = EventHub()
    app.state.config_store = store
    app.state.event_hub = hub
    app.state.scan_manager = ScanManager(store, CompositeSink(LoggingSink(), hub))

    app.add_middleware(
        CORSMiddleware,
        # local UI on another port
        allow_origin_regex=r".*",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        max_age=86400,
    )

    app.include_router(scan_router)
    app.include_router(media_router)
    app.include_router(events_router)
    app.include_router(settings_router)
    app.include_router(fs_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    run_auto_scan = _auto_scan_enabled() if auto_scan is None else auto_scan

    @app.on_event("startup")
    def _start_configured_scan():
        if not run_auto_scan:
            return
        if app.state.scan_manager.auto_scan_on_startup():
            logger.info("Startup scan of configured directories started")

    @app.on_event("shutdown")
    def _stop_scan():
        app.state.scan_manager.shutdown()

    return app


app = create_app()


if __name__ == "__main__":
    configure_logging()
    host = os.environ.get("POTO_HOST", "127.0.0.1")
    try:
        port = int(os.environ.get("POTO_PORT", "8000"))
    except ValueError:
        port = 8000
    logger.info("Poto API starting on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port)
