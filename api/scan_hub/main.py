# scan_hub/main.py
# Scan Hub - EAN-13 weight barcode scanning and aggregation
from __future__ import annotations
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scan_hub.logging_setup import setup_logging
from scan_hub.runtime import build_hub
from scan_hub.settings import Settings, settings as default_settings

from scan_hub.routers.settings import router as settings_router
from scan_hub.routers.parse_types import router as parse_types_router
from scan_hub.routers.products import router as products_router
from scan_hub.routers.scan_lists import router as scan_lists_router

logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    # ---------------------------------------------------------
    # Lifespan: logging, services, flush on shutdown
    # ---------------------------------------------------------
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_path = setup_logging(settings)
        hub = build_hub(settings)
        hub.settings.initialize()
        app.state.hub = hub
        logger.info("Scan Hub %s started (log file: %s)", VERSION, log_path or "disabled")
        yield
        hub.close()
        logger.info("Scan Hub stopped, pending writes flushed")

    app = FastAPI(
        title="Scan Hub API",
        version=VERSION,
        description="EAN-13 weight barcode parsing, scan lists and totals",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.SCAN_HUB_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.include_router(settings_router)
    app.include_router(parse_types_router)
    app.include_router(products_router)
    app.include_router(scan_lists_router)

    @app.get("/health")
    def health():
        hub = getattr(app.state, "hub", None)
        return {
            "status": "ok" if hub is not None else "starting",
            "version": VERSION,
            "data_root": str(settings.SCAN_HUB_DATA_ROOT),
        }

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("scan_hub.main:app", host="127.0.0.1", port=8000)


if __name__ == "__main__":
    run()
