import logging
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qr_order_scanner.api.api import pages as pages_router
from qr_order_scanner.api.api import router as api_router
from qr_order_scanner.core.config import Settings, load_settings
from qr_order_scanner.core.logging_setup import configure_logging
from qr_order_scanner.db.session import build_engine, build_session_factory

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, upstream_transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the app. `upstream_transport` replaces the network for Admin API
    calls (tests pass an httpx.MockTransport).
    """
    settings = settings or load_settings()
    configure_logging(settings)

    app = FastAPI(title="QR Order Scanner API", version="0.1.0")

    app.state.settings = settings
    app.state.upstream_transport = upstream_transport
    # db's handled by alembic migrations; run 'alembic upgrade head' or scripts/init_db.py
    app.state.engine = build_engine(settings)
    app.state.session_factory = build_session_factory(app.state.engine)

    # set up CORS so the POS extension can talk to us
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api")
    app.include_router(pages_router, prefix="/app")

    @app.get("/health")
    def health():
        return {"status": "ok", "env": settings.APP_ENV}

    logger.info(f"App created (env={settings.APP_ENV}, api version={settings.SHOPIFY_API_VERSION})")
    return app


def run() -> None:
    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.APP_HOST, port=settings.APP_PORT)


if __name__ == "__main__":
    run()
