import logging
from typing import Optional

from fastapi import FastAPI

# config loads .env, so it must come before anything that reads settings
from . import config
from .db.database import build_store
from .db.store import MessageStore
from .middleware.compression import GzipNegotiationMiddleware
from .middleware.request_logger import RequestLoggerMiddleware
from .routes.webhook import router as webhook_router


def create_app(store: Optional[MessageStore] = None, access_logger: Optional[logging.Logger] = None) -> FastAPI:
    app = FastAPI(title="Alice Skill Backend", version="0.1.0", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.store = store

    # Added innermost first: logging(gzip(app))
    app.add_middleware(GzipNegotiationMiddleware)
    app.add_middleware(RequestLoggerMiddleware, logger=access_logger)

    app.include_router(webhook_router)

    @app.on_event("startup")
    def on_startup():
        # Connect lazily so that importing this module never touches the database
        if app.state.store is None:
            app.state.store = build_store(config.DATABASE_URI)

    return app


app = create_app()
