import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, settings as default_settings
from app.crud import MongoStore
from app.database import close_connections, connect
from app.errors import register_exception_handlers
from app.routers import auth, dashboard, files, health, tenders
from app.storage import GridFSLogoStorage

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Settings = None, store=None, storage=None) -> FastAPI:
    """Build the API.

    ``store`` and ``storage`` are created from ``settings`` on startup unless
    supplied; supplied ones are used as-is and never closed by the app.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.validate()
        if app.state.store is None or app.state.storage is None:
            client, db = connect(settings)
            app.state.mongo_client = client
            if app.state.store is None:
                app.state.store = MongoStore(db)
                await app.state.store.ensure_indexes()
            if app.state.storage is None:
                app.state.storage = GridFSLogoStorage(db, settings.LOGO_BUCKET, settings.PUBLIC_BASE_URL)
        logger.info(f"Tender Marketplace API started ({settings.ENVIRONMENT})")
        try:
            yield
        finally:
            if app.state.mongo_client is not None:
                close_connections(app.state.mongo_client)
                app.state.mongo_client = None

    app = FastAPI(
        title="Tender Marketplace API",
        description="Post tenders, browse other companies' tenders and manage applications.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.storage = storage
    app.state.mongo_client = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CORS_ORIGIN],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app, protected_prefixes=(dashboard.router.prefix, tenders.router.prefix))

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(dashboard.router)
    app.include_router(tenders.router)
    app.include_router(files.router)

    return app


app = create_app()


def run():
    configure_logging(default_settings)
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    run()
