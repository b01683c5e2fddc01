# blog_api/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI

from blog_api import __version__
from blog_api.config import Settings, load_settings
from blog_api.database import Database, get_database
from blog_api.errors import install_error_handlers
from blog_api.middleware import configure_logging, install_middleware
from blog_api.routes.admin import router as admin_router
from blog_api.routes.posts import router as posts_router
from blog_api.routes.categories import router as categories_router
from blog_api.routes.comments import router as comments_router
from blog_api.routes.subscribers import router as subscribers_router
from blog_api.routes.users import router as users_router
from blog_api.routes import contact
from blog_api.security import TokenSigner

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    """
    Build the API. The pool and the signing secret are created here and kept
    on app.state; routes reach them through dependencies.
    """
    settings = settings or load_settings()
    database = database or Database(settings.database_url)

    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting blog API (%s)", "production" if settings.production else "development")
        yield
        database.dispose()

    app = FastAPI(title="Blog CMS API", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.signer = TokenSigner(secret=settings.jwt_secret, lifetime_seconds=settings.jwt_expires_seconds)

    install_middleware(app, settings)
    install_error_handlers(app)

    app.include_router(admin_router)
    app.include_router(posts_router)
    app.include_router(categories_router)
    app.include_router(comments_router)
    app.include_router(subscribers_router)
    app.include_router(users_router)
    app.include_router(contact.router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/db-ping")
    def db_ping(db: Database = Depends(get_database)) -> dict:
        return {"db": "ok", "select_1": db.scalar("SELECT 1")}

    return app
