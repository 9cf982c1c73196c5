import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings, settings as default_settings
from app.core.errors import TokenRejected
from app.db.session import Database
from app.api.routes.health import router as health_router
from app.api.routes.auth import router as auth_router
from app.api.routes.friends import router as friends_router
from app.api.routes.posts import router as posts_router


logger = logging.getLogger(__name__)


async def token_rejected_handler(request: Request, exc: TokenRejected):
    return PlainTextResponse(
        "Invalid Access Token",
        status_code=401,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Store error for %s %s", request.method, request.url.path, exc_info=exc)
    return PlainTextResponse("Internal Server Error", status_code=500)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path, exc_info=exc)
    return PlainTextResponse("Internal Server Error", status_code=500)


def create_app(settings: Settings = default_settings, database: Database | None = None) -> FastAPI:
    """Build the API. A ready ``database`` may be passed in (tests); otherwise
    one is opened from ``settings`` at startup and disposed at shutdown."""
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.database is None
        if owned:
            app.state.database = Database.from_settings(settings)
            if settings.db_auto_create:
                await app.state.database.create_all()
            logger.info("Database opened (env=%s)", settings.env)
        try:
            yield
        finally:
            if owned:
                await app.state.database.dispose()
                app.state.database = None
                logger.info("Database closed")

    app = FastAPI(title="Friends & Posts API", version="0.1.0", lifespan=lifespan)
    app.state.database = database

    app.add_exception_handler(TokenRejected, token_rejected_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(friends_router)
    app.include_router(posts_router)

    return app


app = create_app()
