from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import asyncpg
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from comics import router as comics_router
from comics.images import ImageStore
from comics.repository import ComicRepository
from comics.validation import ValidationFailed
from core import db
from core.logging_setup import configure_logging
from core.settings import Settings

logger = logging.getLogger(__name__)

INTERNAL_ERROR_BODY = {"status": "error", "message": "Internal server error", "data": None}


async def _validation_failed(_: Request, exc: ValidationFailed) -> JSONResponse:
    return JSONResponse(status_code=422, content=exc.to_response())


async def _storage_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_storage_error method=%s path=%s error=%s",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


def create_app(
    settings: Settings | None = None,
    *,
    comics: ComicRepository | None = None,
    images: ImageStore | None = None,
) -> FastAPI:
    """
    Build the API.

    `comics` and `images` can be injected (tests); otherwise the comic
    repository is backed by a Postgres pool opened in the lifespan handler.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    images = images or ImageStore(settings.upload_path, settings.upload_dir)
    settings.public_dir.mkdir(parents=True, exist_ok=True)
    images.ensure_directory()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if comics is not None:
            yield
            return

        # One pool per process, shared by every request.
        database = db.Database(
            settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            idle_seconds=settings.pool_idle_seconds,
        )
        await database.open()
        try:
            if settings.auto_create_schema:
                await database.ensure_schema()
            app.state.comics = ComicRepository(database)
            yield
        finally:
            await database.close()

    app = FastAPI(title="comic-rest-api", lifespan=lifespan)
    app.state.settings = settings
    app.state.images = images
    if comics is not None:
        app.state.comics = comics

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValidationFailed, _validation_failed)
    for exc_type in (asyncpg.PostgresError, asyncpg.InterfaceError, OSError):
        app.add_exception_handler(exc_type, _storage_error)

    app.include_router(comics_router.router, tags=["comics"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    # Mounted last: it catches every path the routes above do not.
    app.mount("/", StaticFiles(directory=settings.public_dir), name="public")
    return app


def main() -> None:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info("comic-rest-api starting on http://%s:%s", settings.host, settings.port)
    uvicorn.run("main:create_app", factory=True, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
