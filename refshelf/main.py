# refshelf/main.py
# App wiring + lifecycle only; endpoints live in api/routes.
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from refshelf import __version__
from refshelf.api.routes import files, items, trash
from refshelf.core.config import Settings, get_settings
from refshelf.core.log_setup import setup_logging
from refshelf.services.storage import StorageContext, resolve_storage
from refshelf.services.store import ContentStore


def create_app(settings: Optional[Settings] = None, ctx: Optional[StorageContext] = None,
               *, configure_logging: bool = True) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        context = ctx or resolve_storage(settings.storage_root)
        if configure_logging:
            setup_logging(
                settings.logs_dir or (context.root / "logs"),
                level=settings.log_level,
                json_logs=settings.json_logs,
            )
        store = ContentStore(context)
        await store.startup(
            recover=settings.recover_journal_on_start,
            empty_trash=settings.empty_trash_on_start,
        )
        app.state.store = store
        try:
            yield
        finally:
            await store.shutdown(empty_trash=settings.empty_trash_on_exit)

    app = FastAPI(title="Refshelf API", version=__version__, lifespan=lifespan)
    app.state.settings = settings

    # CORS (desktop shell dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routers
    app.include_router(items.api_router, prefix="/api")
    app.include_router(trash.api_router, prefix="/api")
    app.include_router(files.api_router, prefix="/api")

    # public (non-API) router serving local-resource files
    app.include_router(files.public_router)
    return app


# `uvicorn refshelf.main:app`
app = create_app()
