from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from dotenv import load_dotenv

from jsondb import AsyncJsonDB, JsonDB
from jsondb.paths import project_root
from settings import configure_logging, get_settings

logger = logging.getLogger(__name__)


def create_app(db: JsonDB | None = None) -> FastAPI:
    """
    Build the HTTP app around one store.

    The store is passed in (or built from settings) and hung off app.state;
    routes reach it through endpoints.deps.get_repo.
    """
    load_dotenv(project_root() / "local.env")
    settings = get_settings()
    configure_logging(settings)

    from endpoints.records import router as records_router
    from endpoints.users import ensure_user_constraints, router as users_router

    if db is None:
        db = JsonDB(settings=settings)
    ensure_user_constraints(db)

    app = FastAPI()
    app.state.repo = AsyncJsonDB(db)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.debug_log_requests:

        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            response = await call_next(request)
            logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
            return response

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    app.include_router(records_router)
    app.include_router(users_router)

    return app
