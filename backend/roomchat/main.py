from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from roomchat.api.router import api_router
from roomchat.core.config import settings
from roomchat.core.logging import configure_logging
from roomchat.db.base import Base
from roomchat.db.session import engine
from roomchat.realtime import create_socket_app
from roomchat.realtime.events import message_router
import roomchat.models  # noqa: F401 - ensure tables are registered on Base

configure_logging(settings.debug, settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_schema:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    await message_router.drain()
    await engine.dispose()


fastapi_app = FastAPI(title=settings.project_name, debug=settings.debug, lifespan=lifespan)

fastapi_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

fastapi_app.include_router(api_router, prefix=settings.api_prefix)


@fastapi_app.get("/health", tags=["health"])
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


if settings.static_dir:
    if Path(settings.static_dir).is_dir():
        fastapi_app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.warning("Static directory %s does not exist; not serving the web client", settings.static_dir)


app = create_socket_app(fastapi_app)

# Re-export FastAPI application for tests if needed
api_app = fastapi_app


def run() -> None:
    logger.info("Server running on port %s", settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
