from __future__ import annotations

from pathlib import Path

import asyncpg
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from redis.exceptions import RedisError
from starlette.requests import Request
from starlette.responses import JSONResponse

from config import settings
from core.errors import GameError
from db import close_pool, run_migrations
from routers.battle import router as battle_router
from routers.content import router as content_router
from routers.party import router as party_router
from routers.redis_manager import close_redis, get_redis
from services.content.loader import load_all_content
from services.content.registry import ContentRegistry, set_registry
from services.content.repo import PgMoveStore
from services.content.species import SpeciesCatalog, set_species_catalog

app = FastAPI(title="Monster Battler API", version=settings.app_version)

# ─────────────────────────────────────────────
# CORS
# ─────────────────────────────────────────────
allowed_origins = {"http://localhost:3000"}
if settings.frontend_origin:
    allowed_origins.add(settings.frontend_origin)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(allowed_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# ─────────────────────────────────────────────
# ERRORS
# ─────────────────────────────────────────────
@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.code})


async def _store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("store failure on {} {}: {}", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "STORE_UNAVAILABLE"})


for _exc in (asyncpg.PostgresError, RedisError, OSError):
    app.add_exception_handler(_exc, _store_error_handler)


# ─────────────────────────────────────────────
# CONTENT
# ─────────────────────────────────────────────
def load_content(content_dir: str) -> None:
    path = Path(content_dir)
    if not path.is_absolute():
        path = Path(__file__).resolve().parent / path

    content = load_all_content(path)
    set_registry(
        ContentRegistry(
            content["effects"],
            content["bonuses"],
            PgMoveStore(),
            named_moves=content["named_moves"],
        )
    )
    set_species_catalog(SpeciesCatalog(content["species"]))


# ─────────────────────────────────────────────
# STARTUP / SHUTDOWN
# ─────────────────────────────────────────────
@app.on_event("startup")
async def startup_event():
    load_content(settings.content_dir)
    await get_redis()
    await run_migrations()


@app.on_event("shutdown")
async def shutdown_event():
    await close_redis()
    await close_pool()


@app.get("/health")
async def health():
    return {"ok": True, "version": settings.app_version}


# ─────────────────────────────────────────────
# ROUTERS
# ─────────────────────────────────────────────
app.include_router(content_router, prefix="/api")
app.include_router(party_router, prefix="/api")
app.include_router(battle_router, prefix="/api")
