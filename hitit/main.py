"""
Hit.it — FastAPI application entry-point for the jam collaboration service.

Run with:
    uvicorn hitit.main:app --reload
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from hitit.config import settings
from hitit.database import Base, async_session, engine
from hitit.errors import HititError

# ── Import routers ──
from hitit.routers import activity, auth, collaboration, invites, jams, notifications, users, versions
from hitit.services.activity import purge_expired_activity
from hitit.services.relay import RoomDirectory, run_heartbeat

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: tables, activity retention, relay rooms ──
@asynccontextmanager
async def lifespan(app: FastAPI):
    import hitit.models  # noqa: F401  (register every table on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        await purge_expired_activity(db)

    rooms = RoomDirectory()
    app.state.rooms = rooms
    heartbeat = asyncio.create_task(run_heartbeat(rooms, settings.HEARTBEAT_INTERVAL_SECONDS))
    logger.info("%s collaboration service started (%s)", settings.APP_NAME, settings.ENVIRONMENT)

    yield

    heartbeat.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await heartbeat
    await rooms.close()
    await engine.dispose()
    logger.info("%s collaboration service stopped", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Jam collaboration & versioning: roles, invites, activity, snapshots and live rooms.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=("*",))


# ── Error responses ──
async def hitit_error_handler(request: Request, exc: HititError) -> JSONResponse:
    logger.debug("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


app.add_exception_handler(HititError, hitit_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# ── Register API routers ──
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(jams.router)
app.include_router(invites.router)
app.include_router(activity.router)
app.include_router(versions.router)
app.include_router(notifications.router)
app.include_router(collaboration.router)


@app.get("/health")
async def health():
    return {"status": "ok", "app": settings.APP_NAME}


if settings.ENVIRONMENT != "production":
    from hitit.routers.auth import _set_auth_cookie

    @app.get("/mock-login/{user_id}")
    def mock_login(user_id: int):
        resp = JSONResponse({"success": True, "userId": user_id})
        return _set_auth_cookie(resp, user_id)
