# roomcall/main.py

from __future__ import annotations

import asyncio
import contextlib

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from roomcall.core import state
from roomcall.core.config import settings
from roomcall.core.logging import setup_logging, get_logger
from roomcall.api.routes import root, health, rooms, admin
from roomcall.api import websocket as websocket_module
from roomcall.services.coordinator import periodic_history_clear

# Configure logging first
setup_logging()
logger = get_logger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "🚀 Application starting - %d room(s), history cleared every %ss",
        len(state.coordinator.list_public()),
        settings.HISTORY_CLEAR_INTERVAL_SECONDS,
    )
    history_task = asyncio.create_task(
        periodic_history_clear(lambda: state.coordinator, settings.HISTORY_CLEAR_INTERVAL_SECONDS)
    )
    yield
    history_task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await history_task


# FastAPI app
app = FastAPI(title="roomcall - Room Chat and Voice Call Relay", lifespan=lifespan)

# CORS (relaxed; the PWA is normally served from the same origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# REST routes
app.include_router(root.router)
app.include_router(health.router)
app.include_router(rooms.router)
app.include_router(admin.router)

# WebSocket routes
app.include_router(websocket_module.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        {"ok": False, "error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse({"ok": False, "error": message}, status_code=400)


def run() -> None:
    import uvicorn
    uvicorn.run("roomcall.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
