from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api import admin, auth, guardados, publicaciones, telegram, trabajos, ubicaciones, usuarios
from app.bootstrap import seed_defaults
from app.config import settings
from app.context import client_ip_var, user_agent_var
from app.database import Base, engine
from app.dependencies import get_telegram_bot
from app.errors import register_exception_handlers
from app import models  # noqa: F401


logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def request_context(request: Request, call_next):
    ip_token = client_ip_var.set(request.client.host if request.client else "")
    agent_token = user_agent_var.set(request.headers.get("user-agent", ""))
    try:
        return await call_next(request)
    finally:
        client_ip_var.reset(ip_token)
        user_agent_var.reset(agent_token)


@app.on_event("startup")
async def on_startup() -> None:
    settings.ensure_directories()
    Base.metadata.create_all(bind=engine)
    seed_defaults(engine)

    bot = get_telegram_bot()
    if bot is not None and settings.telegram_polling:
        app.state.telegram_polling = asyncio.create_task(bot.run_polling())
    elif bot is None:
        logger.info("TELEGRAM_BOT_TOKEN no definido; notificaciones de Telegram deshabilitadas")


@app.on_event("shutdown")
async def on_shutdown() -> None:
    task = getattr(app.state, "telegram_polling", None)
    if task is None:
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(usuarios.router, prefix="/api/usuarios", tags=["usuarios"])
app.include_router(ubicaciones.router, prefix="/api/ubicaciones", tags=["ubicaciones"])
app.include_router(trabajos.router, prefix="/api/trabajos", tags=["trabajos"])
app.include_router(publicaciones.router, prefix="/api/publicaciones", tags=["publicaciones"])
app.include_router(guardados.router, prefix="/api/guardados", tags=["guardados"])
app.include_router(telegram.router, prefix="/api/telegram", tags=["telegram"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
