"""Admin broadcast: one message fanned out to every matching Telegram chat."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from sqlalchemy.orm import Session

from app.config import settings
from app.errors import AppError
from app.models.configuracion_usuario import ConfiguracionUsuario


logger = logging.getLogger(__name__)

AUDIENCES = ("todos", "notificados")
CHANNELS = ("telegram", "email", "whatsapp")
DEFAULT_CHANNELS = ["telegram"]

Sender = Callable[[str, str], Awaitable[bool]]


def empty_result() -> dict[str, dict[str, Any]]:
    return {channel: {"attempted": 0, "sent": 0, "failed": 0, "errors": []} for channel in CHANNELS}


class BroadcastDispatcher:
    def __init__(
        self,
        sender: Sender,
        batch_size: int = settings.broadcast_batch_size,
        batch_delay_seconds: float = settings.broadcast_batch_delay_seconds,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.sender = sender
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds

    def recipients(self, db: Session, audience: str) -> list[str]:
        if audience not in AUDIENCES:
            raise AppError.bad_request(f"Audiencia no válida: {audience}")
        query = db.query(ConfiguracionUsuario.telegram_chat_id).filter(
            ConfiguracionUsuario.telegram_chat_id.isnot(None)
        )
        if audience == "notificados":
            query = query.filter(ConfiguracionUsuario.telegram_notif.is_(True))
        rows = query.order_by(ConfiguracionUsuario.usuario_id).all()
        return [str(chat_id) for (chat_id,) in rows if chat_id]

    async def broadcast(
        self,
        db: Session,
        message: str,
        audience: str = "notificados",
        channels: list[str] | None = None,
    ) -> dict[str, dict[str, Any]]:
        if not message or not message.strip():
            raise AppError.bad_request("El mensaje es requerido")
        channels = list(channels or DEFAULT_CHANNELS)
        result = empty_result()

        if "telegram" in channels:
            chat_ids = self.recipients(db, audience)
            result["telegram"] = await self.deliver(chat_ids, message)
        # email and whatsapp are accepted but have no delivery backend yet
        for channel in channels:
            if channel not in CHANNELS:
                logger.info("Canal de difusión no soportado ignorado: %s", channel)

        logger.info(
            "Difusión a audiencia %s: %s enviados, %s fallidos",
            audience,
            result["telegram"]["sent"],
            result["telegram"]["failed"],
        )
        return result

    async def deliver(self, chat_ids: list[str], message: str) -> dict[str, Any]:
        outcome: dict[str, Any] = {"attempted": len(chat_ids), "sent": 0, "failed": 0, "errors": []}
        for start in range(0, len(chat_ids), self.batch_size):
            if start:
                await asyncio.sleep(self.batch_delay_seconds)
            batch = chat_ids[start : start + self.batch_size]
            settled = await asyncio.gather(
                *(self.sender(chat_id, message) for chat_id in batch),
                return_exceptions=True,
            )
            for chat_id, sent in zip(batch, settled):
                if sent is True:
                    outcome["sent"] += 1
                    continue
                outcome["failed"] += 1
                if isinstance(sent, BaseException):
                    error = str(sent) or sent.__class__.__name__
                else:
                    error = "unknown"
                outcome["errors"].append({"recipient": chat_id, "error": error})
        return outcome
