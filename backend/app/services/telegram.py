"""Telegram Bot API access: outbound notifications and the linking bot conversation."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from typing import Any

import httpx
from sqlalchemy.orm import Session
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.database import SessionLocal
from app.models.configuracion_usuario import ConfiguracionUsuario
from app.models.usuario import Usuario
from app.services.telegram_messages import TelegramMessages, messages as default_messages
from app.services.verification_codes import VerificationCodeRegistry


logger = logging.getLogger(__name__)

FORBIDDEN = 403
CODE_PATTERN = re.compile(r"^\d{6}$")
COMMAND_PATTERN = re.compile(r"^/(?P<command>[a-z_]+)(?:@\w+)?(?:\s|$)", re.IGNORECASE)


class TelegramAPIError(Exception):
    def __init__(self, error_code: int, description: str) -> None:
        super().__init__(f"{error_code}: {description}")
        self.error_code = error_code
        self.description = description


class TelegramClient:
    def __init__(
        self,
        token: str,
        api_url: str = "https://api.telegram.org",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = f"{api_url.rstrip('/')}/bot{token}"
        self.timeout = timeout
        self._transport = transport

    async def send_message(
        self,
        chat_id: str,
        text: str,
        parse_mode: str | None = None,
        disable_web_page_preview: bool = False,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text,
            "disable_web_page_preview": disable_web_page_preview,
        }
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return await self._call("sendMessage", payload, self.timeout)

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=1, max=8),
        reraise=True,
    )
    async def get_updates(self, offset: int | None = None, timeout: int = 30) -> list[dict[str, Any]]:
        payload: dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        # the HTTP timeout has to outlast Telegram's long-poll window
        return await self._call("getUpdates", payload, timeout + self.timeout)

    async def _call(self, method: str, payload: dict[str, Any], timeout: float) -> Any:
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            response = await client.post(f"{self.base_url}/{method}", json=payload)
        try:
            body = response.json()
        except ValueError:
            raise TelegramAPIError(response.status_code, response.text[:200] or "Respuesta no válida")
        if not body.get("ok"):
            raise TelegramAPIError(
                int(body.get("error_code") or response.status_code),
                str(body.get("description") or "Error desconocido"),
            )
        return body.get("result")


class TelegramNotifier:
    """Delivers notifications; a chat that blocked the bot is unsubscribed on the spot."""

    def __init__(
        self,
        client: TelegramClient | None,
        session_factory: Callable[[], Session] = SessionLocal,
    ) -> None:
        self.client = client
        self.session_factory = session_factory

    @property
    def active(self) -> bool:
        return self.client is not None

    async def send_notification(self, chat_id: str | int, message: str) -> bool:
        if self.client is None:
            logger.warning("Telegram no configurado; notificación a %s descartada", chat_id)
            return False
        chat_id = str(chat_id)
        try:
            await self.client.send_message(chat_id, message, parse_mode="HTML")
        except TelegramAPIError as exc:
            logger.warning("Telegram rechazó el mensaje a %s: %s", chat_id, exc)
            if exc.error_code == FORBIDDEN:
                self.disable_chat(chat_id)
            return False
        except httpx.HTTPError as exc:
            logger.warning("Error de red enviando mensaje a %s: %s", chat_id, exc)
            return False
        return True

    def disable_chat(self, chat_id: str) -> bool:
        with self.session_factory() as db:
            config = db.query(ConfiguracionUsuario).filter(ConfiguracionUsuario.telegram_chat_id == chat_id).first()
            if config is None:
                return False
            config.telegram_notif = False
            config.telegram_chat_id = None
            db.commit()
        logger.info("Notificaciones desactivadas para el chat %s (bot bloqueado)", chat_id)
        return True


class TelegramBot:
    def __init__(
        self,
        client: TelegramClient,
        registry: VerificationCodeRegistry,
        session_factory: Callable[[], Session] = SessionLocal,
        messages: TelegramMessages = default_messages,
    ) -> None:
        self.client = client
        self.registry = registry
        self.session_factory = session_factory
        self.messages = messages
        self.handlers: dict[str, Callable[[Session, str, str], str]] = {
            "start": self._on_start,
            "help": self._on_help,
            "status": self._on_status,
            "unsubscribe": self._on_unsubscribe,
        }

    async def handle_update(self, update: dict[str, Any]) -> str | None:
        message = update.get("message") or update.get("edited_message")
        if not message or "chat" not in message:
            return None
        chat_id = str(message["chat"]["id"])
        text = (message.get("text") or "").strip()
        username = (message.get("from") or {}).get("username") or "Usuario"

        reply = self.reply_to(chat_id, text, username)
        if reply is not None:
            await self.client.send_message(chat_id, reply)
        return reply

    def reply_to(self, chat_id: str, text: str, username: str = "Usuario") -> str | None:
        command = COMMAND_PATTERN.match(text)
        with self.session_factory() as db:
            if command:
                handler = self.handlers.get(command.group("command").lower())
                return handler(db, chat_id, username) if handler else None
            if CODE_PATTERN.match(text):
                return self._on_code(db, chat_id, text)
        return None

    async def run_polling(self, stop_event: asyncio.Event | None = None, poll_timeout: int = 30) -> None:
        offset: int | None = None
        logger.info("Bot de Telegram escuchando actualizaciones")
        while stop_event is None or not stop_event.is_set():
            self.registry.sweep()
            try:
                updates = await self.client.get_updates(offset=offset, timeout=poll_timeout)
            except (httpx.HTTPError, TelegramAPIError) as exc:
                logger.warning("Fallo consultando actualizaciones de Telegram: %s", exc)
                await asyncio.sleep(5)
                continue

            for update in updates:
                offset = int(update["update_id"]) + 1
                try:
                    await self.handle_update(update)
                except Exception:
                    logger.exception("Error procesando la actualización %s", update.get("update_id"))

    def _on_start(self, db: Session, chat_id: str, username: str) -> str:
        config = self._config_for_chat(db, chat_id)
        if config is not None and config.telegram_notif:
            return self.messages.render("already_active")
        return self.messages.render("welcome", username=username)

    def _on_help(self, db: Session, chat_id: str, username: str) -> str:
        return self.messages.render("help")

    def _on_status(self, db: Session, chat_id: str, username: str) -> str:
        config = self._config_for_chat(db, chat_id)
        if config is None or not config.telegram_notif:
            return self.messages.render("status_inactive")
        usuario = db.get(Usuario, config.usuario_id)
        if usuario is None:
            return self.messages.render("user_not_found")
        return self.messages.render("status_active", nombre=usuario.nombre, chat_id=chat_id)

    def _on_unsubscribe(self, db: Session, chat_id: str, username: str) -> str:
        config = self._config_for_chat(db, chat_id)
        if config is None:
            return self.messages.render("not_subscribed")
        config.telegram_notif = False
        config.telegram_chat_id = None
        db.commit()
        logger.info("Usuario %s canceló la suscripción desde Telegram", config.usuario_id)
        return self.messages.render("unsubscribed")

    def _on_code(self, db: Session, chat_id: str, code: str) -> str:
        usuario_id = self.registry.redeem(code)
        if usuario_id is None:
            return self.messages.render("invalid_code")
        usuario = db.query(Usuario).filter(Usuario.id == usuario_id, Usuario.deleted_at.is_(None)).first()
        if usuario is None:
            return self.messages.render("user_not_found")

        # a chat links to one user at a time
        previous = self._config_for_chat(db, chat_id)
        if previous is not None and previous.usuario_id != usuario_id:
            previous.telegram_notif = False
            previous.telegram_chat_id = None
            db.flush()

        config = db.get(ConfiguracionUsuario, usuario_id)
        if config is None:
            config = ConfiguracionUsuario(usuario_id=usuario_id)
            db.add(config)
        config.telegram_notif = True
        config.telegram_chat_id = chat_id
        db.commit()
        logger.info("Usuario %s vinculado al chat %s", usuario_id, chat_id)
        return self.messages.render("subscribed", nombre=usuario.nombre)

    def _config_for_chat(self, db: Session, chat_id: str) -> ConfiguracionUsuario | None:
        return db.query(ConfiguracionUsuario).filter(ConfiguracionUsuario.telegram_chat_id == chat_id).first()
