"""Process-wide collaborators handed to routers through ``Depends``."""

from __future__ import annotations

from functools import lru_cache

from app.config import settings
from app.services.broadcast import BroadcastDispatcher
from app.services.telegram import TelegramBot, TelegramClient, TelegramNotifier
from app.services.verification_codes import VerificationCodeRegistry


@lru_cache
def get_code_registry() -> VerificationCodeRegistry:
    return VerificationCodeRegistry(ttl_seconds=settings.verification_code_ttl_seconds)


@lru_cache
def get_telegram_client() -> TelegramClient | None:
    if not settings.telegram_enabled:
        return None
    return TelegramClient(settings.telegram_bot_token, api_url=settings.telegram_api_url)


@lru_cache
def get_notifier() -> TelegramNotifier:
    return TelegramNotifier(get_telegram_client())


def get_telegram_bot() -> TelegramBot | None:
    client = get_telegram_client()
    if client is None:
        return None
    return TelegramBot(client, get_code_registry())


def get_broadcast_dispatcher() -> BroadcastDispatcher:
    return BroadcastDispatcher(get_notifier().send_notification)
