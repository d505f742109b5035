from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, StrictBool


class TelegramActivateOut(BaseModel):
    code: str
    bot_username: str | None = None
    bot_link: str | None = None
    instructions: str = "Envía este código al bot de Telegram"
    expires_in_seconds: int


class TelegramStatusOut(BaseModel):
    telegram_notif: bool
    telegram_chat_id: str | None = None
    bot_active: bool
    bot_username: str | None = None
    bot_link: str | None = None


class TelegramSettingsUpdate(BaseModel):
    telegram_notif: StrictBool


class BroadcastRequest(BaseModel):
    message: str = Field(min_length=1, max_length=4096)
    audience: Literal["todos", "notificados"] = "notificados"
    channels: list[str] = Field(default_factory=list)


class DeliveryError(BaseModel):
    recipient: str
    error: str


class ChannelResult(BaseModel):
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    errors: list[DeliveryError] = Field(default_factory=list)
