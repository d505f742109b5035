import asyncio
import json

import httpx
import pytest

from app.models.configuracion_usuario import ConfiguracionUsuario
from app.services.telegram import TelegramAPIError, TelegramBot, TelegramClient, TelegramNotifier
from app.services.telegram_messages import messages
from app.services.verification_codes import VerificationCodeRegistry


class FakeClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.sent: list[dict] = []

    async def send_message(self, chat_id, text, parse_mode=None, disable_web_page_preview=False):
        if self.error is not None:
            raise self.error
        self.sent.append({"chat_id": chat_id, "text": text, "parse_mode": parse_mode})
        return {"message_id": len(self.sent)}


def _update(text: str, chat_id: int = 555, update_id: int = 1) -> dict:
    return {
        "update_id": update_id,
        "message": {"chat": {"id": chat_id}, "from": {"username": "pepe"}, "text": text},
    }


@pytest.fixture
def registry():
    return VerificationCodeRegistry()


@pytest.fixture
def client():
    return FakeClient()


@pytest.fixture
def bot(client, registry, session_factory):
    return TelegramBot(client, registry, session_factory=session_factory)


def _config(session_factory, usuario_id):
    with session_factory() as session:
        return session.get(ConfiguracionUsuario, usuario_id)


def test_code_links_chat_to_user(bot, client, registry, autor, session_factory):
    code = registry.issue(autor.id)

    reply = asyncio.run(bot.handle_update(_update(code)))

    assert reply.startswith("🎉 Suscripción completada.")
    assert "Ana" in reply
    assert client.sent[0]["chat_id"] == "555"
    config = _config(session_factory, autor.id)
    assert config.telegram_notif is True
    assert config.telegram_chat_id == "555"


def test_code_cannot_be_used_twice(bot, registry, autor):
    code = registry.issue(autor.id)
    asyncio.run(bot.handle_update(_update(code)))

    assert asyncio.run(bot.handle_update(_update(code, chat_id=777))) == "❌ Código inválido o expirado."


def test_unknown_code_gets_error_reply(bot, client):
    reply = asyncio.run(bot.handle_update(_update("123456")))
    assert reply == "❌ Código inválido o expirado."
    assert client.sent == [{"chat_id": "555", "text": reply, "parse_mode": None}]


def test_relinking_a_chat_moves_it_to_the_new_user(bot, registry, autor, otro, link_chat, session_factory):
    link_chat(autor, "555")

    asyncio.run(bot.handle_update(_update(registry.issue(otro.id))))

    assert _config(session_factory, autor.id).telegram_chat_id is None
    assert _config(session_factory, otro.id).telegram_chat_id == "555"


def test_start_and_help(bot, autor, link_chat):
    assert "Para activar las notificaciones" in bot.reply_to("555", "/start", "pepe")
    assert "/unsubscribe" in bot.reply_to("555", "/help")

    link_chat(autor, "555")
    assert bot.reply_to("555", "/start@JobsOutCubaBot").startswith("✅ Ya tienes")


def test_status_and_unsubscribe(bot, autor, link_chat, session_factory):
    assert bot.reply_to("555", "/status").startswith("❌ No tienes")

    link_chat(autor, "555")
    assert "Ana" in bot.reply_to("555", "/status")

    assert bot.reply_to("555", "/unsubscribe") == "🔕 Notificaciones desactivadas correctamente."
    config = _config(session_factory, autor.id)
    assert config.telegram_notif is False
    assert config.telegram_chat_id is None
    assert bot.reply_to("555", "/unsubscribe") == "ℹ️ No estás suscrito."


def test_plain_text_is_ignored(bot, client):
    assert asyncio.run(bot.handle_update(_update("hola"))) is None
    assert asyncio.run(bot.handle_update({"update_id": 9})) is None
    assert client.sent == []


def test_notifier_sends_html(session_factory):
    client = FakeClient()
    notifier = TelegramNotifier(client, session_factory=session_factory)

    assert asyncio.run(notifier.send_notification(42, "<b>Hola</b>")) is True
    assert client.sent == [{"chat_id": "42", "text": "<b>Hola</b>", "parse_mode": "HTML"}]


def test_blocked_chat_is_unsubscribed(autor, link_chat, session_factory):
    link_chat(autor, "555")
    client = FakeClient(error=TelegramAPIError(403, "Forbidden: bot was blocked by the user"))
    notifier = TelegramNotifier(client, session_factory=session_factory)

    assert asyncio.run(notifier.send_notification("555", "hola")) is False

    config = _config(session_factory, autor.id)
    assert config.telegram_notif is False
    assert config.telegram_chat_id is None


def test_other_api_errors_keep_subscription(autor, link_chat, session_factory):
    link_chat(autor, "555")
    notifier = TelegramNotifier(FakeClient(error=TelegramAPIError(400, "Bad Request")), session_factory=session_factory)

    assert asyncio.run(notifier.send_notification("555", "hola")) is False
    assert _config(session_factory, autor.id).telegram_chat_id == "555"


def test_notifier_without_client_reports_failure():
    notifier = TelegramNotifier(None)
    assert notifier.active is False
    assert asyncio.run(notifier.send_notification("1", "hola")) is False


def test_client_posts_to_bot_api():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

    client = TelegramClient("TOKEN", api_url="https://telegram.test", transport=httpx.MockTransport(handler))
    result = asyncio.run(client.send_message("42", "hola", parse_mode="HTML"))

    assert result == {"message_id": 1}
    assert seen["url"] == "https://telegram.test/botTOKEN/sendMessage"
    assert seen["body"]["chat_id"] == "42"
    assert seen["body"]["parse_mode"] == "HTML"


def test_client_raises_api_errors():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"ok": False, "error_code": 403, "description": "Forbidden"})

    client = TelegramClient("TOKEN", transport=httpx.MockTransport(handler))
    with pytest.raises(TelegramAPIError) as exc_info:
        asyncio.run(client.send_message("42", "hola"))
    assert exc_info.value.error_code == 403
    assert exc_info.value.description == "Forbidden"


def test_get_updates_returns_result_list():
    def handler(request: httpx.Request) -> httpx.Response:
        assert json.loads(request.content)["offset"] == 10
        return httpx.Response(200, json={"ok": True, "result": [{"update_id": 10}]})

    client = TelegramClient("TOKEN", transport=httpx.MockTransport(handler))
    assert asyncio.run(client.get_updates(offset=10, timeout=0)) == [{"update_id": 10}]


def test_test_notification_escapes_names():
    text = messages.test_notification("<Ana>", "Jobs Out Cuba")
    assert "&lt;Ana&gt;" in text
    assert "<b>PRUEBA DE NOTIFICACIÓN</b>" in text
