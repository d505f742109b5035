from __future__ import annotations

from datetime import datetime
from typing import Any

from jinja2 import Template


class TelegramMessages:
    """Bot replies and notification bodies. Notifications use Telegram's HTML parse mode."""

    def __init__(self) -> None:
        self.templates = {
            "welcome": Template(
                """
👋 Hola {{ username }}

Para activar las notificaciones:
1️⃣ Ve a tu perfil en la web
2️⃣ Activa Telegram
3️⃣ Copia el código de 6 dígitos
4️⃣ Envíamelo aquí
                """.strip()
            ),
            "already_active": Template(
                "✅ Ya tienes las notificaciones activadas.\n\nUsa /status para ver tu estado."
            ),
            "help": Template(
                """
🤖 AYUDA

/start - Iniciar bot
/status - Ver estado
/unsubscribe - Cancelar suscripción
                """.strip()
            ),
            "status_active": Template(
                "✅ NOTIFICACIONES ACTIVAS\n\n👤 {{ nombre }}\n🆔 Chat ID: {{ chat_id }}"
            ),
            "status_inactive": Template(
                "❌ No tienes las notificaciones activadas.\n\nActívalas desde la web."
            ),
            "not_subscribed": Template("ℹ️ No estás suscrito."),
            "unsubscribed": Template("🔕 Notificaciones desactivadas correctamente."),
            "invalid_code": Template("❌ Código inválido o expirado."),
            "user_not_found": Template("❌ Usuario no encontrado."),
            "subscribed": Template(
                "🎉 Suscripción completada.\n\nHola {{ nombre }}, recibirás notificaciones automáticamente."
            ),
            "test_notification": Template(
                """
🔔 <b>PRUEBA DE NOTIFICACIÓN</b>

Hola <b>{{ nombre }}</b>,

✅ Las notificaciones de Telegram están funcionando correctamente.

📅 Fecha: {{ sent_at.strftime("%d/%m/%Y") }}
🕒 Hora: {{ sent_at.strftime("%H:%M:%S") }}

📍 <i>{{ app_name }}</i>
                """.strip(),
                autoescape=True,
            ),
        }

    def render(self, name: str, **context: Any) -> str:
        template = self.templates.get(name)
        if template is None:
            raise KeyError(f"Unknown message template: {name}")
        return template.render(**context)

    def test_notification(self, nombre: str | None, app_name: str, sent_at: datetime | None = None) -> str:
        return self.render(
            "test_notification",
            nombre=nombre or "usuario",
            app_name=app_name,
            sent_at=sent_at or datetime.now(),
        )


messages = TelegramMessages()
