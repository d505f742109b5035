from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.config import settings
from app.database import get_db
from app.dependencies import get_code_registry, get_notifier
from app.errors import AppError
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse
from app.schemas.telegram import TelegramActivateOut, TelegramSettingsUpdate, TelegramStatusOut
from app.services.telegram import TelegramNotifier
from app.services.telegram_messages import messages
from app.services.usuarios import UsuarioService
from app.services.verification_codes import VerificationCodeRegistry


logger = logging.getLogger(__name__)

router = APIRouter()
usuarios = UsuarioService()


@router.post("/activate", response_model=ApiResponse)
def activate(
    current_user: Usuario = Depends(get_current_user),
    registry: VerificationCodeRegistry = Depends(get_code_registry),
    notifier: TelegramNotifier = Depends(get_notifier),
) -> ApiResponse:
    if not notifier.active:
        raise AppError.service_unavailable("Servicio de notificaciones no disponible")
    code = registry.issue(current_user.id)
    return ApiResponse(
        data=TelegramActivateOut(
            code=code,
            bot_username=settings.telegram_bot_username or None,
            bot_link=settings.telegram_bot_link,
            expires_in_seconds=int(registry.ttl_seconds),
        )
    )


@router.post("/deactivate", response_model=ApiResponse)
def deactivate(db: Session = Depends(get_db), current_user: Usuario = Depends(get_current_user)) -> ApiResponse:
    config = usuarios.notification_config(db, current_user.id)
    config.telegram_notif = False
    config.telegram_chat_id = None
    db.commit()
    logger.info("Telegram desactivado para usuario %s", current_user.id)
    return ApiResponse(message="Notificaciones desactivadas")


@router.get("/status", response_model=ApiResponse)
def status(
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
    notifier: TelegramNotifier = Depends(get_notifier),
) -> ApiResponse:
    config = usuarios.notification_config(db, current_user.id)
    return ApiResponse(
        data=TelegramStatusOut(
            telegram_notif=config.telegram_notif,
            telegram_chat_id=config.telegram_chat_id,
            bot_active=notifier.active,
            bot_username=settings.telegram_bot_username or None,
            bot_link=settings.telegram_bot_link,
        )
    )


@router.post("/test", response_model=ApiResponse)
async def send_test(
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
    notifier: TelegramNotifier = Depends(get_notifier),
) -> ApiResponse:
    config = usuarios.notification_config(db, current_user.id)
    if not config.telegram_notif or not config.telegram_chat_id:
        raise AppError.bad_request("No tienes notificaciones activas")

    message = messages.test_notification(current_user.nombre, settings.app_name)
    if not await notifier.send_notification(config.telegram_chat_id, message):
        raise AppError.internal("No se pudo enviar la notificación")
    return ApiResponse(message="Notificación de prueba enviada")


@router.put("/settings", response_model=ApiResponse)
def update_settings(
    payload: TelegramSettingsUpdate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    config = usuarios.notification_config(db, current_user.id)
    config.telegram_notif = payload.telegram_notif
    db.commit()
    return ApiResponse(
        message="Notificaciones activadas" if payload.telegram_notif else "Notificaciones desactivadas",
        data={"telegram_notif": payload.telegram_notif},
    )
