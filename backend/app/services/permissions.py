from __future__ import annotations

from app.errors import AppError
from app.models.usuario import Usuario


def is_admin(actor: Usuario | None) -> bool:
    return actor is not None and actor.rol == "admin"


def is_owner(actor: Usuario | None, owner_id: int | None) -> bool:
    return actor is not None and owner_id is not None and actor.id == owner_id


def is_owner_or_admin(actor: Usuario | None, owner_id: int | None) -> bool:
    return is_owner(actor, owner_id) or is_admin(actor)


def ensure_admin(actor: Usuario | None, message: str = "Solo administradores pueden realizar esta acción") -> None:
    if not is_admin(actor):
        raise AppError.forbidden(message)


def ensure_owner(actor: Usuario | None, owner_id: int | None, message: str = "No tienes permiso sobre este recurso") -> None:
    if not is_owner(actor, owner_id):
        raise AppError.forbidden(message)


def ensure_owner_or_admin(
    actor: Usuario | None,
    owner_id: int | None,
    message: str = "No tienes permiso sobre este recurso",
) -> None:
    if not is_owner_or_admin(actor, owner_id):
        raise AppError.forbidden(message)
