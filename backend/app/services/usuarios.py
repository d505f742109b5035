from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.auth import hash_password, verify_password
from app.errors import AppError
from app.models.configuracion_usuario import ConfiguracionUsuario
from app.models.ubicacion import Municipio
from app.models.usuario import Usuario
from app.schemas.auth import RegisterRequest
from app.schemas.usuario import UsuarioUpdate
from app.services.logs import record_action
from app.services.permissions import ensure_owner_or_admin, is_admin


logger = logging.getLogger(__name__)

USERNAME_TAKEN = "El nombre de usuario ya está en uso"
EMAIL_TAKEN = "El email ya está registrado"


def normalize_username(username: str) -> str:
    return username.strip().lower()


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    email = email.strip().lower()
    return email or None


class UsuarioService:
    def register(self, db: Session, payload: RegisterRequest) -> Usuario:
        username = normalize_username(payload.username)
        email = normalize_email(payload.email)
        if not username:
            raise AppError.bad_request("El nombre de usuario es requerido")
        self._ensure_unique(db, username=username, email=email)

        usuario = Usuario(
            nombre=payload.nombre.strip(),
            apellidos=payload.apellidos,
            username=username,
            email=email,
            password_hash=hash_password(payload.password),
            rol="trabajador",
            telefono_e164=payload.telefono_e164,
            municipio_id=payload.municipio_id,
        )
        db.add(usuario)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AppError.conflict("El usuario ya existe")
        db.refresh(usuario)
        logger.info("Usuario registrado: %s", usuario.username)
        return usuario

    def authenticate(self, db: Session, username: str, password: str) -> Usuario:
        usuario = (
            db.query(Usuario)
            .filter(Usuario.username == normalize_username(username), Usuario.deleted_at.is_(None))
            .first()
        )
        if not usuario or not verify_password(password, usuario.password_hash):
            raise AppError.unauthorized("Credenciales incorrectas")
        return usuario

    def change_password(self, db: Session, usuario: Usuario, current_password: str, new_password: str) -> None:
        if not verify_password(current_password, usuario.password_hash):
            raise AppError.unauthorized("Contraseña actual incorrecta")
        usuario.password_hash = hash_password(new_password)
        db.commit()
        logger.info("Contraseña actualizada para usuario %s", usuario.id)

    def username_available(self, db: Session, username: str) -> bool:
        return db.query(Usuario.id).filter(Usuario.username == normalize_username(username)).first() is None

    def profile(self, db: Session, usuario_id: int) -> dict[str, Any]:
        usuario = (
            db.query(Usuario)
            .options(selectinload(Usuario.municipio).selectinload(Municipio.provincia), selectinload(Usuario.configuracion))
            .filter(Usuario.id == usuario_id, Usuario.deleted_at.is_(None))
            .first()
        )
        if not usuario:
            raise AppError.not_found("Usuario no encontrado")
        return {
            **{column.name: getattr(usuario, column.name) for column in Usuario.__table__.columns},
            "municipio": usuario.municipio,
            "telegram_notif": bool(usuario.configuracion and usuario.configuracion.telegram_notif),
        }

    def list(
        self,
        db: Session,
        page: int = 1,
        limit: int = 10,
        rol: str | None = None,
        municipio_id: int | None = None,
        include_deleted: bool = True,
    ) -> dict[str, Any]:
        query = db.query(Usuario)
        if rol:
            query = query.filter(Usuario.rol == rol)
        if municipio_id:
            query = query.filter(Usuario.municipio_id == municipio_id)
        if not include_deleted:
            query = query.filter(Usuario.deleted_at.is_(None))

        total = query.count()
        rows = query.order_by(Usuario.created_at.desc(), Usuario.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return {
            "usuarios": rows,
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit) if limit else 0,
        }

    def get(self, db: Session, usuario_id: int, actor: Usuario) -> Usuario:
        ensure_owner_or_admin(actor, usuario_id, "No puedes ver este usuario")
        usuario = db.get(Usuario, usuario_id)
        if usuario is None or (usuario.deleted_at is not None and not is_admin(actor)):
            raise AppError.not_found("Usuario no encontrado")
        return usuario

    def update(self, db: Session, usuario_id: int, payload: UsuarioUpdate, actor: Usuario) -> Usuario:
        usuario = db.query(Usuario).filter(Usuario.id == usuario_id, Usuario.deleted_at.is_(None)).first()
        if not usuario:
            raise AppError.not_found("Usuario no encontrado")
        ensure_owner_or_admin(actor, usuario_id, "No puedes modificar este usuario")

        changes = payload.model_dump(exclude_unset=True)
        if "rol" in changes and not is_admin(actor):
            changes.pop("rol")
        for required in ("nombre", "username", "rol"):
            if changes.get(required) is None:
                changes.pop(required, None)
        if "username" in changes:
            changes["username"] = normalize_username(changes["username"])
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        self._ensure_unique(db, username=changes.get("username"), email=changes.get("email"), exclude_id=usuario_id)

        for key, value in changes.items():
            setattr(usuario, key, value)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AppError.conflict("El usuario ya existe")
        db.refresh(usuario)
        logger.info("Usuario %s actualizado por %s", usuario_id, actor.id)
        return usuario

    def delete(self, db: Session, usuario_id: int, actor: Usuario) -> None:
        ensure_owner_or_admin(actor, usuario_id, "No puedes eliminar este usuario")
        usuario = db.query(Usuario).filter(Usuario.id == usuario_id, Usuario.deleted_at.is_(None)).first()
        if not usuario:
            raise AppError.not_found("Usuario no encontrado")
        if usuario.rol == "admin" and self._active_admins(db) <= 1:
            raise AppError.forbidden("No puedes eliminar al único administrador")

        usuario.deleted_at = datetime.utcnow()
        record_action(db, "usuario.eliminar", actor.id, "usuario", usuario.id)
        db.commit()
        logger.info("Usuario %s eliminado por %s", usuario_id, actor.id)

    def restore(self, db: Session, usuario_id: int, actor: Usuario | None = None) -> Usuario:
        usuario = db.get(Usuario, usuario_id)
        if usuario is None:
            raise AppError.not_found("Usuario no encontrado")
        if usuario.deleted_at is None:
            raise AppError.bad_request("El usuario no está eliminado")
        usuario.deleted_at = None
        record_action(db, "usuario.restaurar", actor.id if actor else None, "usuario", usuario.id)
        db.commit()
        db.refresh(usuario)
        logger.info("Usuario %s restaurado", usuario_id)
        return usuario

    def notification_config(self, db: Session, usuario_id: int) -> ConfiguracionUsuario:
        """Return the user's notification settings, creating the default row on first use."""
        config = db.get(ConfiguracionUsuario, usuario_id)
        if config is None:
            config = ConfiguracionUsuario(usuario_id=usuario_id, telegram_notif=False)
            db.add(config)
            db.commit()
            db.refresh(config)
        return config

    def _active_admins(self, db: Session) -> int:
        return (
            db.query(func.count(Usuario.id))
            .filter(Usuario.rol == "admin", Usuario.deleted_at.is_(None))
            .scalar()
        )

    def _ensure_unique(
        self,
        db: Session,
        username: str | None = None,
        email: str | None = None,
        exclude_id: int | None = None,
    ) -> None:
        if username:
            query = db.query(Usuario.id).filter(Usuario.username == username)
            if exclude_id is not None:
                query = query.filter(Usuario.id != exclude_id)
            if query.first():
                raise AppError.conflict(USERNAME_TAKEN)
        if email:
            query = db.query(Usuario.id).filter(Usuario.email == email)
            if exclude_id is not None:
                query = query.filter(Usuario.id != exclude_id)
            if query.first():
                raise AppError.conflict(EMAIL_TAKEN)
