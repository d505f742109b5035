"""Job (Trabajo) lifecycle: visibility, ownership, state transitions and contacts."""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session, selectinload

from app.errors import AppError
from app.models.trabajo import ESTADOS, TIPOS_CONTACTO, Trabajo, TrabajoContacto
from app.models.ubicacion import Municipio
from app.models.usuario import Usuario
from app.schemas.trabajo import ContactoIn, TrabajoCreate, TrabajoFilters, TrabajoUpdate
from app.services.logs import record_action
from app.services.permissions import ensure_admin, ensure_owner_or_admin, is_admin, is_owner_or_admin


logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+\d{7,15}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# estado -> estados reachable from it
TRANSITIONS: dict[str, set[str]] = {
    "borrador": {"publicado", "archivado"},
    "publicado": {"archivado"},
    "archivado": {"publicado"},
}

SORTABLE_FIELDS = {
    "created_at": Trabajo.created_at,
    "updated_at": Trabajo.updated_at,
    "titulo": Trabajo.titulo,
    "experiencia_min": Trabajo.experiencia_min,
    "salario_min": Trabajo.salario_min,
    "salario_max": Trabajo.salario_max,
}

NO_CONTACTS_MESSAGE = "No se puede publicar un trabajo sin contactos"


def validate_contacto(tipo: str, valor: str) -> None:
    if tipo not in TIPOS_CONTACTO:
        raise AppError.bad_request(f"Tipo de contacto no válido. Tipos permitidos: {', '.join(TIPOS_CONTACTO)}")
    if tipo in ("telefono", "whatsapp") and not PHONE_PATTERN.match(valor):
        raise AppError.bad_request("El teléfono debe estar en formato E.164 (ej: +5355512345)")
    if tipo == "email" and not EMAIL_PATTERN.match(valor):
        raise AppError.bad_request("Debe ser un email válido")


def _with_relations(query: Query) -> Query:
    return query.options(
        selectinload(Trabajo.autor),
        selectinload(Trabajo.municipio).selectinload(Municipio.provincia),
        selectinload(Trabajo.contactos),
    )


def _parse_sort(sort_by: str | None):
    if not sort_by:
        return Trabajo.created_at.desc()
    field, _, direction = sort_by.partition(":")
    column = SORTABLE_FIELDS.get(field.strip())
    if column is None:
        raise AppError.bad_request(f"Campo de ordenamiento no válido: {field}")
    direction = (direction or "desc").strip().lower()
    if direction not in ("asc", "desc"):
        raise AppError.bad_request(f"Dirección de ordenamiento no válida: {direction}")
    return column.asc() if direction == "asc" else column.desc()


class TrabajoService:
    def list(
        self,
        db: Session,
        filters: TrabajoFilters,
        page: int = 1,
        limit: int = 10,
        actor: Usuario | None = None,
    ) -> dict[str, Any]:
        query = db.query(Trabajo)

        if filters.jornada:
            query = query.filter(Trabajo.jornada == filters.jornada)
        if filters.modo:
            query = query.filter(Trabajo.modo == filters.modo)
        if filters.municipio_id:
            query = query.filter(Trabajo.municipio_id == filters.municipio_id)
        if filters.provincia_id:
            query = query.join(Municipio, Municipio.id == Trabajo.municipio_id).filter(
                Municipio.provincia_id == filters.provincia_id
            )
        if filters.search:
            term = f"%{filters.search.strip()}%"
            query = query.filter(or_(Trabajo.titulo.ilike(term), Trabajo.descripcion.ilike(term)))
        if filters.experiencia_min is not None:
            query = query.filter(Trabajo.experiencia_min <= filters.experiencia_min)

        if is_admin(actor):
            if filters.estado:
                query = query.filter(Trabajo.estado == filters.estado)
        else:
            query = query.filter(Trabajo.estado == "publicado", Trabajo.deleted_at.is_(None))

        order = _parse_sort(filters.sort_by)
        total = query.count()
        rows = (
            _with_relations(query)
            .order_by(order, Trabajo.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "trabajos": rows,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "pages": math.ceil(total / limit) if limit else 0,
            },
            "filters": filters.model_dump(exclude_none=True),
        }

    def get_by_id(self, db: Session, trabajo_id: int, actor: Usuario | None = None) -> Trabajo:
        query = _with_relations(db.query(Trabajo)).filter(Trabajo.id == trabajo_id)
        if not is_admin(actor):
            query = query.filter(Trabajo.deleted_at.is_(None))
        trabajo = query.first()
        if not trabajo:
            raise AppError.not_found("Trabajo no encontrado")
        if trabajo.estado != "publicado" and not is_owner_or_admin(actor, trabajo.autor_id):
            raise AppError.forbidden("No tienes permiso para ver este trabajo")
        return trabajo

    def list_by_author(self, db: Session, autor_id: int, actor: Usuario | None = None) -> list[Trabajo]:
        query = _with_relations(db.query(Trabajo)).filter(Trabajo.autor_id == autor_id)
        if not is_owner_or_admin(actor, autor_id):
            query = query.filter(Trabajo.estado == "publicado")
        if not is_admin(actor):
            query = query.filter(Trabajo.deleted_at.is_(None))
        return query.order_by(Trabajo.created_at.desc(), Trabajo.id.desc()).all()

    def create(self, db: Session, payload: TrabajoCreate, autor: Usuario) -> Trabajo:
        seen: set[tuple[str, str]] = set()
        for contacto in payload.contactos:
            validate_contacto(contacto.tipo, contacto.valor)
            if (contacto.tipo, contacto.valor) in seen:
                raise AppError.conflict("Hay contactos duplicados en el trabajo")
            seen.add((contacto.tipo, contacto.valor))
        if payload.estado == "publicado" and not payload.contactos:
            raise AppError.bad_request(NO_CONTACTS_MESSAGE)

        data = payload.model_dump(exclude={"contactos"})
        trabajo = Trabajo(**data, autor_id=autor.id)
        db.add(trabajo)
        try:
            db.flush()
            for contacto in payload.contactos:
                db.add(TrabajoContacto(trabajo_id=trabajo.id, tipo=contacto.tipo, valor=contacto.valor))
            record_action(db, "trabajo.crear", autor.id, "trabajo", trabajo.id, {"estado": trabajo.estado})
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AppError.conflict("El trabajo entra en conflicto con datos existentes")

        logger.info("Trabajo %s creado por usuario %s en estado %s", trabajo.id, autor.id, trabajo.estado)
        return self.get_by_id(db, trabajo.id, autor)

    def update(self, db: Session, trabajo_id: int, payload: TrabajoUpdate, actor: Usuario) -> Trabajo:
        trabajo = self._get_mutable(db, trabajo_id, actor, "No tienes permiso para modificar este trabajo")
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("estado") is None:
            changes.pop("estado", None)
        else:
            self._check_transition(db, trabajo, changes["estado"])

        salario_min = changes.get("salario_min", trabajo.salario_min)
        salario_max = changes.get("salario_max", trabajo.salario_max)
        if salario_min is not None and salario_max is not None and salario_min > salario_max:
            raise AppError.bad_request("salario_min no puede ser mayor que salario_max")

        for key, value in changes.items():
            setattr(trabajo, key, value)
        record_action(db, "trabajo.actualizar", actor.id, "trabajo", trabajo.id, {"campos": sorted(changes)})
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AppError.validation_error("El trabajo contiene datos no válidos")
        logger.info("Trabajo %s actualizado por usuario %s", trabajo.id, actor.id)
        return self.get_by_id(db, trabajo_id, actor)

    def delete(self, db: Session, trabajo_id: int, actor: Usuario) -> None:
        trabajo = self._get_mutable(db, trabajo_id, actor, "No tienes permiso para eliminar este trabajo")
        trabajo.deleted_at = datetime.utcnow()
        record_action(db, "trabajo.eliminar", actor.id, "trabajo", trabajo.id)
        db.commit()
        logger.info("Trabajo %s eliminado por usuario %s", trabajo_id, actor.id)

    def publish(self, db: Session, trabajo_id: int, actor: Usuario) -> Trabajo:
        trabajo = self._get_mutable(db, trabajo_id, actor, "No tienes permiso para publicar este trabajo")
        if self._count_contacts(db, trabajo.id) == 0:
            raise AppError.bad_request(NO_CONTACTS_MESSAGE)
        trabajo.estado = "publicado"
        record_action(db, "trabajo.publicar", actor.id, "trabajo", trabajo.id)
        db.commit()
        logger.info("Trabajo %s publicado por usuario %s", trabajo_id, actor.id)
        return self.get_by_id(db, trabajo_id, actor)

    def archive(self, db: Session, trabajo_id: int, actor: Usuario) -> Trabajo:
        trabajo = self._get_mutable(db, trabajo_id, actor, "No tienes permiso para archivar este trabajo")
        trabajo.estado = "archivado"
        record_action(db, "trabajo.archivar", actor.id, "trabajo", trabajo.id)
        db.commit()
        logger.info("Trabajo %s archivado por usuario %s", trabajo_id, actor.id)
        return self.get_by_id(db, trabajo_id, actor)

    def list_contacts(self, db: Session, trabajo_id: int, actor: Usuario | None = None) -> list[TrabajoContacto]:
        return list(self.get_by_id(db, trabajo_id, actor).contactos)

    def add_contact(self, db: Session, trabajo_id: int, contacto: ContactoIn, actor: Usuario) -> TrabajoContacto:
        trabajo = self._get_mutable(
            db, trabajo_id, actor, "No tienes permiso para agregar contactos a este trabajo"
        )
        validate_contacto(contacto.tipo, contacto.valor)
        if self._contact_exists(db, trabajo.id, contacto.tipo, contacto.valor):
            raise AppError.conflict("Este contacto ya existe para este trabajo")

        row = TrabajoContacto(trabajo_id=trabajo.id, tipo=contacto.tipo, valor=contacto.valor)
        db.add(row)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AppError.conflict("Este contacto ya existe para este trabajo")
        db.refresh(row)
        logger.info("Contacto %s agregado al trabajo %s", contacto.tipo, trabajo_id)
        return row

    def update_contact(
        self,
        db: Session,
        trabajo_id: int,
        tipo: str,
        valor: str,
        nuevo_valor: str,
        actor: Usuario,
    ) -> TrabajoContacto:
        self._get_mutable(db, trabajo_id, actor, "No tienes permiso para modificar contactos de este trabajo")
        row = self._find_contact(db, trabajo_id, tipo, valor)
        validate_contacto(tipo, nuevo_valor)
        if nuevo_valor == valor:
            return row
        if self._contact_exists(db, trabajo_id, tipo, nuevo_valor):
            raise AppError.conflict("Ya existe un contacto con este valor")

        db.delete(row)
        db.flush()
        replacement = TrabajoContacto(trabajo_id=trabajo_id, tipo=tipo, valor=nuevo_valor)
        db.add(replacement)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AppError.conflict("Ya existe un contacto con este valor")
        db.refresh(replacement)
        return replacement

    def remove_contact(self, db: Session, trabajo_id: int, tipo: str, valor: str, actor: Usuario) -> None:
        self._get_mutable(db, trabajo_id, actor, "No tienes permiso para eliminar contactos de este trabajo")
        row = self._find_contact(db, trabajo_id, tipo, valor)
        db.delete(row)
        db.commit()
        logger.info("Contacto %s eliminado del trabajo %s", tipo, trabajo_id)

    def statistics(self, db: Session, actor: Usuario) -> dict[str, Any]:
        ensure_admin(actor, "Solo administradores pueden ver estadísticas")
        active = db.query(Trabajo).filter(Trabajo.deleted_at.is_(None))

        def grouped(column) -> dict[str, int]:
            rows = (
                db.query(column, func.count(Trabajo.id))
                .filter(Trabajo.deleted_at.is_(None))
                .group_by(column)
                .all()
            )
            return {str(key): int(count) for key, count in rows}

        now = datetime.utcnow()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        este_mes = active.filter(Trabajo.estado == "publicado", Trabajo.created_at >= month_start).count()

        return {
            "total": active.count(),
            "por_estado": grouped(Trabajo.estado),
            "por_jornada": grouped(Trabajo.jornada),
            "por_modo": grouped(Trabajo.modo),
            "trabajos_este_mes": este_mes,
            "fecha_consulta": now,
        }

    def contact_statistics(self, db: Session) -> dict[str, Any]:
        total = func.count(TrabajoContacto.tipo).label("total")
        rows = (
            db.query(TrabajoContacto.tipo, total)
            .join(Trabajo, Trabajo.id == TrabajoContacto.trabajo_id)
            .filter(Trabajo.deleted_at.is_(None))
            .group_by(TrabajoContacto.tipo)
            .order_by(total.desc(), TrabajoContacto.tipo)
            .all()
        )
        por_tipo = [{"tipo": tipo, "total": int(count)} for tipo, count in rows]
        return {"total": sum(item["total"] for item in por_tipo), "por_tipo": por_tipo}

    def _get_mutable(self, db: Session, trabajo_id: int, actor: Usuario, message: str) -> Trabajo:
        trabajo = db.query(Trabajo).filter(Trabajo.id == trabajo_id, Trabajo.deleted_at.is_(None)).first()
        if not trabajo:
            raise AppError.not_found("Trabajo no encontrado")
        ensure_owner_or_admin(actor, trabajo.autor_id, message)
        return trabajo

    def _find_contact(self, db: Session, trabajo_id: int, tipo: str, valor: str) -> TrabajoContacto:
        row = (
            db.query(TrabajoContacto)
            .filter(
                TrabajoContacto.trabajo_id == trabajo_id,
                TrabajoContacto.tipo == tipo,
                TrabajoContacto.valor == valor,
            )
            .first()
        )
        if not row:
            raise AppError.not_found("Contacto no encontrado")
        return row

    def _contact_exists(self, db: Session, trabajo_id: int, tipo: str, valor: str) -> bool:
        return (
            db.query(TrabajoContacto.trabajo_id)
            .filter(
                TrabajoContacto.trabajo_id == trabajo_id,
                TrabajoContacto.tipo == tipo,
                TrabajoContacto.valor == valor,
            )
            .first()
            is not None
        )

    def _count_contacts(self, db: Session, trabajo_id: int) -> int:
        return db.query(TrabajoContacto).filter(TrabajoContacto.trabajo_id == trabajo_id).count()

    def _check_transition(self, db: Session, trabajo: Trabajo, target: str) -> None:
        if target not in ESTADOS:
            raise AppError.bad_request(f"Estado no válido: {target}")
        if target == trabajo.estado:
            return
        if target not in TRANSITIONS[trabajo.estado]:
            raise AppError.bad_request(f"No se puede pasar de {trabajo.estado} a {target}")
        if target == "publicado" and self._count_contacts(db, trabajo.id) == 0:
            raise AppError.bad_request(NO_CONTACTS_MESSAGE)
