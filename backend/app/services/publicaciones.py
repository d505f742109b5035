"""Postings (Publicacion) layered over existing jobs: publish, republish and archive."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Query, Session, selectinload

from app.errors import AppError
from app.models.publicacion import Publicacion
from app.models.trabajo import Trabajo
from app.models.ubicacion import Municipio
from app.models.usuario import Usuario
from app.schemas.publicacion import PublicacionCreate, PublicacionFilters, PublicacionUpdate
from app.services.logs import record_action
from app.services.permissions import ensure_owner


logger = logging.getLogger(__name__)

MUTABLE_FIELDS = ("estado", "imagen_url")


def _with_relations(query: Query) -> Query:
    return query.options(
        selectinload(Publicacion.trabajo).selectinload(Trabajo.municipio).selectinload(Municipio.provincia),
        selectinload(Publicacion.autor),
    )


def _apply_filters(query: Query, filters: PublicacionFilters) -> Query:
    if filters.estado:
        query = query.filter(Publicacion.estado == filters.estado)
    if filters.municipio_id:
        query = query.filter(Trabajo.municipio_id == filters.municipio_id)
    if filters.provincia_id:
        query = query.join(Municipio, Municipio.id == Trabajo.municipio_id).filter(
            Municipio.provincia_id == filters.provincia_id
        )
    if filters.modo:
        query = query.filter(Trabajo.modo == filters.modo)
    if filters.jornada:
        query = query.filter(Trabajo.jornada == filters.jornada)
    if filters.busqueda:
        query = query.filter(Trabajo.titulo.ilike(f"%{filters.busqueda.strip()}%"))
    return query


def _paginate(query: Query, filters: PublicacionFilters) -> dict[str, Any]:
    total = query.count()
    rows = (
        _with_relations(query)
        .order_by(Publicacion.publicado_en.desc(), Publicacion.id.desc())
        .offset(filters.offset)
        .limit(filters.limit)
        .all()
    )
    return {
        "publicaciones": rows,
        "total": total,
        "limit": filters.limit,
        "offset": filters.offset,
        "has_more": filters.offset + len(rows) < total,
    }


class PublicacionService:
    def create(self, db: Session, payload: PublicacionCreate, autor: Usuario) -> Publicacion:
        self._owned_trabajo(db, payload.trabajo_id, autor.id)
        publicacion = Publicacion(
            trabajo_id=payload.trabajo_id,
            autor_id=autor.id,
            estado=payload.estado,
            imagen_url=payload.imagen_url,
            publicado_en=datetime.utcnow(),
        )
        db.add(publicacion)
        db.flush()
        record_action(
            db, "publicacion.crear", autor.id, "publicacion", publicacion.id, {"trabajo_id": payload.trabajo_id}
        )
        db.commit()
        logger.info("Publicación %s creada para trabajo %s", publicacion.id, payload.trabajo_id)
        return self.get_by_id(db, publicacion.id)

    def list(self, db: Session, filters: PublicacionFilters) -> dict[str, Any]:
        query = (
            db.query(Publicacion)
            .join(Trabajo, Trabajo.id == Publicacion.trabajo_id)
            .filter(Trabajo.deleted_at.is_(None))
        )
        return _paginate(_apply_filters(query, filters), filters)

    def get_by_id(self, db: Session, publicacion_id: int, viewer_id: int | None = None) -> Publicacion:
        publicacion = _with_relations(db.query(Publicacion)).filter(Publicacion.id == publicacion_id).first()
        if not publicacion:
            raise AppError.not_found("Publicación no encontrada")
        if viewer_id is not None:
            logger.info("Usuario %s visualizó publicación %s", viewer_id, publicacion_id)
        return publicacion

    def update(self, db: Session, publicacion_id: int, payload: PublicacionUpdate, actor: Usuario) -> Publicacion:
        publicacion = self._owned_publicacion(db, publicacion_id, actor)
        changes = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if key in MUTABLE_FIELDS and value is not None
        }
        if not changes:
            return self.get_by_id(db, publicacion_id)

        for key, value in changes.items():
            setattr(publicacion, key, value)
        record_action(
            db, "publicacion.actualizar", actor.id, "publicacion", publicacion.id, {"campos": sorted(changes)}
        )
        db.commit()
        logger.info("Publicación %s actualizada: %s", publicacion_id, ", ".join(sorted(changes)))
        return self.get_by_id(db, publicacion_id)

    def delete(self, db: Session, publicacion_id: int, actor: Usuario) -> None:
        publicacion = self._owned_publicacion(db, publicacion_id, actor)
        publicacion.estado = "archivado"
        record_action(db, "publicacion.archivar", actor.id, "publicacion", publicacion.id)
        db.commit()
        logger.info("Publicación %s archivada por usuario %s", publicacion_id, actor.id)

    def republish(self, db: Session, trabajo_id: int, actor: Usuario, imagen_url: str | None = None) -> Publicacion:
        self._owned_trabajo(db, trabajo_id, actor.id)
        publicacion = Publicacion(
            trabajo_id=trabajo_id,
            autor_id=actor.id,
            estado="publicado",
            imagen_url=imagen_url,
            publicado_en=datetime.utcnow(),
        )
        db.add(publicacion)
        db.flush()
        record_action(
            db, "publicacion.republicar", actor.id, "publicacion", publicacion.id, {"trabajo_id": trabajo_id}
        )
        db.commit()
        logger.info("Trabajo %s republicado como publicación %s", trabajo_id, publicacion.id)
        return self.get_by_id(db, publicacion.id)

    def list_mine(self, db: Session, actor_id: int, filters: PublicacionFilters) -> dict[str, Any]:
        query = (
            db.query(Publicacion)
            .join(Trabajo, Trabajo.id == Publicacion.trabajo_id)
            .filter(Publicacion.autor_id == actor_id)
        )
        return _paginate(_apply_filters(query, filters), filters)

    def statistics(self, db: Session, actor_id: int | None = None) -> dict[str, int]:
        query = db.query(Publicacion)
        if actor_id is not None:
            query = query.filter(Publicacion.autor_id == actor_id)
        since = datetime.utcnow() - timedelta(hours=24)
        return {
            "total": query.count(),
            "publicados": query.filter(Publicacion.estado == "publicado").count(),
            "borradores": query.filter(Publicacion.estado == "borrador").count(),
            "archivados": query.filter(Publicacion.estado == "archivado").count(),
            "ultimas_24_horas": query.filter(Publicacion.created_at >= since).count(),
        }

    def verify_ownership(self, db: Session, publicacion_id: int, actor_id: int) -> bool:
        return (
            db.query(Publicacion.id)
            .filter(Publicacion.id == publicacion_id, Publicacion.autor_id == actor_id)
            .first()
            is not None
        )

    def _owned_trabajo(self, db: Session, trabajo_id: int, actor_id: int) -> Trabajo:
        trabajo = (
            db.query(Trabajo)
            .filter(Trabajo.id == trabajo_id, Trabajo.autor_id == actor_id, Trabajo.deleted_at.is_(None))
            .first()
        )
        if not trabajo:
            raise AppError.not_found("Trabajo no encontrado o no autorizado")
        return trabajo

    def _owned_publicacion(self, db: Session, publicacion_id: int, actor: Usuario) -> Publicacion:
        publicacion = db.query(Publicacion).filter(Publicacion.id == publicacion_id).first()
        if not publicacion:
            raise AppError.not_found("Publicación no encontrada")
        ensure_owner(actor, publicacion.autor_id, "No tienes permiso sobre esta publicación")
        return publicacion
