from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.errors import AppError
from app.models.guardado import Guardado
from app.models.publicacion import Publicacion
from app.models.trabajo import Trabajo
from app.models.ubicacion import Municipio


logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Ya has guardado esta publicación"


class GuardadoService:
    """Bookmarks: at most one per (usuario, publicacion) pair."""

    def bookmark(self, db: Session, publicacion_id: int, usuario_id: int) -> Guardado:
        if not db.query(Publicacion.id).filter(Publicacion.id == publicacion_id).first():
            raise AppError.not_found("Publicación no encontrada")
        if self._find(db, publicacion_id, usuario_id) is not None:
            raise AppError.conflict(DUPLICATE_MESSAGE)

        guardado = Guardado(usuario_id=usuario_id, publicacion_id=publicacion_id)
        db.add(guardado)
        try:
            db.commit()
        except IntegrityError:
            # the composite primary key settles concurrent duplicates
            db.rollback()
            raise AppError.conflict(DUPLICATE_MESSAGE)
        db.refresh(guardado)
        logger.info("Usuario %s guardó publicación %s", usuario_id, publicacion_id)
        return guardado

    def list_bookmarks(self, db: Session, usuario_id: int, limit: int = 50, offset: int = 0) -> dict[str, Any]:
        query = db.query(Guardado).filter(Guardado.usuario_id == usuario_id)
        total = query.count()
        rows = (
            query.options(
                selectinload(Guardado.publicacion)
                .selectinload(Publicacion.trabajo)
                .selectinload(Trabajo.municipio)
                .selectinload(Municipio.provincia),
                selectinload(Guardado.publicacion).selectinload(Publicacion.autor),
            )
            .order_by(Guardado.created_at.desc(), Guardado.publicacion_id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return {
            "guardados": rows,
            "total": total,
            "limit": limit,
            "offset": offset,
            "has_more": offset + len(rows) < total,
        }

    def remove_bookmark(self, db: Session, publicacion_id: int, usuario_id: int) -> None:
        guardado = self._find(db, publicacion_id, usuario_id)
        if guardado is None:
            raise AppError.not_found("Guardado no encontrado")
        db.delete(guardado)
        db.commit()
        logger.info("Usuario %s eliminó guardado de publicación %s", usuario_id, publicacion_id)

    def is_bookmarked(self, db: Session, publicacion_id: int, usuario_id: int) -> dict[str, Any]:
        guardado = self._find(db, publicacion_id, usuario_id)
        return {
            "esta_guardada": guardado is not None,
            "fecha_guardado": guardado.created_at if guardado is not None else None,
        }

    def count_for_posting(self, db: Session, publicacion_id: int) -> int:
        return db.query(Guardado).filter(Guardado.publicacion_id == publicacion_id).count()

    def _find(self, db: Session, publicacion_id: int, usuario_id: int) -> Guardado | None:
        return (
            db.query(Guardado)
            .filter(Guardado.usuario_id == usuario_id, Guardado.publicacion_id == publicacion_id)
            .first()
        )
