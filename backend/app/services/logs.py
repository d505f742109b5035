"""Audit log: mutating services append a row inside their own transaction."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session, selectinload

from app.context import client_ip_var, user_agent_var
from app.models.log import Log


MAX_PAGE_SIZE = 100


def record_action(
    db: Session,
    accion: str,
    usuario_id: int | None = None,
    entidad: str | None = None,
    entidad_id: int | None = None,
    detalles: dict[str, Any] | None = None,
) -> Log:
    entry = Log(
        usuario_id=usuario_id,
        accion=accion,
        entidad=entidad,
        entidad_id=entidad_id,
        detalles=detalles,
        ip=client_ip_var.get() or None,
        user_agent=user_agent_var.get() or None,
    )
    db.add(entry)
    return entry


class LogService:
    def list(self, db: Session, limit: int = 50, offset: int = 0) -> dict[str, Any]:
        limit = min(limit, MAX_PAGE_SIZE)
        query = db.query(Log)
        total = query.count()
        rows = (
            query.options(selectinload(Log.usuario))
            .order_by(Log.created_at.desc(), Log.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return {"logs": rows, "total": total, "limit": limit, "offset": offset}
