from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from app.schemas.usuario import AutorOut


class LogOut(BaseModel):
    id: int
    usuario_id: int | None = None
    accion: str
    entidad: str | None = None
    entidad_id: int | None = None
    detalles: dict[str, Any] | None = None
    ip: str | None = None
    user_agent: str | None = None
    created_at: datetime | None = None
    usuario: AutorOut | None = None

    class Config:
        from_attributes = True


class LogListOut(BaseModel):
    logs: list[LogOut]
    total: int
    limit: int
    offset: int
