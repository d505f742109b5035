from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from app.schemas.publicacion import PublicacionOut


class GuardadoCreate(BaseModel):
    publicacion_id: int


class GuardadoOut(BaseModel):
    usuario_id: int
    publicacion_id: int
    created_at: datetime | None = None
    publicacion: PublicacionOut | None = None

    class Config:
        from_attributes = True


class GuardadoListOut(BaseModel):
    guardados: list[GuardadoOut]
    total: int
    limit: int
    offset: int
    has_more: bool


class GuardadoStatusOut(BaseModel):
    esta_guardada: bool
    fecha_guardado: datetime | None = None
