from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.trabajo import Estado, Jornada, Modo, TrabajoResumenOut
from app.schemas.usuario import AutorOut


class PublicacionCreate(BaseModel):
    trabajo_id: int
    estado: Estado = "publicado"
    imagen_url: str | None = None


class PublicacionUpdate(BaseModel):
    estado: Estado | None = None
    imagen_url: str | None = None


class RepublicarRequest(BaseModel):
    trabajo_id: int
    imagen_url: str | None = None


class PublicacionFilters(BaseModel):
    estado: Estado | None = None
    municipio_id: int | None = None
    provincia_id: int | None = None
    modo: Modo | None = None
    jornada: Jornada | None = None
    busqueda: str | None = None
    limit: int = Field(default=50, ge=1, le=200)
    offset: int = Field(default=0, ge=0)


class PublicacionOut(BaseModel):
    id: int
    trabajo_id: int
    autor_id: int
    estado: str
    publicado_en: datetime | None = None
    imagen_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    trabajo: TrabajoResumenOut | None = None
    autor: AutorOut | None = None

    class Config:
        from_attributes = True


class PublicacionListOut(BaseModel):
    publicaciones: list[PublicacionOut]
    total: int
    limit: int
    offset: int
    has_more: bool


class PublicacionStatsOut(BaseModel):
    total: int
    publicados: int
    borradores: int
    archivados: int
    ultimas_24_horas: int
