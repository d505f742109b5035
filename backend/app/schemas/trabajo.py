from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.schemas.common import PaginationOut
from app.schemas.ubicacion import MunicipioOut
from app.schemas.usuario import AutorOut


Estado = Literal["borrador", "publicado", "archivado"]
Jornada = Literal["tiempo_completo", "tiempo_parcial", "por_turnos"]
Modo = Literal["presencial", "remoto", "hibrido"]
TipoContacto = Literal["telefono", "whatsapp", "email", "sitio_web"]

# NOT NULL columns that a partial update may omit but never clear
REQUIRED_ON_UPDATE = ("titulo", "jornada", "modo")


class ContactoIn(BaseModel):
    tipo: str = Field(min_length=1)
    valor: str = Field(min_length=1, max_length=255)


class ContactoUpdate(BaseModel):
    tipo: str = Field(min_length=1)
    valor: str = Field(min_length=1, max_length=255)
    nuevo_valor: str = Field(min_length=1, max_length=255)


class ContactoOut(BaseModel):
    tipo: str
    valor: str

    class Config:
        from_attributes = True


class ContactoTipoCount(BaseModel):
    tipo: str
    total: int


class ContactoStatsOut(BaseModel):
    total: int
    por_tipo: list[ContactoTipoCount]


class _SalarioRange(BaseModel):
    salario_min: int | None = Field(default=None, ge=0)
    salario_max: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_salario(self):
        if self.salario_min is not None and self.salario_max is not None and self.salario_min > self.salario_max:
            raise ValueError("salario_min no puede ser mayor que salario_max")
        return self


class TrabajoCreate(_SalarioRange):
    titulo: str = Field(min_length=3, max_length=255)
    descripcion: str | None = None
    experiencia_min: int | None = Field(default=None, ge=0, le=60)
    jornada: Jornada = "tiempo_completo"
    modo: Modo = "presencial"
    municipio_id: int | None = None
    estado: Estado = "borrador"
    contactos: list[ContactoIn] = Field(default_factory=list)


class TrabajoUpdate(_SalarioRange):
    titulo: str | None = Field(default=None, min_length=3, max_length=255)
    descripcion: str | None = None
    experiencia_min: int | None = Field(default=None, ge=0, le=60)
    jornada: Jornada | None = None
    modo: Modo | None = None
    municipio_id: int | None = None
    estado: Estado | None = None

    @model_validator(mode="after")
    def _check_required(self):
        for name in REQUIRED_ON_UPDATE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} no puede ser nulo")
        return self


class TrabajoFilters(BaseModel):
    search: str | None = None
    estado: Estado | None = None
    jornada: Jornada | None = None
    modo: Modo | None = None
    municipio_id: int | None = None
    provincia_id: int | None = None
    experiencia_min: int | None = Field(default=None, ge=0)
    sort_by: str | None = None


class TrabajoOut(BaseModel):
    id: int
    autor_id: int
    titulo: str
    descripcion: str | None = None
    experiencia_min: int | None = None
    jornada: str
    modo: str
    salario_min: int | None = None
    salario_max: int | None = None
    municipio_id: int | None = None
    estado: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    autor: AutorOut | None = None
    municipio: MunicipioOut | None = None
    contactos: list[ContactoOut] = Field(default_factory=list)

    class Config:
        from_attributes = True


class TrabajoResumenOut(BaseModel):
    id: int
    titulo: str
    jornada: str
    modo: str
    estado: str
    municipio: MunicipioOut | None = None

    class Config:
        from_attributes = True


class TrabajoListOut(BaseModel):
    trabajos: list[TrabajoOut]
    pagination: PaginationOut
    filters: dict


class TrabajoStatsOut(BaseModel):
    total: int
    por_estado: dict[str, int]
    por_jornada: dict[str, int]
    por_modo: dict[str, int]
    trabajos_este_mes: int
    fecha_consulta: datetime
