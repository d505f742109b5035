from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from app.schemas.ubicacion import MunicipioOut


class AutorOut(BaseModel):
    id: int
    nombre: str
    apellidos: str | None = None
    username: str
    avatar_url: str | None = None

    class Config:
        from_attributes = True


class UsuarioOut(BaseModel):
    id: int
    nombre: str
    apellidos: str | None = None
    username: str
    email: str | None = None
    rol: str
    telefono_e164: str | None = None
    municipio_id: int | None = None
    avatar_url: str | None = None
    created_at: datetime | None = None
    deleted_at: datetime | None = None

    class Config:
        from_attributes = True


class PerfilOut(UsuarioOut):
    municipio: MunicipioOut | None = None
    telegram_notif: bool = False


class UsuarioUpdate(BaseModel):
    nombre: str | None = Field(default=None, min_length=1, max_length=120)
    apellidos: str | None = Field(default=None, max_length=160)
    username: str | None = Field(default=None, min_length=3, max_length=120)
    email: str | None = Field(default=None, max_length=255, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    telefono_e164: str | None = Field(default=None, pattern=r"^\+\d{7,15}$")
    municipio_id: int | None = None
    avatar_url: str | None = None
    rol: Literal["admin", "trabajador"] | None = None


class UsuarioListOut(BaseModel):
    usuarios: list[UsuarioOut]
    total: int
    page: int
    limit: int
    pages: int
