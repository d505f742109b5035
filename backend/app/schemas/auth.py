from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.usuario import UsuarioOut


class RegisterRequest(BaseModel):
    nombre: str = Field(min_length=1, max_length=120)
    apellidos: str | None = Field(default=None, max_length=160)
    username: str = Field(min_length=3, max_length=120)
    email: str | None = Field(default=None, max_length=255, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    password: str = Field(min_length=6, max_length=256)
    telefono_e164: str | None = Field(default=None, pattern=r"^\+\d{7,15}$")
    municipio_id: int | None = None


class LoginRequest(BaseModel):
    username: str = Field(min_length=3, max_length=120)
    password: str = Field(min_length=6, max_length=256)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=6, max_length=256)
    new_password: str = Field(min_length=6, max_length=256)


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    usuario: UsuarioOut


class AvailabilityOut(BaseModel):
    username: str
    available: bool
