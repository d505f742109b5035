from __future__ import annotations

from pydantic import BaseModel, Field


class ProvinciaCreate(BaseModel):
    nombre: str = Field(min_length=2, max_length=120)


class ProvinciaOut(BaseModel):
    id: int
    nombre: str

    class Config:
        from_attributes = True


class MunicipioCreate(BaseModel):
    provincia_id: int
    nombre: str = Field(min_length=2, max_length=120)


class MunicipioOut(BaseModel):
    id: int
    nombre: str
    provincia_id: int
    provincia: ProvinciaOut | None = None

    class Config:
        from_attributes = True
