from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.auth import require_admin
from app.database import get_db
from app.errors import AppError
from app.models.ubicacion import Municipio, Provincia
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse
from app.schemas.ubicacion import MunicipioCreate, MunicipioOut, ProvinciaCreate, ProvinciaOut


router = APIRouter()


@router.get("/provincias", response_model=ApiResponse)
def list_provincias(db: Session = Depends(get_db)) -> ApiResponse:
    rows = db.query(Provincia).order_by(Provincia.nombre.asc()).all()
    return ApiResponse(data=[ProvinciaOut.model_validate(row) for row in rows])


@router.get("/provincias/{provincia_id}", response_model=ApiResponse)
def get_provincia(provincia_id: int, db: Session = Depends(get_db)) -> ApiResponse:
    provincia = db.get(Provincia, provincia_id)
    if not provincia:
        raise AppError.not_found("Provincia no encontrada")
    return ApiResponse(data=ProvinciaOut.model_validate(provincia))


@router.post("/provincias", response_model=ApiResponse, status_code=201)
def create_provincia(
    payload: ProvinciaCreate,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
) -> ApiResponse:
    nombre = payload.nombre.strip()
    if db.query(Provincia.id).filter(Provincia.nombre == nombre).first():
        raise AppError.conflict("La provincia ya existe")
    provincia = Provincia(nombre=nombre)
    db.add(provincia)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AppError.conflict("La provincia ya existe")
    db.refresh(provincia)
    return ApiResponse(message="Provincia creada exitosamente", data=ProvinciaOut.model_validate(provincia))


@router.get("/municipios", response_model=ApiResponse)
def list_municipios(provincia_id: int | None = None, db: Session = Depends(get_db)) -> ApiResponse:
    query = db.query(Municipio).options(selectinload(Municipio.provincia))
    if provincia_id is not None:
        query = query.filter(Municipio.provincia_id == provincia_id)
    rows = query.order_by(Municipio.nombre.asc()).all()
    return ApiResponse(data=[MunicipioOut.model_validate(row) for row in rows])


@router.get("/municipios/{municipio_id}", response_model=ApiResponse)
def get_municipio(municipio_id: int, db: Session = Depends(get_db)) -> ApiResponse:
    municipio = db.get(Municipio, municipio_id)
    if not municipio:
        raise AppError.not_found("Municipio no encontrado")
    return ApiResponse(data=MunicipioOut.model_validate(municipio))


@router.post("/municipios", response_model=ApiResponse, status_code=201)
def create_municipio(
    payload: MunicipioCreate,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
) -> ApiResponse:
    if not db.get(Provincia, payload.provincia_id):
        raise AppError.not_found("Provincia no encontrada")
    nombre = payload.nombre.strip()
    exists = (
        db.query(Municipio.id)
        .filter(Municipio.provincia_id == payload.provincia_id, Municipio.nombre == nombre)
        .first()
    )
    if exists:
        raise AppError.conflict("El municipio ya existe en esta provincia")

    municipio = Municipio(provincia_id=payload.provincia_id, nombre=nombre)
    db.add(municipio)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AppError.conflict("El municipio ya existe en esta provincia")
    db.refresh(municipio)
    return ApiResponse(message="Municipio creado exitosamente", data=MunicipioOut.model_validate(municipio))
