from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth import get_current_user, get_optional_user
from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse
from app.schemas.publicacion import (
    PublicacionCreate,
    PublicacionFilters,
    PublicacionListOut,
    PublicacionOut,
    PublicacionStatsOut,
    PublicacionUpdate,
    RepublicarRequest,
)
from app.schemas.trabajo import Estado, Jornada, Modo
from app.services.publicaciones import PublicacionService


router = APIRouter()
publicaciones = PublicacionService()


def _filters(
    estado: Estado | None = None,
    municipio_id: int | None = None,
    provincia_id: int | None = None,
    modo: Modo | None = None,
    jornada: Jornada | None = None,
    busqueda: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> PublicacionFilters:
    return PublicacionFilters(
        estado=estado,
        municipio_id=municipio_id,
        provincia_id=provincia_id,
        modo=modo,
        jornada=jornada,
        busqueda=busqueda,
        limit=limit,
        offset=offset,
    )


def _page(result: dict) -> PublicacionListOut:
    return PublicacionListOut(
        publicaciones=[PublicacionOut.model_validate(row) for row in result["publicaciones"]],
        total=result["total"],
        limit=result["limit"],
        offset=result["offset"],
        has_more=result["has_more"],
    )


@router.get("", response_model=ApiResponse)
def list_publicaciones(
    filters: PublicacionFilters = Depends(_filters),
    db: Session = Depends(get_db),
) -> ApiResponse:
    return ApiResponse(data=_page(publicaciones.list(db, filters)))


@router.get("/mis-publicaciones", response_model=ApiResponse)
def my_publicaciones(
    filters: PublicacionFilters = Depends(_filters),
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    return ApiResponse(data=_page(publicaciones.list_mine(db, current_user.id, filters)))


@router.get("/estadisticas", response_model=ApiResponse)
def statistics(
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    # admins see global numbers, everyone else only their own
    scope = None if current_user.rol == "admin" else current_user.id
    return ApiResponse(data=PublicacionStatsOut(**publicaciones.statistics(db, scope)))


@router.post("/republicar", response_model=ApiResponse, status_code=201)
def republish(
    payload: RepublicarRequest,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    publicacion = publicaciones.republish(db, payload.trabajo_id, current_user, payload.imagen_url)
    return ApiResponse(message="Trabajo republicado exitosamente", data=PublicacionOut.model_validate(publicacion))


@router.post("", response_model=ApiResponse, status_code=201)
def create_publicacion(
    payload: PublicacionCreate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    publicacion = publicaciones.create(db, payload, current_user)
    return ApiResponse(message="Publicación creada exitosamente", data=PublicacionOut.model_validate(publicacion))


@router.get("/{publicacion_id}", response_model=ApiResponse)
def get_publicacion(
    publicacion_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario | None = Depends(get_optional_user),
) -> ApiResponse:
    viewer_id = current_user.id if current_user else None
    return ApiResponse(data=PublicacionOut.model_validate(publicaciones.get_by_id(db, publicacion_id, viewer_id)))


@router.put("/{publicacion_id}", response_model=ApiResponse)
def update_publicacion(
    publicacion_id: int,
    payload: PublicacionUpdate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    publicacion = publicaciones.update(db, publicacion_id, payload, current_user)
    return ApiResponse(message="Publicación actualizada exitosamente", data=PublicacionOut.model_validate(publicacion))


@router.delete("/{publicacion_id}", response_model=ApiResponse)
def delete_publicacion(
    publicacion_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    publicaciones.delete(db, publicacion_id, current_user)
    return ApiResponse(message="Publicación archivada exitosamente")
