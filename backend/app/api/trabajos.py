from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth import get_current_user, get_optional_user
from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse, PaginationOut
from app.schemas.trabajo import (
    ContactoIn,
    ContactoOut,
    ContactoStatsOut,
    ContactoUpdate,
    Estado,
    Jornada,
    Modo,
    TrabajoCreate,
    TrabajoFilters,
    TrabajoListOut,
    TrabajoOut,
    TrabajoStatsOut,
    TrabajoUpdate,
)
from app.services.trabajos import TrabajoService


router = APIRouter()
trabajos = TrabajoService()


def _filters(
    search: str | None = Query(default=None, max_length=200),
    estado: Estado | None = None,
    jornada: Jornada | None = None,
    modo: Modo | None = None,
    municipio_id: int | None = None,
    provincia_id: int | None = None,
    experiencia_min: int | None = Query(default=None, ge=0),
    sort_by: str | None = None,
) -> TrabajoFilters:
    return TrabajoFilters(
        search=search,
        estado=estado,
        jornada=jornada,
        modo=modo,
        municipio_id=municipio_id,
        provincia_id=provincia_id,
        experiencia_min=experiencia_min,
        sort_by=sort_by,
    )


@router.get("", response_model=ApiResponse)
def list_trabajos(
    filters: TrabajoFilters = Depends(_filters),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Usuario | None = Depends(get_optional_user),
) -> ApiResponse:
    result = trabajos.list(db, filters, page=page, limit=limit, actor=current_user)
    return ApiResponse(
        data=TrabajoListOut(
            trabajos=[TrabajoOut.model_validate(row) for row in result["trabajos"]],
            pagination=PaginationOut(**result["pagination"]),
            filters=result["filters"],
        )
    )


@router.get("/mis-trabajos", response_model=ApiResponse)
def my_trabajos(db: Session = Depends(get_db), current_user: Usuario = Depends(get_current_user)) -> ApiResponse:
    rows = trabajos.list_by_author(db, current_user.id, current_user)
    return ApiResponse(data=[TrabajoOut.model_validate(row) for row in rows])


@router.get("/estadisticas", response_model=ApiResponse)
def statistics(db: Session = Depends(get_db), current_user: Usuario = Depends(get_current_user)) -> ApiResponse:
    return ApiResponse(data=TrabajoStatsOut(**trabajos.statistics(db, current_user)))


@router.get("/contactos/estadisticas", response_model=ApiResponse)
def contact_statistics(db: Session = Depends(get_db)) -> ApiResponse:
    return ApiResponse(data=ContactoStatsOut(**trabajos.contact_statistics(db)))


@router.get("/usuario/{usuario_id}", response_model=ApiResponse)
def trabajos_by_author(
    usuario_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario | None = Depends(get_optional_user),
) -> ApiResponse:
    rows = trabajos.list_by_author(db, usuario_id, current_user)
    return ApiResponse(data=[TrabajoOut.model_validate(row) for row in rows])


@router.get("/{trabajo_id}", response_model=ApiResponse)
def get_trabajo(
    trabajo_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario | None = Depends(get_optional_user),
) -> ApiResponse:
    return ApiResponse(data=TrabajoOut.model_validate(trabajos.get_by_id(db, trabajo_id, current_user)))


@router.post("", response_model=ApiResponse, status_code=201)
def create_trabajo(
    payload: TrabajoCreate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    trabajo = trabajos.create(db, payload, current_user)
    return ApiResponse(message="Trabajo creado exitosamente", data=TrabajoOut.model_validate(trabajo))


@router.put("/{trabajo_id}", response_model=ApiResponse)
def update_trabajo(
    trabajo_id: int,
    payload: TrabajoUpdate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    trabajo = trabajos.update(db, trabajo_id, payload, current_user)
    return ApiResponse(message="Trabajo actualizado exitosamente", data=TrabajoOut.model_validate(trabajo))


@router.delete("/{trabajo_id}", response_model=ApiResponse)
def delete_trabajo(
    trabajo_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    trabajos.delete(db, trabajo_id, current_user)
    return ApiResponse(message="Trabajo eliminado exitosamente")


@router.post("/{trabajo_id}/publicar", response_model=ApiResponse)
def publish_trabajo(
    trabajo_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    trabajo = trabajos.publish(db, trabajo_id, current_user)
    return ApiResponse(message="Trabajo publicado exitosamente", data=TrabajoOut.model_validate(trabajo))


@router.post("/{trabajo_id}/archivar", response_model=ApiResponse)
def archive_trabajo(
    trabajo_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    trabajo = trabajos.archive(db, trabajo_id, current_user)
    return ApiResponse(message="Trabajo archivado exitosamente", data=TrabajoOut.model_validate(trabajo))


@router.get("/{trabajo_id}/contactos", response_model=ApiResponse)
def list_contactos(
    trabajo_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario | None = Depends(get_optional_user),
) -> ApiResponse:
    rows = trabajos.list_contacts(db, trabajo_id, current_user)
    return ApiResponse(data=[ContactoOut.model_validate(row) for row in rows])


@router.post("/{trabajo_id}/contactos", response_model=ApiResponse, status_code=201)
def add_contacto(
    trabajo_id: int,
    payload: ContactoIn,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    contacto = trabajos.add_contact(db, trabajo_id, payload, current_user)
    return ApiResponse(message="Contacto agregado exitosamente", data=ContactoOut.model_validate(contacto))


@router.put("/{trabajo_id}/contactos", response_model=ApiResponse)
def update_contacto(
    trabajo_id: int,
    payload: ContactoUpdate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    contacto = trabajos.update_contact(db, trabajo_id, payload.tipo, payload.valor, payload.nuevo_valor, current_user)
    return ApiResponse(message="Contacto actualizado exitosamente", data=ContactoOut.model_validate(contacto))


@router.delete("/{trabajo_id}/contactos", response_model=ApiResponse)
def remove_contacto(
    trabajo_id: int,
    tipo: str = Query(min_length=1),
    valor: str = Query(min_length=1),
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    trabajos.remove_contact(db, trabajo_id, tipo, valor, current_user)
    return ApiResponse(message="Contacto eliminado exitosamente")
