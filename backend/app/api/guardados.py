from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse
from app.schemas.guardado import GuardadoCreate, GuardadoListOut, GuardadoOut, GuardadoStatusOut
from app.services.guardados import GuardadoService


router = APIRouter()
guardados = GuardadoService()


@router.post("", response_model=ApiResponse, status_code=201)
def bookmark(
    payload: GuardadoCreate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    guardado = guardados.bookmark(db, payload.publicacion_id, current_user.id)
    return ApiResponse(message="Publicación guardada exitosamente", data=GuardadoOut.model_validate(guardado))


@router.get("", response_model=ApiResponse)
def list_bookmarks(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    result = guardados.list_bookmarks(db, current_user.id, limit=limit, offset=offset)
    return ApiResponse(
        data=GuardadoListOut(
            guardados=[GuardadoOut.model_validate(row) for row in result["guardados"]],
            total=result["total"],
            limit=result["limit"],
            offset=result["offset"],
            has_more=result["has_more"],
        )
    )


@router.delete("/{publicacion_id}", response_model=ApiResponse)
def remove_bookmark(
    publicacion_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    guardados.remove_bookmark(db, publicacion_id, current_user.id)
    return ApiResponse(
        message="Publicación eliminada de guardados exitosamente",
        data={"publicacion_id": publicacion_id},
    )


@router.get("/{publicacion_id}/verificar", response_model=ApiResponse)
def check_bookmark(
    publicacion_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    return ApiResponse(data=GuardadoStatusOut(**guardados.is_bookmarked(db, publicacion_id, current_user.id)))


@router.get("/{publicacion_id}/total", response_model=ApiResponse)
def count_bookmarks(publicacion_id: int, db: Session = Depends(get_db)) -> ApiResponse:
    return ApiResponse(
        data={"publicacion_id": publicacion_id, "total": guardados.count_for_posting(db, publicacion_id)}
    )
