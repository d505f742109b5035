from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth import get_current_user, require_admin
from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.common import ApiResponse
from app.schemas.usuario import UsuarioListOut, UsuarioOut, UsuarioUpdate
from app.services.usuarios import UsuarioService


router = APIRouter()
usuarios = UsuarioService()


@router.get("", response_model=ApiResponse)
def list_usuarios(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    rol: Literal["admin", "trabajador"] | None = None,
    municipio_id: int | None = None,
    include_deleted: bool = True,
    db: Session = Depends(get_db),
    _admin: Usuario = Depends(require_admin),
) -> ApiResponse:
    result = usuarios.list(
        db,
        page=page,
        limit=limit,
        rol=rol,
        municipio_id=municipio_id,
        include_deleted=include_deleted,
    )
    return ApiResponse(
        data=UsuarioListOut(
            usuarios=[UsuarioOut.model_validate(row) for row in result["usuarios"]],
            total=result["total"],
            page=result["page"],
            limit=result["limit"],
            pages=result["pages"],
        )
    )


@router.get("/{usuario_id}", response_model=ApiResponse)
def get_usuario(
    usuario_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    return ApiResponse(data=UsuarioOut.model_validate(usuarios.get(db, usuario_id, current_user)))


@router.put("/{usuario_id}", response_model=ApiResponse)
def update_usuario(
    usuario_id: int,
    payload: UsuarioUpdate,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    usuario = usuarios.update(db, usuario_id, payload, current_user)
    return ApiResponse(message="Usuario actualizado exitosamente", data=UsuarioOut.model_validate(usuario))


@router.delete("/{usuario_id}", response_model=ApiResponse)
def delete_usuario(
    usuario_id: int,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    usuarios.delete(db, usuario_id, current_user)
    return ApiResponse(message="Usuario eliminado exitosamente")


@router.post("/{usuario_id}/restaurar", response_model=ApiResponse)
def restore_usuario(
    usuario_id: int,
    db: Session = Depends(get_db),
    admin: Usuario = Depends(require_admin),
) -> ApiResponse:
    usuario = usuarios.restore(db, usuario_id, admin)
    return ApiResponse(message="Usuario restaurado exitosamente", data=UsuarioOut.model_validate(usuario))
