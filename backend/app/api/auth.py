from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.auth import create_access_token, get_current_user
from app.database import get_db
from app.models.usuario import Usuario
from app.schemas.auth import AuthResponse, AvailabilityOut, ChangePasswordRequest, LoginRequest, RegisterRequest
from app.schemas.common import ApiResponse
from app.schemas.usuario import PerfilOut, UsuarioOut
from app.services.usuarios import UsuarioService, normalize_username


router = APIRouter()
usuarios = UsuarioService()


def _auth_response(usuario: Usuario) -> AuthResponse:
    return AuthResponse(access_token=create_access_token(usuario.id), usuario=UsuarioOut.model_validate(usuario))


@router.post("/register", response_model=ApiResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> ApiResponse:
    usuario = usuarios.register(db, payload)
    return ApiResponse(message="Usuario registrado exitosamente", data=_auth_response(usuario))


@router.post("/login", response_model=ApiResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> ApiResponse:
    usuario = usuarios.authenticate(db, payload.username, payload.password)
    return ApiResponse(message="Inicio de sesión exitoso", data=_auth_response(usuario))


@router.get("/me", response_model=ApiResponse)
def me(db: Session = Depends(get_db), current_user: Usuario = Depends(get_current_user)) -> ApiResponse:
    return ApiResponse(data=PerfilOut(**usuarios.profile(db, current_user.id)))


@router.post("/change-password", response_model=ApiResponse)
def change_password(
    payload: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: Usuario = Depends(get_current_user),
) -> ApiResponse:
    usuarios.change_password(db, current_user, payload.current_password, payload.new_password)
    return ApiResponse(message="Contraseña actualizada exitosamente")


@router.get("/availability", response_model=ApiResponse)
def availability(username: str = Query(min_length=3, max_length=120), db: Session = Depends(get_db)) -> ApiResponse:
    return ApiResponse(
        data=AvailabilityOut(username=normalize_username(username), available=usuarios.username_available(db, username))
    )
