from app.schemas.auth import AuthResponse, ChangePasswordRequest, LoginRequest, RegisterRequest
from app.schemas.common import ApiResponse, PaginationOut
from app.schemas.guardado import GuardadoCreate, GuardadoListOut, GuardadoOut, GuardadoStatusOut
from app.schemas.log import LogListOut, LogOut
from app.schemas.publicacion import (
    PublicacionCreate,
    PublicacionFilters,
    PublicacionListOut,
    PublicacionOut,
    PublicacionStatsOut,
    PublicacionUpdate,
    RepublicarRequest,
)
from app.schemas.telegram import BroadcastRequest, TelegramSettingsUpdate
from app.schemas.trabajo import (
    ContactoIn,
    ContactoOut,
    ContactoStatsOut,
    TrabajoCreate,
    TrabajoFilters,
    TrabajoListOut,
    TrabajoOut,
    TrabajoStatsOut,
    TrabajoUpdate,
)
from app.schemas.usuario import AutorOut, UsuarioOut, UsuarioUpdate

__all__ = [
    "ApiResponse",
    "PaginationOut",
    "AuthResponse",
    "ChangePasswordRequest",
    "LoginRequest",
    "RegisterRequest",
    "AutorOut",
    "UsuarioOut",
    "UsuarioUpdate",
    "ContactoIn",
    "ContactoOut",
    "ContactoStatsOut",
    "TrabajoCreate",
    "TrabajoUpdate",
    "TrabajoFilters",
    "TrabajoOut",
    "TrabajoListOut",
    "TrabajoStatsOut",
    "PublicacionCreate",
    "PublicacionUpdate",
    "PublicacionFilters",
    "PublicacionOut",
    "PublicacionListOut",
    "PublicacionStatsOut",
    "RepublicarRequest",
    "GuardadoCreate",
    "GuardadoOut",
    "GuardadoListOut",
    "GuardadoStatusOut",
    "LogOut",
    "LogListOut",
    "BroadcastRequest",
    "TelegramSettingsUpdate",
]
