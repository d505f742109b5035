from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.errors import AppError
from app.models.usuario import Usuario


security = HTTPBearer(auto_error=False)
HASH_SCHEME = "pbkdf2_sha256"


def _pbkdf2(password: str, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations).hex()


def _sign(payload: str) -> str:
    return hmac.new(settings.auth_secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def hash_password(password: str) -> str:
    iterations = settings.password_hash_iterations
    salt = secrets.token_hex(16)
    return f"{HASH_SCHEME}${iterations}${salt}${_pbkdf2(password, salt, iterations)}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        scheme, iterations_str, salt, digest = password_hash.split("$", 3)
        iterations = int(iterations_str)
    except ValueError:
        return False
    if scheme != HASH_SCHEME:
        return False
    return hmac.compare_digest(_pbkdf2(password, salt, iterations), digest)


def create_access_token(user_id: int, ttl_seconds: int | None = None) -> str:
    if ttl_seconds is None:
        ttl_seconds = settings.auth_token_ttl_seconds
    payload = f"{user_id}:{int(time.time()) + ttl_seconds}:{secrets.token_hex(6)}"
    token_raw = f"{payload}:{_sign(payload)}".encode("utf-8")
    return base64.urlsafe_b64encode(token_raw).decode("utf-8").rstrip("=")


def decode_access_token(token: str) -> int | None:
    """Return the user id carried by a signed, unexpired token, else None."""
    if not token:
        return None
    padding = "=" * (-len(token) % 4)
    try:
        decoded = base64.urlsafe_b64decode((token + padding).encode("utf-8")).decode("utf-8")
        user_id_str, exp_str, nonce, signature = decoded.split(":", 3)
    except (ValueError, UnicodeDecodeError):
        return None

    if not hmac.compare_digest(_sign(f"{user_id_str}:{exp_str}:{nonce}"), signature):
        return None

    try:
        exp = int(exp_str)
        user_id = int(user_id_str)
    except ValueError:
        return None
    if exp < int(time.time()):
        return None
    return user_id


def _user_from_credentials(credentials: HTTPAuthorizationCredentials | None, db: Session) -> Usuario | None:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise AppError.unauthorized("Token inválido o expirado")
    user = db.query(Usuario).filter(Usuario.id == user_id, Usuario.deleted_at.is_(None)).first()
    if not user:
        raise AppError.unauthorized("Usuario no válido")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Usuario:
    user = _user_from_credentials(credentials, db)
    if user is None:
        raise AppError.unauthorized("Se requiere autenticación")
    return user


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> Usuario | None:
    """Resolve the bearer user for public endpoints; anonymous requests get None."""
    return _user_from_credentials(credentials, db)


def require_admin(current_user: Usuario = Depends(get_current_user)) -> Usuario:
    if current_user.rol != "admin":
        raise AppError.forbidden("Solo administradores pueden realizar esta acción")
    return current_user
