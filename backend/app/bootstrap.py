from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine

from app.auth import hash_password
from app.config import settings


logger = logging.getLogger(__name__)

PROVINCIAS = (
    "Pinar del Río",
    "Artemisa",
    "La Habana",
    "Mayabeque",
    "Matanzas",
    "Cienfuegos",
    "Villa Clara",
    "Sancti Spíritus",
    "Ciego de Ávila",
    "Camagüey",
    "Las Tunas",
    "Holguín",
    "Granma",
    "Santiago de Cuba",
    "Guantánamo",
    "Isla de la Juventud",
)


def _seed_provincias(conn: Connection) -> int:
    existing = {row[0] for row in conn.execute(text("SELECT nombre FROM provincias")).fetchall()}
    missing = [nombre for nombre in PROVINCIAS if nombre not in existing]
    for nombre in missing:
        conn.execute(text("INSERT INTO provincias (nombre) VALUES (:nombre)"), {"nombre": nombre})
    return len(missing)


def _seed_admin(conn: Connection) -> bool:
    username = settings.default_admin_username.strip().lower()
    if not username:
        return False
    admin_row = conn.execute(
        text("SELECT id FROM usuarios WHERE rol = 'admin' AND deleted_at IS NULL LIMIT 1"),
    ).fetchone()
    if admin_row:
        return False
    taken = conn.execute(text("SELECT id FROM usuarios WHERE username = :username"), {"username": username}).fetchone()
    if taken:
        logger.warning("No hay administrador activo y el usuario %s ya existe; no se crea otro", username)
        return False
    conn.execute(
        text(
            "INSERT INTO usuarios (nombre, username, password_hash, rol) "
            "VALUES (:nombre, :username, :password_hash, 'admin')"
        ),
        {
            "nombre": "Administrador",
            "username": username,
            "password_hash": hash_password(settings.default_admin_password),
        },
    )
    return True


def seed_defaults(engine: Engine) -> None:
    with engine.begin() as conn:
        added = _seed_provincias(conn)
        admin_created = _seed_admin(conn)
    if added:
        logger.info("Provincias iniciales creadas: %s", added)
    if admin_created:
        logger.info("Administrador inicial creado: %s", settings.default_admin_username)
