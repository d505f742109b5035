from __future__ import annotations

import itertools

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.auth import hash_password
from app.database import Base
from app.models.configuracion_usuario import ConfiguracionUsuario
from app.models.publicacion import Publicacion
from app.models.trabajo import Trabajo, TrabajoContacto
from app.models.usuario import Usuario


PASSWORD = "secret123"
# hashing with the production iteration count makes every fixture user slow
_PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    def _make(rol: str = "trabajador", username: str | None = None, nombre: str = "Usuario") -> Usuario:
        n = next(counter)
        usuario = Usuario(
            nombre=nombre,
            username=username or f"usuario{n}",
            email=f"usuario{n}@example.com",
            password_hash=_PASSWORD_HASH,
            rol=rol,
        )
        db.add(usuario)
        db.commit()
        db.refresh(usuario)
        return usuario

    return _make


@pytest.fixture
def autor(make_user) -> Usuario:
    return make_user(nombre="Ana")


@pytest.fixture
def otro(make_user) -> Usuario:
    return make_user(nombre="Luis")


@pytest.fixture
def admin(make_user) -> Usuario:
    return make_user(rol="admin", nombre="Admin")


@pytest.fixture
def make_trabajo(db):
    def _make(autor: Usuario, estado: str = "publicado", titulo: str = "Cocinero en paladar", **fields) -> Trabajo:
        trabajo = Trabajo(autor_id=autor.id, titulo=titulo, estado=estado, **fields)
        db.add(trabajo)
        db.flush()
        if estado == "publicado":
            db.add(TrabajoContacto(trabajo_id=trabajo.id, tipo="telefono", valor="+5355512345"))
        db.commit()
        db.refresh(trabajo)
        return trabajo

    return _make


@pytest.fixture
def make_publicacion(db):
    def _make(trabajo: Trabajo, estado: str = "publicado") -> Publicacion:
        publicacion = Publicacion(trabajo_id=trabajo.id, autor_id=trabajo.autor_id, estado=estado)
        db.add(publicacion)
        db.commit()
        db.refresh(publicacion)
        return publicacion

    return _make


@pytest.fixture
def link_chat(db):
    def _link(usuario: Usuario, chat_id: str | None, telegram_notif: bool = True) -> ConfiguracionUsuario:
        config = ConfiguracionUsuario(usuario_id=usuario.id, telegram_chat_id=chat_id, telegram_notif=telegram_notif)
        db.add(config)
        db.commit()
        return config

    return _link
