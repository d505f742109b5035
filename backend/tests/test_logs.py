import pytest

from app.context import client_ip_var, user_agent_var
from app.errors import AppError
from app.models.log import Log
from app.schemas.publicacion import PublicacionCreate
from app.schemas.trabajo import ContactoIn, TrabajoCreate, TrabajoUpdate
from app.services.logs import LogService, record_action
from app.services.publicaciones import PublicacionService
from app.services.trabajos import TrabajoService
from app.services.usuarios import UsuarioService


service = LogService()
trabajos = TrabajoService()


def _acciones(db) -> list[str]:
    return [row.accion for row in db.query(Log).order_by(Log.id)]


def test_job_lifecycle_is_recorded(db, autor):
    trabajo = trabajos.create(db, TrabajoCreate(titulo="Cocinero en paladar"), autor)
    trabajos.update(db, trabajo.id, TrabajoUpdate(salario_min=100), autor)
    trabajos.add_contact(db, trabajo.id, ContactoIn(tipo="telefono", valor="+5355512345"), autor)
    trabajos.publish(db, trabajo.id, autor)
    trabajos.archive(db, trabajo.id, autor)
    trabajos.delete(db, trabajo.id, autor)

    assert _acciones(db) == [
        "trabajo.crear",
        "trabajo.actualizar",
        "trabajo.publicar",
        "trabajo.archivar",
        "trabajo.eliminar",
    ]
    entry = db.query(Log).filter(Log.accion == "trabajo.actualizar").one()
    assert entry.usuario_id == autor.id
    assert entry.entidad == "trabajo"
    assert entry.entidad_id == trabajo.id
    assert entry.detalles == {"campos": ["salario_min"]}
    assert entry.ip is None


def test_rejected_mutation_leaves_no_entry(db, autor, otro):
    trabajo = trabajos.create(db, TrabajoCreate(titulo="Cocinero en paladar"), autor)
    with pytest.raises(AppError):
        trabajos.delete(db, trabajo.id, otro)
    assert _acciones(db) == ["trabajo.crear"]


def test_postings_and_users_are_recorded(db, autor, otro, admin, make_trabajo):
    publicaciones = PublicacionService()
    usuarios = UsuarioService()
    trabajo = make_trabajo(autor)

    publicacion = publicaciones.create(db, PublicacionCreate(trabajo_id=trabajo.id), autor)
    publicaciones.delete(db, publicacion.id, autor)
    publicaciones.republish(db, trabajo.id, autor)
    usuarios.delete(db, otro.id, admin)
    usuarios.restore(db, otro.id, admin)

    assert _acciones(db) == [
        "publicacion.crear",
        "publicacion.archivar",
        "publicacion.republicar",
        "usuario.eliminar",
        "usuario.restaurar",
    ]


def test_request_context_is_captured(db, autor):
    ip_token = client_ip_var.set("10.0.0.7")
    agent_token = user_agent_var.set("Mozilla/5.0")
    try:
        record_action(db, "trabajo.crear", autor.id, "trabajo", 1)
        db.commit()
    finally:
        client_ip_var.reset(ip_token)
        user_agent_var.reset(agent_token)

    entry = db.query(Log).one()
    assert entry.ip == "10.0.0.7"
    assert entry.user_agent == "Mozilla/5.0"


def test_list_is_newest_first_and_capped(db, autor):
    for n in range(3):
        record_action(db, f"accion.{n}", autor.id)
    db.commit()

    page = service.list(db, limit=2)
    assert page["total"] == 3
    assert [row.accion for row in page["logs"]] == ["accion.2", "accion.1"]
    assert page["logs"][0].usuario.id == autor.id

    assert service.list(db, limit=500)["limit"] == 100
    assert [row.accion for row in service.list(db, limit=2, offset=2)["logs"]] == ["accion.0"]
