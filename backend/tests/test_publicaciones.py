from datetime import datetime

import pytest

from app.errors import AppError
from app.models.publicacion import Publicacion
from app.schemas.publicacion import PublicacionCreate, PublicacionFilters, PublicacionUpdate
from app.services.publicaciones import PublicacionService


service = PublicacionService()


def test_create_requires_own_job(db, autor, otro, make_trabajo):
    trabajo = make_trabajo(autor)

    with pytest.raises(AppError) as exc_info:
        service.create(db, PublicacionCreate(trabajo_id=trabajo.id), otro)
    assert exc_info.value.status_code == 404

    publicacion = service.create(db, PublicacionCreate(trabajo_id=trabajo.id, imagen_url="/img/1.png"), autor)
    assert publicacion.estado == "publicado"
    assert publicacion.autor_id == autor.id
    assert isinstance(publicacion.publicado_en, datetime)


def test_create_for_missing_job_is_not_found(db, autor):
    with pytest.raises(AppError) as exc_info:
        service.create(db, PublicacionCreate(trabajo_id=999), autor)
    assert exc_info.value.status_code == 404


def test_republish_always_creates_a_new_posting(db, autor, make_trabajo):
    trabajo = make_trabajo(autor)
    first = service.republish(db, trabajo.id, autor)
    second = service.republish(db, trabajo.id, autor, imagen_url="/img/2.png")

    assert first.id != second.id
    assert {first.trabajo_id, second.trabajo_id} == {trabajo.id}
    assert first.estado == second.estado == "publicado"
    assert db.query(Publicacion).filter(Publicacion.trabajo_id == trabajo.id).count() == 2


def test_republish_checks_ownership(db, autor, otro, make_trabajo):
    trabajo = make_trabajo(autor)
    with pytest.raises(AppError) as exc_info:
        service.republish(db, trabajo.id, otro)
    assert exc_info.value.status_code == 404


def test_update_only_by_author(db, autor, otro, make_trabajo, make_publicacion):
    publicacion = make_publicacion(make_trabajo(autor))

    with pytest.raises(AppError) as exc_info:
        service.update(db, publicacion.id, PublicacionUpdate(estado="archivado"), otro)
    assert exc_info.value.status_code == 403

    with pytest.raises(AppError) as exc_info:
        service.update(db, 999, PublicacionUpdate(estado="archivado"), autor)
    assert exc_info.value.status_code == 404

    updated = service.update(db, publicacion.id, PublicacionUpdate(imagen_url="/img/nueva.png"), autor)
    assert updated.imagen_url == "/img/nueva.png"
    assert updated.estado == "publicado"


def test_empty_update_returns_posting_unchanged(db, autor, make_trabajo, make_publicacion):
    publicacion = make_publicacion(make_trabajo(autor), estado="borrador")
    unchanged = service.update(db, publicacion.id, PublicacionUpdate(), autor)
    assert unchanged.id == publicacion.id
    assert unchanged.estado == "borrador"


def test_delete_archives_instead_of_removing(db, autor, make_trabajo, make_publicacion):
    publicacion = make_publicacion(make_trabajo(autor))
    service.delete(db, publicacion.id, autor)

    row = db.get(Publicacion, publicacion.id)
    assert row is not None
    assert row.estado == "archivado"


def test_any_posting_is_readable_by_id(db, autor, make_trabajo, make_publicacion):
    borrador = make_publicacion(make_trabajo(autor), estado="borrador")
    assert service.get_by_id(db, borrador.id).id == borrador.id
    assert service.get_by_id(db, borrador.id, viewer_id=123).id == borrador.id

    with pytest.raises(AppError) as exc_info:
        service.get_by_id(db, 999)
    assert exc_info.value.status_code == 404


def test_list_has_more_is_exact(db, autor, make_trabajo, make_publicacion):
    trabajo = make_trabajo(autor)
    for _ in range(3):
        make_publicacion(trabajo)

    first_page = service.list(db, PublicacionFilters(limit=2))
    assert len(first_page["publicaciones"]) == 2
    assert first_page["total"] == 3
    assert first_page["has_more"] is True

    last_page = service.list(db, PublicacionFilters(limit=2, offset=2))
    assert len(last_page["publicaciones"]) == 1
    assert last_page["has_more"] is False

    # a page that is exactly full but final reports no more rows
    exact = service.list(db, PublicacionFilters(limit=3))
    assert exact["has_more"] is False


def test_list_filters_by_job_fields(db, autor, make_trabajo, make_publicacion):
    remoto = make_publicacion(make_trabajo(autor, titulo="Programador Python", modo="remoto"))
    make_publicacion(make_trabajo(autor, titulo="Albañil", modo="presencial"))

    by_title = service.list(db, PublicacionFilters(busqueda="PYTHON"))
    assert [p.id for p in by_title["publicaciones"]] == [remoto.id]

    by_mode = service.list(db, PublicacionFilters(modo="remoto"))
    assert [p.id for p in by_mode["publicaciones"]] == [remoto.id]


def test_list_skips_postings_of_deleted_jobs(db, autor, make_trabajo, make_publicacion):
    trabajo = make_trabajo(autor)
    make_publicacion(trabajo)
    trabajo.deleted_at = datetime.utcnow()
    db.commit()

    assert service.list(db, PublicacionFilters())["total"] == 0


def test_list_mine_includes_every_state(db, autor, otro, make_trabajo, make_publicacion):
    trabajo = make_trabajo(autor)
    mine = {make_publicacion(trabajo, estado=estado).id for estado in ("borrador", "publicado", "archivado")}
    make_publicacion(make_trabajo(otro))

    result = service.list_mine(db, autor.id, PublicacionFilters())
    assert {p.id for p in result["publicaciones"]} == mine


def test_statistics_scope(db, autor, otro, make_trabajo, make_publicacion):
    trabajo = make_trabajo(autor)
    make_publicacion(trabajo, estado="publicado")
    make_publicacion(trabajo, estado="borrador")
    make_publicacion(make_trabajo(otro), estado="archivado")

    assert service.statistics(db, autor.id) == {
        "total": 2,
        "publicados": 1,
        "borradores": 1,
        "archivados": 0,
        "ultimas_24_horas": 2,
    }
    assert service.statistics(db)["total"] == 3


def test_verify_ownership(db, autor, otro, make_trabajo, make_publicacion):
    publicacion = make_publicacion(make_trabajo(autor))
    assert service.verify_ownership(db, publicacion.id, autor.id) is True
    assert service.verify_ownership(db, publicacion.id, otro.id) is False
