import pytest
from pydantic import ValidationError

from app.errors import AppError
from app.schemas.trabajo import ContactoIn, TrabajoCreate, TrabajoFilters, TrabajoUpdate
from app.services.trabajos import TrabajoService


service = TrabajoService()
TELEFONO = ContactoIn(tipo="telefono", valor="+5355512345")


def _create(db, autor, **fields):
    return service.create(db, TrabajoCreate(titulo=fields.pop("titulo", "Cocinero en paladar"), **fields), autor)


def _status(exc_info) -> int:
    return exc_info.value.status_code


def test_publish_after_adding_contact(db, autor):
    trabajo = _create(db, autor)
    assert trabajo.estado == "borrador"

    with pytest.raises(AppError) as exc_info:
        service.publish(db, trabajo.id, autor)
    assert _status(exc_info) == 400
    assert exc_info.value.message.lower() == "no se puede publicar un trabajo sin contactos"
    assert service.get_by_id(db, trabajo.id, autor).estado == "borrador"

    service.add_contact(db, trabajo.id, TELEFONO, autor)
    assert service.publish(db, trabajo.id, autor).estado == "publicado"

    visible = service.get_by_id(db, trabajo.id, None)
    assert visible.id == trabajo.id
    assert [(c.tipo, c.valor) for c in visible.contactos] == [("telefono", "+5355512345")]


def test_create_published_without_contacts_is_rejected(db, autor):
    with pytest.raises(AppError) as exc_info:
        _create(db, autor, estado="publicado")
    assert _status(exc_info) == 400


def test_create_with_contacts_can_start_published(db, autor):
    trabajo = _create(db, autor, estado="publicado", contactos=[TELEFONO, ContactoIn(tipo="email", valor="rh@example.com")])
    assert trabajo.estado == "publicado"
    assert len(trabajo.contactos) == 2


def test_create_rejects_repeated_contacts(db, autor):
    with pytest.raises(AppError) as exc_info:
        _create(db, autor, contactos=[TELEFONO, TELEFONO])
    assert _status(exc_info) == 409


def test_update_to_published_checks_contacts(db, autor):
    trabajo = _create(db, autor)
    with pytest.raises(AppError) as exc_info:
        service.update(db, trabajo.id, TrabajoUpdate(estado="publicado"), autor)
    assert _status(exc_info) == 400

    service.add_contact(db, trabajo.id, TELEFONO, autor)
    updated = service.update(db, trabajo.id, TrabajoUpdate(estado="publicado", titulo="Chef principal"), autor)
    assert updated.estado == "publicado"
    assert updated.titulo == "Chef principal"


def test_published_job_cannot_go_back_to_draft(db, autor):
    trabajo = _create(db, autor, estado="publicado", contactos=[TELEFONO])
    with pytest.raises(AppError) as exc_info:
        service.update(db, trabajo.id, TrabajoUpdate(estado="borrador"), autor)
    assert _status(exc_info) == 400


def test_archived_job_can_be_published_again(db, autor):
    trabajo = _create(db, autor, estado="publicado", contactos=[TELEFONO])
    assert service.archive(db, trabajo.id, autor).estado == "archivado"
    assert service.publish(db, trabajo.id, autor).estado == "publicado"


def test_hidden_job_is_forbidden_to_strangers(db, autor, otro, admin):
    borrador = _create(db, autor)

    for actor in (otro, None):
        with pytest.raises(AppError) as exc_info:
            service.get_by_id(db, borrador.id, actor)
        assert _status(exc_info) == 403

    assert service.get_by_id(db, borrador.id, autor).id == borrador.id
    assert service.get_by_id(db, borrador.id, admin).id == borrador.id


def test_list_hides_unpublished_jobs_from_non_admins(db, autor, otro, admin):
    publicado = _create(db, autor, titulo="Mesero", estado="publicado", contactos=[TELEFONO])
    borrador = _create(db, autor, titulo="Bartender")
    archivado = _create(db, autor, titulo="Cajero", estado="publicado", contactos=[TELEFONO])
    service.archive(db, archivado.id, autor)

    for actor in (None, otro, autor):
        ids = {t.id for t in service.list(db, TrabajoFilters(estado="borrador"), actor=actor)["trabajos"]}
        assert ids == {publicado.id}

    admin_ids = {t.id for t in service.list(db, TrabajoFilters(), actor=admin)["trabajos"]}
    assert admin_ids == {publicado.id, borrador.id, archivado.id}


def test_list_paginates_and_echoes_filters(db, autor):
    for titulo in ("Chofer de camión", "Chofer de taxi", "Electricista"):
        _create(db, autor, titulo=titulo, estado="publicado", contactos=[TELEFONO])

    result = service.list(db, TrabajoFilters(search="chofer", sort_by="titulo:asc"), page=1, limit=1)
    assert [t.titulo for t in result["trabajos"]] == ["Chofer de camión"]
    assert result["pagination"] == {"total": 2, "page": 1, "limit": 1, "pages": 2}
    assert result["filters"] == {"search": "chofer", "sort_by": "titulo:asc"}


def test_list_rejects_unknown_sort_field(db):
    with pytest.raises(AppError) as exc_info:
        service.list(db, TrabajoFilters(sort_by="password_hash:asc"))
    assert _status(exc_info) == 400


@pytest.mark.parametrize(
    "operation",
    [
        lambda db, t, actor: service.update(db, t.id, TrabajoUpdate(titulo="Otro título"), actor),
        lambda db, t, actor: service.delete(db, t.id, actor),
        lambda db, t, actor: service.publish(db, t.id, actor),
        lambda db, t, actor: service.archive(db, t.id, actor),
        lambda db, t, actor: service.add_contact(db, t.id, ContactoIn(tipo="email", valor="x@example.com"), actor),
        lambda db, t, actor: service.remove_contact(db, t.id, "telefono", "+5355512345", actor),
    ],
)
def test_mutations_require_author_or_admin(db, autor, otro, admin, operation):
    trabajo = _create(db, autor, contactos=[TELEFONO])

    with pytest.raises(AppError) as exc_info:
        operation(db, trabajo, otro)
    assert _status(exc_info) == 403

    operation(db, trabajo, admin)


def test_duplicate_contact_is_a_conflict(db, autor):
    trabajo = _create(db, autor)
    service.add_contact(db, trabajo.id, TELEFONO, autor)

    with pytest.raises(AppError) as exc_info:
        service.add_contact(db, trabajo.id, TELEFONO, autor)
    assert _status(exc_info) == 409
    assert len(service.list_contacts(db, trabajo.id, autor)) == 1


def test_same_value_under_another_type_is_allowed(db, autor):
    trabajo = _create(db, autor)
    service.add_contact(db, trabajo.id, TELEFONO, autor)
    service.add_contact(db, trabajo.id, ContactoIn(tipo="whatsapp", valor="+5355512345"), autor)
    assert len(service.list_contacts(db, trabajo.id, autor)) == 2


@pytest.mark.parametrize(
    "tipo, valor",
    [
        ("fax", "+5355512345"),
        ("telefono", "55512345"),
        ("whatsapp", "+53"),
        ("email", "no-es-un-email"),
    ],
)
def test_contact_format_is_validated(db, autor, tipo, valor):
    trabajo = _create(db, autor)
    with pytest.raises(AppError) as exc_info:
        service.add_contact(db, trabajo.id, ContactoIn(tipo=tipo, valor=valor), autor)
    assert _status(exc_info) == 400


def test_remove_missing_contact_is_not_found(db, autor):
    trabajo = _create(db, autor)
    with pytest.raises(AppError) as exc_info:
        service.remove_contact(db, trabajo.id, "telefono", "+5355512345", autor)
    assert _status(exc_info) == 404


def test_update_contact_replaces_value(db, autor):
    trabajo = _create(db, autor, contactos=[TELEFONO])
    service.update_contact(db, trabajo.id, "telefono", "+5355512345", "+5355599999", autor)
    assert [c.valor for c in service.list_contacts(db, trabajo.id, autor)] == ["+5355599999"]


def test_soft_deleted_job_is_hidden_but_kept(db, autor, admin):
    trabajo = _create(db, autor, estado="publicado", contactos=[TELEFONO])
    service.delete(db, trabajo.id, autor)

    with pytest.raises(AppError) as exc_info:
        service.get_by_id(db, trabajo.id, autor)
    assert _status(exc_info) == 404
    assert service.get_by_id(db, trabajo.id, admin).deleted_at is not None
    assert service.list(db, TrabajoFilters(), actor=None)["trabajos"] == []


def test_statistics_are_admin_only(db, autor, admin):
    _create(db, autor, estado="publicado", contactos=[TELEFONO], jornada="tiempo_parcial")
    _create(db, autor, modo="remoto")

    with pytest.raises(AppError) as exc_info:
        service.statistics(db, autor)
    assert _status(exc_info) == 403

    stats = service.statistics(db, admin)
    assert stats["total"] == 2
    assert stats["por_estado"] == {"borrador": 1, "publicado": 1}
    assert stats["por_jornada"] == {"tiempo_completo": 1, "tiempo_parcial": 1}
    assert stats["por_modo"] == {"presencial": 1, "remoto": 1}
    assert stats["trabajos_este_mes"] == 1


@pytest.mark.parametrize("field", ["titulo", "jornada", "modo"])
def test_update_rejects_null_for_required_fields(field):
    with pytest.raises(ValidationError):
        TrabajoUpdate(**{field: None})


def test_update_may_clear_optional_fields(db, autor):
    trabajo = _create(db, autor, descripcion="Turno de noche", salario_min=10)
    updated = service.update(db, trabajo.id, TrabajoUpdate(descripcion=None, salario_min=None), autor)
    assert updated.descripcion is None
    assert updated.salario_min is None
    assert updated.titulo == "Cocinero en paladar"


def test_partial_salary_update_is_checked_against_stored_range(db, autor):
    trabajo = _create(db, autor, salario_min=10, salario_max=100)

    with pytest.raises(AppError) as exc_info:
        service.update(db, trabajo.id, TrabajoUpdate(salario_min=500), autor)
    assert _status(exc_info) == 400
    with pytest.raises(AppError):
        service.update(db, trabajo.id, TrabajoUpdate(salario_max=5), autor)

    stored = service.get_by_id(db, trabajo.id, autor)
    assert (stored.salario_min, stored.salario_max) == (10, 100)
    assert service.update(db, trabajo.id, TrabajoUpdate(salario_max=None, salario_min=500), autor).salario_min == 500


def test_contact_statistics_count_by_type(db, autor):
    whatsapp = ContactoIn(tipo="whatsapp", valor="+5355511111")
    _create(db, autor, contactos=[TELEFONO, whatsapp])
    _create(db, autor, contactos=[TELEFONO, ContactoIn(tipo="email", valor="rrhh@example.com")])
    borrado = _create(db, autor, contactos=[whatsapp])
    service.delete(db, borrado.id, autor)

    stats = service.contact_statistics(db)
    assert stats["total"] == 4
    assert stats["por_tipo"] == [
        {"tipo": "telefono", "total": 2},
        {"tipo": "email", "total": 1},
        {"tipo": "whatsapp", "total": 1},
    ]
