from decimal import Decimal

import pytest

import services.company_clone as company_clone
from models import db
from models.category import Category
from models.client import Client
from models.company import Company
from models.estado_remito import EstadoRemito
from models.product import Product
from models.remito import Remito, RemitoItem
from models.user import User

ALL_FLAGS = dict(estados=True, categorias=True, productos=True, clientes=True, remitos=True, usuarios=True)
NO_FLAGS = dict(estados=False, categorias=False, productos=False, clientes=False, remitos=False, usuarios=False)


def _duplicate(client, company_id, name, **flags):
    body = {**NO_FLAGS, **flags, "name": name}
    return client.post(f"/api/companies/{company_id}/duplicate", json=body)


def _by_company(model, company_id):
    return db.session.query(model).filter(model.company_id == company_id).order_by(model.id).all()


def _company_count():
    return db.session.query(Company).count()


def test_example_scenario_full_copy(app, super_client, superadmin_id, acme):
    resp = _duplicate(super_client, acme["company"], "Acme Copy", **{**ALL_FLAGS, "usuarios": False})
    assert resp.status_code == 201
    data = resp.get_json()
    assert data["name"] == "Acme Copy"
    assert data["id"] != acme["company"]
    assert data["createdAt"] and data["updatedAt"]

    new_id = data["id"]
    with app.app_context():
        estados = _by_company(EstadoRemito, new_id)
        assert sorted(e.name for e in estados) == ["Entregado", "Pendiente"]
        pendiente = next(e for e in estados if e.name == "Pendiente")

        categories = _by_company(Category, new_id)
        assert [c.name for c in categories] == ["Bebidas"]

        products = _by_company(Product, new_id)
        assert [p.name for p in products] == ["Cola"]
        assert products[0].category_id == categories[0].id
        assert products[0].price == Decimal("10.00")
        assert products[0].stock == 50

        clients = _by_company(Client, new_id)
        assert [c.name for c in clients] == ["Juan"]
        assert clients[0].address == "Calle 1"

        remitos = _by_company(Remito, new_id)
        assert len(remitos) == 1
        remito = remitos[0]
        assert remito.number == 1
        assert remito.client_id == clients[0].id
        assert remito.status_id == pendiente.id
        assert remito.notes == "Entregar por la mañana"
        assert remito.created_by_id == superadmin_id

        assert len(remito.items) == 1
        item = remito.items[0]
        assert item.product_id == products[0].id
        assert item.quantity == Decimal("3")
        assert item.line_total == Decimal("30.00")
        assert item.product_name == "Cola"
        assert item.product_desc == "Cola 2L"

        # usuarios=False
        assert _by_company(User, new_id) == []

        # el origen queda intacto
        assert len(_by_company(Remito, acme["company"])) == 1
        assert len(_by_company(EstadoRemito, acme["company"])) == 2


def test_full_clone_never_points_to_source_ids(app, super_client, acme):
    resp = _duplicate(super_client, acme["company"], "Acme Full", **ALL_FLAGS)
    assert resp.status_code == 201
    new_id = resp.get_json()["id"]

    with app.app_context():
        new_categories = {c.id for c in _by_company(Category, new_id)}
        new_products = {p.id for p in _by_company(Product, new_id)}
        new_clients = {c.id for c in _by_company(Client, new_id)}
        new_estados = {e.id for e in _by_company(EstadoRemito, new_id)}
        new_remitos = _by_company(Remito, new_id)

        for p in _by_company(Product, new_id):
            assert p.category_id in new_categories
        for r in new_remitos:
            assert r.client_id in new_clients
            assert r.status_id in new_estados
            for it in r.items:
                assert it.product_id in new_products
                assert it.remito_id == r.id

        items = (
            db.session.query(RemitoItem)
            .filter(RemitoItem.remito_id.in_([r.id for r in new_remitos]))
            .all()
        )
        assert len(items) == 1


def test_existing_name_is_rejected_and_creates_nothing(app, super_client, acme):
    with app.app_context():
        before = _company_count()

    for name in ("Acme", "Otra", "  Otra  "):
        resp = _duplicate(super_client, acme["company"], name, **ALL_FLAGS)
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "Empresa duplicada"
        assert body["message"]

    with app.app_context():
        assert _company_count() == before
        assert len(_by_company(EstadoRemito, acme["company"])) == 2


def test_name_check_is_case_sensitive(app, super_client, acme):
    resp = _duplicate(super_client, acme["company"], "ACME")
    assert resp.status_code == 201
    assert resp.get_json()["name"] == "ACME"


def test_name_is_trimmed(app, super_client, acme):
    resp = _duplicate(super_client, acme["company"], "  Acme Dos  ")
    assert resp.status_code == 201
    assert resp.get_json()["name"] == "Acme Dos"


@pytest.mark.parametrize("name", [None, "", "   ", 42])
def test_blank_name_is_rejected(app, super_client, acme, name):
    with app.app_context():
        before = _company_count()

    resp = super_client.post(f"/api/companies/{acme['company']}/duplicate", json={"name": name, **ALL_FLAGS})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Nombre requerido"

    with app.app_context():
        assert _company_count() == before


def test_unknown_source_company_is_404(app, super_client, acme):
    resp = _duplicate(super_client, 99999, "Nueva")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Empresa no encontrada"
    with app.app_context():
        assert db.session.query(Company).filter_by(name="Nueva").first() is None


def test_requires_session(client, acme):
    resp = _duplicate(client, acme["company"], "Sin sesion", **ALL_FLAGS)
    assert resp.status_code == 401
    assert set(resp.get_json()) == {"error", "message"}


@pytest.mark.parametrize("fixture_name", ["admin_client", "user_client"])
def test_only_superadmin_can_duplicate(app, request, acme, fixture_name):
    http = request.getfixturevalue(fixture_name)
    with app.app_context():
        before = _company_count()

    resp = _duplicate(http, acme["company"], "Intento", **ALL_FLAGS)
    assert resp.status_code == 403
    assert resp.get_json()["error"] == "No autorizado"

    # tampoco con un body inválido: el rol se valida antes que nada
    resp = http.post(f"/api/companies/{acme['company']}/duplicate", json={})
    assert resp.status_code == 403

    with app.app_context():
        assert _company_count() == before


def test_default_estados_seeded_when_not_cloned(app, super_client, acme):
    resp = _duplicate(super_client, acme["company"], "Acme Defaults")
    assert resp.status_code == 201
    new_id = resp.get_json()["id"]

    with app.app_context():
        estados = (
            db.session.query(EstadoRemito)
            .filter(EstadoRemito.company_id == new_id)
            .order_by(EstadoRemito.sort_order)
            .all()
        )
        assert [e.name for e in estados] == ["Pendiente", "Preparado", "Entregado", "Cancelado"]
        assert [e.sort_order for e in estados] == [1, 2, 3, 4]
        assert [e.name for e in estados if e.is_default] == ["Pendiente"]
        assert estados[3].color == "#ef4444"


def test_estados_cloned_with_same_attributes(app, super_client, acme):
    resp = _duplicate(super_client, acme["company"], "Acme Estados", estados=True)
    new_id = resp.get_json()["id"]

    def _fields(rows):
        return sorted(
            (e.name, e.description, e.color, e.icon, e.is_active, e.is_default, e.sort_order) for e in rows
        )

    with app.app_context():
        source = _by_company(EstadoRemito, acme["company"])
        copied = _by_company(EstadoRemito, new_id)
        assert len(copied) == len(source) == 2
        assert _fields(copied) == _fields(source)
        assert not {e.id for e in copied} & {e.id for e in source}


def test_remito_status_remapped_by_name_against_default_estados(app, super_client, acme):
    # Sin copiar estados, "Pendiente" igual existe entre los estados por defecto
    resp = _duplicate(super_client, acme["company"], "Acme Remitos", remitos=True)
    new_id = resp.get_json()["id"]

    with app.app_context():
        pendiente = (
            db.session.query(EstadoRemito)
            .filter(EstadoRemito.company_id == new_id, EstadoRemito.name == "Pendiente")
            .one()
        )
        remito = _by_company(Remito, new_id)[0]
        assert remito.status_id == pendiente.id
        assert remito.status_id != acme["pendiente"]


def test_remito_status_without_match_keeps_original(app, super_client, acme):
    with app.app_context():
        custom = EstadoRemito(company_id=acme["company"], name="En ruta", sort_order=5)
        db.session.add(custom)
        db.session.flush()
        custom_id = custom.id
        db.session.query(Remito).filter(Remito.id == acme["remito"]).update({"status_id": custom_id})
        db.session.commit()

    resp = _duplicate(super_client, acme["company"], "Acme Sin Match", remitos=True)
    new_id = resp.get_json()["id"]

    with app.app_context():
        assert _by_company(Remito, new_id)[0].status_id == custom_id


def test_cloned_users_have_no_password(app, super_client, acme):
    resp = _duplicate(super_client, acme["company"], "Acme Users", usuarios=True)
    new_id = resp.get_json()["id"]

    with app.app_context():
        users = _by_company(User, new_id)
        assert sorted(u.email for u in users) == ["admin@acme.com", "user@acme.com"]
        for u in users:
            assert u.password_hash is None
            assert u.has_temporary_password is True

        admin = next(u for u in users if u.email == "admin@acme.com")
        assert admin.role == "ADMIN"
        assert admin.phone == "555"
        assert admin.address == "Av. Siempreviva"

    # el usuario copiado no puede ingresar; el original sí
    resp = super_client.application.test_client().post(
        "/api/auth/login", json={"email": "admin@acme.com", "password": "secreto123"}
    )
    assert resp.status_code == 200
    assert resp.get_json()["companyId"] == acme["company"]


def test_products_without_categories_keep_source_category_id(app, super_client, acme):
    resp = _duplicate(super_client, acme["company"], "Acme Productos", productos=True)
    new_id = resp.get_json()["id"]

    with app.app_context():
        products = _by_company(Product, new_id)
        assert [p.category_id for p in products] == [acme["bebidas"]]
        assert _by_company(Category, new_id) == []


def test_remitos_without_clients_or_products_keep_source_ids(app, super_client, acme):
    resp = _duplicate(super_client, acme["company"], "Acme Solo Remitos", estados=True, remitos=True)
    new_id = resp.get_json()["id"]

    with app.app_context():
        remito = _by_company(Remito, new_id)[0]
        assert remito.client_id == acme["juan"]
        assert remito.items[0].product_id == acme["cola"]
        assert remito.items[0].product_name == "Cola"


def test_foreign_references_nulled_when_disabled(app, super_client, acme):
    app.config["CLONE_KEEP_FOREIGN_REFERENCES"] = False

    resp = _duplicate(super_client, acme["company"], "Acme Aislada", productos=True, remitos=True)
    assert resp.status_code == 201
    new_id = resp.get_json()["id"]

    with app.app_context():
        assert [p.category_id for p in _by_company(Product, new_id)] == [None]
        remito = _by_company(Remito, new_id)[0]
        assert remito.client_id is None
        assert remito.items[0].product_id is None
        # el estado sí se resuelve por nombre contra los estados por defecto
        assert remito.status_id is not None


def test_failure_midway_rolls_back_everything(app, super_client, acme, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("falla simulada")

    monkeypatch.setattr(company_clone, "_clone_users", _boom)

    with app.app_context():
        before = {m: db.session.query(m).count() for m in (Company, EstadoRemito, Category, Product, Client, Remito, RemitoItem, User)}

    resp = _duplicate(super_client, acme["company"], "Acme Rota", **ALL_FLAGS)
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["error"] == "Error interno del servidor"
    assert "falla simulada" not in body["message"]

    with app.app_context():
        assert db.session.query(Company).filter_by(name="Acme Rota").first() is None
        after = {m: db.session.query(m).count() for m in before}
        assert after == before

    # se puede reintentar con el mismo nombre
    monkeypatch.undo()
    resp = _duplicate(super_client, acme["company"], "Acme Rota", **ALL_FLAGS)
    assert resp.status_code == 201


def test_duplicate_of_empty_company(app, super_client):
    with app.app_context():
        empty = Company(name="Vacia")
        db.session.add(empty)
        db.session.commit()
        empty_id = empty.id

    resp = _duplicate(super_client, empty_id, "Vacia Copia", **ALL_FLAGS)
    assert resp.status_code == 201
    new_id = resp.get_json()["id"]
    with app.app_context():
        for model in (EstadoRemito, Category, Product, Client, Remito, User):
            assert _by_company(model, new_id) == []


def test_non_boolean_flags_are_ignored(app, super_client, acme):
    resp = super_client.post(
        f"/api/companies/{acme['company']}/duplicate",
        json={"name": "Acme Flags", "categorias": "true", "clientes": 1},
    )
    assert resp.status_code == 201
    new_id = resp.get_json()["id"]
    with app.app_context():
        assert _by_company(Category, new_id) == []
        assert _by_company(Client, new_id) == []
