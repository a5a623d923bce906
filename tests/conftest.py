from decimal import Decimal

import pytest
from sqlalchemy import event

from app import create_app
from config import TestConfig
from models import db
from models.category import Category
from models.client import Client
from models.company import Company
from models.estado_remito import EstadoRemito
from models.product import Product
from models.remito import Remito, RemitoItem
from models.user import Role, User

PASSWORD = "secreto123"


def _enable_sqlite_fk(dbapi_conn, _record):
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA foreign_keys=ON")
    cur.close()


@pytest.fixture
def app(request, tmp_path):
    class _Config(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"
        LOG_DIR = str(tmp_path / "logs")

    app = create_app(_Config)
    with app.app_context():
        # Con @pytest.mark.foreign_keys la base valida FKs como Postgres
        if request.node.get_closest_marker("foreign_keys"):
            event.listen(db.engine, "connect", _enable_sqlite_fk)
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


def make_user(app, email, role, company_id=None, password=PASSWORD, **kwargs) -> int:
    with app.app_context():
        user = User(email=email, name=email.split("@")[0], role=role, company_id=company_id, **kwargs)
        if password:
            user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user.id


def login(client, email, password=PASSWORD):
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.get_json()
    return client


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def superadmin_id(app):
    return make_user(app, "root@demo.com", Role.SUPERADMIN)


@pytest.fixture
def super_client(app, superadmin_id):
    return login(app.test_client(), "root@demo.com")


@pytest.fixture
def acme(app):
    """Empresa origen del escenario de ejemplo; devuelve los ids creados.

    Antes se crea otra empresa con datos, para que los ids de Acme no
    arranquen en 1 y no coincidan con los de la copia por casualidad.
    """
    with app.app_context():
        other = Company(name="Otra")
        db.session.add(other)
        db.session.flush()
        db.session.add_all([
            EstadoRemito(company_id=other.id, name="Abierto", sort_order=1, is_default=True),
            Category(company_id=other.id, name="Limpieza"),
            Client(company_id=other.id, name="Pedro"),
            Product(company_id=other.id, name="Lavandina", price=Decimal("3.50"), stock=5),
        ])

        company = Company(name="Acme")
        db.session.add(company)
        db.session.flush()

        pendiente = EstadoRemito(
            company_id=company.id, name="Pendiente", description="Esperando", color="#f59e0b",
            icon="⏰", is_active=True, is_default=True, sort_order=1,
        )
        entregado = EstadoRemito(
            company_id=company.id, name="Entregado", description="Listo", color="#3b82f6",
            icon="🚚", is_active=True, is_default=False, sort_order=2,
        )
        bebidas = Category(company_id=company.id, name="Bebidas", description="Sin alcohol")
        juan = Client(company_id=company.id, name="Juan", email="juan@example.com", phone="123", address="Calle 1")
        db.session.add_all([pendiente, entregado, bebidas, juan])
        db.session.flush()

        cola = Product(
            company_id=company.id, name="Cola", description="Cola 2L",
            price=Decimal("10.00"), stock=50, category_id=bebidas.id,
        )
        db.session.add(cola)

        admin = User(
            email="admin@acme.com", name="Admin Acme", role=Role.ADMIN, company_id=company.id,
            phone="555", address="Av. Siempreviva", has_temporary_password=False,
        )
        admin.set_password(PASSWORD)
        operador = User(email="user@acme.com", name="Operador", role=Role.USER, company_id=company.id)
        operador.set_password(PASSWORD)
        db.session.add_all([admin, operador])
        db.session.flush()

        remito = Remito(
            company_id=company.id, number=1, client_id=juan.id, status_id=pendiente.id,
            notes="Entregar por la mañana", created_by_id=admin.id,
        )
        db.session.add(remito)
        db.session.flush()
        db.session.add(RemitoItem(
            remito_id=remito.id, product_id=cola.id, quantity=Decimal("3"), unit_price=Decimal("10.00"),
            line_total=Decimal("30.00"), product_name="Cola", product_desc="Cola 2L",
        ))
        db.session.commit()

        return {
            "company": company.id,
            "other": other.id,
            "pendiente": pendiente.id,
            "entregado": entregado.id,
            "bebidas": bebidas.id,
            "cola": cola.id,
            "juan": juan.id,
            "remito": remito.id,
            "admin": admin.id,
        }


@pytest.fixture
def admin_client(app, acme):
    return login(app.test_client(), "admin@acme.com")


@pytest.fixture
def user_client(app, acme):
    return login(app.test_client(), "user@acme.com")
