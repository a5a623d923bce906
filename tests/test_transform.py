from datetime import datetime
from decimal import Decimal

from models.company import Company
from models.remito import Remito, RemitoItem
from models.user import User
from services.transform import transform_company, transform_many, transform_remito, transform_user


def test_transform_company_shape():
    ts = datetime(2024, 1, 2, 3, 4, 5)
    c = Company(id=7, name="Acme", created_at=ts, updated_at=ts)
    assert transform_company(c) == {
        "id": 7,
        "name": "Acme",
        "createdAt": "2024-01-02T03:04:05",
        "updatedAt": "2024-01-02T03:04:05",
    }
    assert transform_company(None) is None


def test_transform_user_hides_password():
    u = User(id=1, name="Ana", email="ana@x.com", role="USER", password_hash="hash", has_temporary_password=True)
    data = transform_user(u)
    assert "password_hash" not in data and "password" not in data
    assert data["hasTemporaryPassword"] is True


def test_transform_remito_total_sums_line_totals():
    r = Remito(id=1, company_id=1, number=3)
    r.items = [
        RemitoItem(quantity=Decimal("2"), unit_price=Decimal("1.25"), line_total=Decimal("2.50"), product_name="A"),
        RemitoItem(quantity=Decimal("1"), unit_price=Decimal("3"), line_total=Decimal("3.00"), product_name="B"),
    ]
    data = transform_remito(r)
    assert data["total"] == 5.5
    assert [it["productName"] for it in data["items"]] == ["A", "B"]
    assert data["client"] is None and data["estado"] is None


def test_transform_many_skips_none():
    assert transform_many(transform_company, [None]) == []
