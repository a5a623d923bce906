"""Conversión de modelos a dicts JSON para la API (claves camelCase)."""
from datetime import datetime
from decimal import Decimal


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def _num(v) -> float:
    """Safe decimal/numeric -> float."""
    if v is None:
        return 0.0
    return float(Decimal(str(v)))


def transform_company(company) -> dict | None:
    if company is None:
        return None
    return {
        "id": company.id,
        "name": company.name,
        "createdAt": _iso(company.created_at),
        "updatedAt": _iso(company.updated_at),
    }


def transform_estado(estado) -> dict | None:
    if estado is None:
        return None
    return {
        "id": estado.id,
        "companyId": estado.company_id,
        "name": estado.name,
        "description": estado.description,
        "color": estado.color,
        "icon": estado.icon,
        "isActive": estado.is_active,
        "isDefault": estado.is_default,
        "sortOrder": estado.sort_order,
        "createdAt": _iso(estado.created_at),
        "updatedAt": _iso(estado.updated_at),
    }


def transform_category(category) -> dict | None:
    if category is None:
        return None
    return {
        "id": category.id,
        "companyId": category.company_id,
        "name": category.name,
        "description": category.description,
        "createdAt": _iso(category.created_at),
        "updatedAt": _iso(category.updated_at),
    }


def transform_product(product) -> dict | None:
    if product is None:
        return None
    return {
        "id": product.id,
        "companyId": product.company_id,
        "name": product.name,
        "description": product.description,
        "price": _num(product.price),
        "stock": product.stock,
        "categoryId": product.category_id,
        "createdAt": _iso(product.created_at),
        "updatedAt": _iso(product.updated_at),
    }


def transform_client(client) -> dict | None:
    if client is None:
        return None
    return {
        "id": client.id,
        "companyId": client.company_id,
        "name": client.name,
        "email": client.email,
        "phone": client.phone,
        "address": client.address,
        "createdAt": _iso(client.created_at),
        "updatedAt": _iso(client.updated_at),
    }


def transform_remito_item(item) -> dict:
    return {
        "id": item.id,
        "remitoId": item.remito_id,
        "productId": item.product_id,
        "quantity": _num(item.quantity),
        "unitPrice": _num(item.unit_price),
        "lineTotal": _num(item.line_total),
        "productName": item.product_name,
        "productDesc": item.product_desc,
    }


def transform_remito(remito) -> dict | None:
    if remito is None:
        return None
    items = [transform_remito_item(it) for it in remito.items]
    return {
        "id": remito.id,
        "companyId": remito.company_id,
        "number": remito.number,
        "clientId": remito.client_id,
        "client": transform_client(remito.client),
        "status": remito.status_id,
        "estado": transform_estado(remito.estado),
        "notes": remito.notes,
        "createdById": remito.created_by_id,
        "items": items,
        "total": _num(remito.total),
        "createdAt": _iso(remito.created_at),
        "updatedAt": _iso(remito.updated_at),
    }


def transform_user(user) -> dict | None:
    # Nunca exponer password_hash
    if user is None:
        return None
    return {
        "id": user.id,
        "companyId": user.company_id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "phone": user.phone,
        "address": user.address,
        "hasTemporaryPassword": user.has_temporary_password,
        "isActive": user.is_active,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def transform_many(fn, rows) -> list:
    return [d for d in (fn(r) for r in rows) if d is not None]
