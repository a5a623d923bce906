from flask import Blueprint, jsonify, request
from flask_login import login_required

from models import db
from models.category import Category
from models.client import Client
from models.estado_remito import EstadoRemito
from models.product import Product
from models.remito import Remito
from models.user import Role
from routes.errors import api_error
from routes.guards import require_roles, resolve_company_id
from routes.helpers import clean_str, json_body, opt_str, to_id, to_int, to_price
from services.references import release_references
from services.transform import (
    transform_category,
    transform_client,
    transform_estado,
    transform_many,
    transform_product,
)

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


# -------------------------
# Helpers
# -------------------------
def _scoped(model, row_id: int, company_id: int):
    return (
        db.session.query(model)
        .filter(model.id == row_id, model.company_id == company_id)
        .first()
    )


def _category_for(company_id: int, value):
    """(category_id, error). Un id vacío deja el producto sin categoría."""
    if value in (None, ""):
        return None, None
    category = _scoped(Category, to_id(value), company_id)
    if not category:
        return None, api_error(400, "Datos inválidos", "Categoría inválida para esta empresa.")
    return category.id, None


# =========================
# ESTADOS DE REMITO
# =========================
@catalog_bp.get("/estados-remitos")
@login_required
def estados_list():
    company_id, err = resolve_company_id()
    if err:
        return err

    estados = (
        db.session.query(EstadoRemito)
        .filter(EstadoRemito.company_id == company_id)
        .order_by(EstadoRemito.sort_order.asc(), EstadoRemito.name.asc())
        .all()
    )
    return jsonify(transform_many(transform_estado, estados))


@catalog_bp.post("/estados-remitos")
@login_required
@require_roles(Role.ADMIN, Role.SUPERADMIN)
def estados_create():
    company_id, err = resolve_company_id()
    if err:
        return err

    data = json_body()
    name = clean_str(data.get("name"))
    if not name:
        return api_error(400, "Datos faltantes", "El nombre del estado es requerido.")

    exists = (
        db.session.query(EstadoRemito.id)
        .filter(EstadoRemito.company_id == company_id, EstadoRemito.name == name)
        .first()
    )
    if exists:
        return api_error(400, "Estado duplicado", "Ya existe un estado con ese nombre en la empresa.")

    estado = EstadoRemito(
        company_id=company_id,
        name=name,
        description=opt_str(data.get("description")),
        color=clean_str(data.get("color")) or "#6b7280",
        icon=clean_str(data.get("icon")) or "📋",
        is_active=data.get("is_active", True) is not False,
        # Los estados creados por el usuario nunca son el predeterminado
        is_default=False,
        sort_order=to_int(data.get("sort_order"), 0),
    )
    db.session.add(estado)
    db.session.commit()
    return jsonify(transform_estado(estado)), 201


@catalog_bp.put("/estados-remitos/<int:estado_id>")
@login_required
@require_roles(Role.ADMIN, Role.SUPERADMIN)
def estados_update(estado_id: int):
    """Edición parcial. is_default=true desmarca al resto de la empresa."""
    company_id, err = resolve_company_id()
    if err:
        return err

    estado = _scoped(EstadoRemito, estado_id, company_id)
    if not estado:
        return api_error(404, "Estado no encontrado", "El estado de remito no existe.")

    data = json_body()
    if "name" in data:
        name = clean_str(data.get("name"))
        if not name:
            return api_error(400, "Datos faltantes", "El nombre del estado es requerido.")
        dup = (
            db.session.query(EstadoRemito.id)
            .filter(
                EstadoRemito.company_id == company_id,
                EstadoRemito.name == name,
                EstadoRemito.id != estado.id,
            )
            .first()
        )
        if dup:
            return api_error(400, "Estado duplicado", "Ya existe un estado con ese nombre en la empresa.")
        estado.name = name

    if "description" in data:
        estado.description = opt_str(data.get("description"))
    if "color" in data:
        estado.color = clean_str(data.get("color")) or estado.color
    if "icon" in data:
        estado.icon = clean_str(data.get("icon")) or estado.icon
    if "is_active" in data:
        estado.is_active = data.get("is_active") is not False
    if "sort_order" in data:
        estado.sort_order = to_int(data.get("sort_order"), estado.sort_order)

    if data.get("is_default") is True:
        (
            db.session.query(EstadoRemito)
            .filter(EstadoRemito.company_id == company_id, EstadoRemito.id != estado.id)
            .update({EstadoRemito.is_default: False}, synchronize_session=False)
        )
        estado.is_default = True
    elif data.get("is_default") is False:
        estado.is_default = False

    db.session.commit()
    return jsonify(transform_estado(estado))


@catalog_bp.delete("/estados-remitos/<int:estado_id>")
@login_required
@require_roles(Role.ADMIN, Role.SUPERADMIN)
def estados_delete(estado_id: int):
    company_id, err = resolve_company_id()
    if err:
        return err

    estado = _scoped(EstadoRemito, estado_id, company_id)
    if not estado:
        return api_error(404, "Estado no encontrado", "El estado de remito no existe.")

    in_use = (
        db.session.query(Remito.id)
        .filter(Remito.company_id == company_id, Remito.status_id == estado.id)
        .first()
    )
    if in_use:
        return api_error(
            400, "Estado en uso", "No se puede eliminar el estado porque hay remitos que lo están usando."
        )

    release_references(db.session, estados=[estado.id])
    db.session.delete(estado)
    db.session.commit()
    return jsonify({"success": True, "message": "Estado de remito eliminado correctamente."})


# =========================
# CATEGORÍAS
# =========================
@catalog_bp.get("/categories")
@login_required
def categories_list():
    company_id, err = resolve_company_id()
    if err:
        return err

    categories = (
        db.session.query(Category)
        .filter(Category.company_id == company_id)
        .order_by(Category.name.asc())
        .all()
    )
    return jsonify(transform_many(transform_category, categories))


@catalog_bp.post("/categories")
@login_required
def categories_create():
    company_id, err = resolve_company_id()
    if err:
        return err

    data = json_body()
    name = clean_str(data.get("name"))
    if not name:
        return api_error(400, "Datos inválidos", "Nombre de categoría requerido.")

    c = Category(company_id=company_id, name=name, description=opt_str(data.get("description")))
    db.session.add(c)
    db.session.commit()
    return jsonify(transform_category(c)), 201


@catalog_bp.put("/categories/<int:category_id>")
@login_required
def categories_update(category_id: int):
    company_id, err = resolve_company_id()
    if err:
        return err

    c = _scoped(Category, category_id, company_id)
    if not c:
        return api_error(404, "Categoría no encontrada", "La categoría solicitada no existe.")

    data = json_body()
    if "name" in data:
        name = clean_str(data.get("name"))
        if not name:
            return api_error(400, "Datos inválidos", "Nombre de categoría requerido.")
        c.name = name
    if "description" in data:
        c.description = opt_str(data.get("description"))

    db.session.commit()
    return jsonify(transform_category(c))


@catalog_bp.delete("/categories/<int:category_id>")
@login_required
def categories_delete(category_id: int):
    """Los productos de la categoría quedan sin categoría."""
    company_id, err = resolve_company_id()
    if err:
        return err

    c = _scoped(Category, category_id, company_id)
    if not c:
        return api_error(404, "Categoría no encontrada", "La categoría solicitada no existe.")

    release_references(db.session, categories=[c.id])
    db.session.delete(c)
    db.session.commit()
    return jsonify({"success": True, "message": "Categoría eliminada correctamente"})


# =========================
# PRODUCTOS
# =========================
@catalog_bp.get("/products")
@login_required
def products_list():
    company_id, err = resolve_company_id()
    if err:
        return err

    q = (request.args.get("q") or "").strip()
    query = db.session.query(Product).filter(Product.company_id == company_id)
    if q:
        query = query.filter(Product.name.ilike(f"%{q}%"))

    products = query.order_by(Product.name.asc()).all()
    return jsonify(transform_many(transform_product, products))


@catalog_bp.post("/products")
@login_required
def products_create():
    company_id, err = resolve_company_id()
    if err:
        return err

    data = json_body()
    name = clean_str(data.get("name"))
    if not name:
        return api_error(400, "Datos inválidos", "Nombre de producto requerido.")

    price = to_price(data.get("price"))
    if price is None:
        return api_error(400, "Datos inválidos", "Precio inválido.")

    category_id, err = _category_for(company_id, data.get("categoryId"))
    if err:
        return err

    p = Product(
        company_id=company_id,
        name=name,
        description=opt_str(data.get("description")),
        price=price,
        stock=max(to_int(data.get("stock"), 0), 0),
        category_id=category_id,
    )
    db.session.add(p)
    db.session.commit()
    return jsonify(transform_product(p)), 201


@catalog_bp.put("/products/<int:product_id>")
@login_required
def products_update(product_id: int):
    company_id, err = resolve_company_id()
    if err:
        return err

    p = _scoped(Product, product_id, company_id)
    if not p:
        return api_error(404, "Producto no encontrado", "El producto solicitado no existe.")

    data = json_body()
    if "name" in data:
        name = clean_str(data.get("name"))
        if not name:
            return api_error(400, "Datos inválidos", "Nombre de producto requerido.")
        p.name = name

    if "price" in data:
        price = to_price(data.get("price"))
        if price is None:
            return api_error(400, "Datos inválidos", "Precio inválido.")
        p.price = price

    if "categoryId" in data:
        category_id, err = _category_for(company_id, data.get("categoryId"))
        if err:
            return err
        p.category_id = category_id

    if "description" in data:
        p.description = opt_str(data.get("description"))
    if "stock" in data:
        p.stock = max(to_int(data.get("stock"), p.stock), 0)

    db.session.commit()
    return jsonify(transform_product(p))


@catalog_bp.delete("/products/<int:product_id>")
@login_required
def products_delete(product_id: int):
    """Los remitos conservan nombre y descripción del producto en cada línea."""
    company_id, err = resolve_company_id()
    if err:
        return err

    p = _scoped(Product, product_id, company_id)
    if not p:
        return api_error(404, "Producto no encontrado", "El producto solicitado no existe.")

    release_references(db.session, products=[p.id])
    db.session.delete(p)
    db.session.commit()
    return jsonify({"success": True, "message": "Producto eliminado correctamente"})


# =========================
# CLIENTES
# =========================
@catalog_bp.get("/clients")
@login_required
def clients_list():
    company_id, err = resolve_company_id()
    if err:
        return err

    q = (request.args.get("q") or "").strip()
    query = db.session.query(Client).filter(Client.company_id == company_id)
    if q:
        query = query.filter(Client.name.ilike(f"%{q}%"))

    clients = query.order_by(Client.name.asc()).all()
    return jsonify(transform_many(transform_client, clients))


@catalog_bp.post("/clients")
@login_required
def clients_create():
    company_id, err = resolve_company_id()
    if err:
        return err

    data = json_body()
    name = clean_str(data.get("name"))
    if not name:
        return api_error(400, "Datos inválidos", "Nombre de cliente requerido.")

    email = clean_str(data.get("email")).lower() or None
    if email and "@" not in email:
        return api_error(400, "Datos inválidos", "Email inválido.")

    c = Client(
        company_id=company_id,
        name=name,
        email=email,
        phone=opt_str(data.get("phone")),
        address=opt_str(data.get("address")),
    )
    db.session.add(c)
    db.session.commit()
    return jsonify(transform_client(c)), 201


@catalog_bp.put("/clients/<int:client_id>")
@login_required
def clients_update(client_id: int):
    company_id, err = resolve_company_id()
    if err:
        return err

    c = _scoped(Client, client_id, company_id)
    if not c:
        return api_error(404, "Cliente no encontrado", "El cliente solicitado no existe.")

    data = json_body()
    if "name" in data:
        name = clean_str(data.get("name"))
        if not name:
            return api_error(400, "Datos inválidos", "Nombre de cliente requerido.")
        c.name = name

    if "email" in data:
        email = clean_str(data.get("email")).lower() or None
        if email and "@" not in email:
            return api_error(400, "Datos inválidos", "Email inválido.")
        c.email = email

    for field in ("phone", "address"):
        if field in data:
            setattr(c, field, opt_str(data.get(field)))

    db.session.commit()
    return jsonify(transform_client(c))


@catalog_bp.delete("/clients/<int:client_id>")
@login_required
def clients_delete(client_id: int):
    company_id, err = resolve_company_id()
    if err:
        return err

    c = _scoped(Client, client_id, company_id)
    if not c:
        return api_error(404, "Cliente no encontrado", "El cliente solicitado no existe.")

    in_use = (
        db.session.query(Remito.id)
        .filter(Remito.company_id == company_id, Remito.client_id == c.id)
        .first()
    )
    if in_use:
        return api_error(400, "Cliente en uso", "No se puede eliminar el cliente porque tiene remitos.")

    release_references(db.session, clients=[c.id])
    db.session.delete(c)
    db.session.commit()
    return jsonify({"success": True, "message": "Cliente eliminado correctamente"})
