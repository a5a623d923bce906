from decimal import Decimal

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import func

from models import db
from models.client import Client
from models.estado_remito import EstadoRemito
from models.product import Product
from models.remito import Remito, RemitoItem
from routes.errors import api_error
from routes.guards import resolve_company_id
from routes.helpers import json_body, to_decimal, to_id
from services.estados import get_default_estado
from services.transform import transform_many, transform_remito

remitos_bp = Blueprint("remitos", __name__, url_prefix="/api/remitos")


def _next_number(company_id: int) -> int:
    last = (
        db.session.query(func.coalesce(func.max(Remito.number), 0))
        .filter(Remito.company_id == company_id)
        .scalar()
    )
    return int(last) + 1


def _get_remito(remito_id: int, company_id: int):
    return (
        db.session.query(Remito)
        .filter(Remito.id == remito_id, Remito.company_id == company_id)
        .first()
    )


def _client_for(company_id: int, value):
    if value in (None, ""):
        return None
    return (
        db.session.query(Client)
        .filter(Client.id == to_id(value), Client.company_id == company_id)
        .first()
    )


def _estado_for(company_id: int, value):
    if value in (None, ""):
        return None
    return (
        db.session.query(EstadoRemito)
        .filter(EstadoRemito.id == to_id(value), EstadoRemito.company_id == company_id)
        .first()
    )


def _clean_notes(notes):
    return (notes.strip() or None) if isinstance(notes, str) else None


def _build_items(company_id: int, items) -> list[RemitoItem]:
    """Valida las líneas y arma los RemitoItem (sin remito asignado).

    Lanza ValueError con el mensaje para el cliente.
    """
    if not isinstance(items, list) or not items:
        raise ValueError("Debe agregar al menos un producto.")

    built = []
    for it in items:
        if not isinstance(it, dict):
            raise ValueError("Item inválido.")

        product = None
        if it.get("productId") not in (None, ""):
            product = (
                db.session.query(Product)
                .filter(Product.id == to_id(it.get("productId")), Product.company_id == company_id)
                .first()
            )
            if not product:
                raise ValueError(f"Producto inválido (id={it.get('productId')}).")

        raw_name = it.get("productName")
        product_name = (raw_name.strip() if isinstance(raw_name, str) else "") or (product.name if product else "")
        if not product_name:
            raise ValueError("Nombre de producto requerido.")

        quantity = to_decimal(it.get("quantity"), "0.001")
        if quantity <= 0:
            raise ValueError("Cantidad debe ser mayor a 0.")
        unit_price = to_decimal(it.get("unitPrice"), "0.01")
        if unit_price < 0:
            raise ValueError("Precio unitario inválido.")

        if it.get("lineTotal") is not None:
            line_total = to_decimal(it.get("lineTotal"), "0.01")
        else:
            line_total = (quantity * unit_price).quantize(Decimal("0.01"))

        built.append(RemitoItem(
            product_id=product.id if product else None,
            quantity=quantity,
            unit_price=unit_price,
            line_total=line_total,
            product_name=product_name,
            product_desc=(
                it.get("productDesc") if isinstance(it.get("productDesc"), str)
                else (product.description if product else None)
            ),
        ))
    return built


@remitos_bp.get("")
@login_required
def remitos_list():
    company_id, err = resolve_company_id()
    if err:
        return err

    query = db.session.query(Remito).filter(Remito.company_id == company_id)

    status = request.args.get("status", type=int)
    if status:
        query = query.filter(Remito.status_id == status)

    remitos = query.order_by(Remito.number.desc()).all()
    return jsonify(transform_many(transform_remito, remitos))


@remitos_bp.get("/<int:remito_id>")
@login_required
def remitos_get(remito_id: int):
    company_id, err = resolve_company_id()
    if err:
        return err

    remito = _get_remito(remito_id, company_id)
    if not remito:
        return api_error(404, "Remito no encontrado", "El remito solicitado no existe.")
    return jsonify(transform_remito(remito))


@remitos_bp.post("")
@login_required
def remitos_create():
    """Alta de remito.

    Body: {clientId, notes?, status?, items: [{productId?, productName?, productDesc?,
    quantity, unitPrice, lineTotal?}]}
    """
    company_id, err = resolve_company_id()
    if err:
        return err

    data = json_body()

    items = data.get("items")
    if not isinstance(items, list) or not items:
        return api_error(400, "Datos inválidos", "Debe agregar al menos un producto.")

    client = _client_for(company_id, data.get("clientId"))
    if not client:
        return api_error(400, "Datos inválidos", "Cliente requerido.")

    if data.get("status") not in (None, ""):
        estado = _estado_for(company_id, data.get("status"))
        if not estado:
            return api_error(400, "Datos inválidos", "Estado inválido para esta empresa.")
    else:
        estado = get_default_estado(db.session, company_id=company_id)

    try:
        remito = Remito(
            company_id=company_id,
            number=_next_number(company_id),
            client_id=client.id,
            status_id=estado.id if estado else None,
            notes=_clean_notes(data.get("notes")),
            created_by_id=current_user.id,
        )
        remito.items = _build_items(company_id, items)
        db.session.add(remito)
        db.session.commit()

    except ValueError as e:
        db.session.rollback()
        return api_error(400, "Datos inválidos", str(e))

    current_app.logger.info("Remito #%s creado (empresa %s)", remito.number, company_id)
    return jsonify(transform_remito(remito)), 201


@remitos_bp.put("/<int:remito_id>")
@login_required
def remitos_update(remito_id: int):
    """Edición parcial: clientId, notes, status; items reemplaza todas las líneas."""
    company_id, err = resolve_company_id()
    if err:
        return err

    remito = _get_remito(remito_id, company_id)
    if not remito:
        return api_error(404, "Remito no encontrado", "El remito solicitado no existe.")

    data = json_body()

    if "clientId" in data:
        client = _client_for(company_id, data.get("clientId"))
        if not client:
            return api_error(400, "Datos inválidos", "Cliente requerido.")
        remito.client_id = client.id

    if "status" in data:
        estado = _estado_for(company_id, data.get("status"))
        if not estado:
            return api_error(400, "Datos inválidos", "Estado inválido para esta empresa.")
        remito.status_id = estado.id

    if "notes" in data:
        remito.notes = _clean_notes(data.get("notes"))

    try:
        if "items" in data:
            # delete-orphan borra las líneas anteriores
            remito.items = _build_items(company_id, data.get("items"))
        db.session.commit()
    except ValueError as e:
        db.session.rollback()
        return api_error(400, "Datos inválidos", str(e))

    return jsonify(transform_remito(remito))


@remitos_bp.put("/<int:remito_id>/status")
@login_required
def remitos_change_status(remito_id: int):
    company_id, err = resolve_company_id()
    if err:
        return err

    remito = _get_remito(remito_id, company_id)
    if not remito:
        return api_error(404, "Remito no encontrado", "El remito solicitado no existe.")

    estado = _estado_for(company_id, json_body().get("status"))
    if not estado:
        return api_error(400, "Datos inválidos", "Estado inválido para esta empresa.")

    remito.status_id = estado.id
    db.session.commit()

    current_app.logger.info("Remito #%s pasa a %s (empresa %s)", remito.number, estado.name, company_id)
    return jsonify(transform_remito(remito))


@remitos_bp.delete("/<int:remito_id>")
@login_required
def remitos_delete(remito_id: int):
    company_id, err = resolve_company_id()
    if err:
        return err

    remito = _get_remito(remito_id, company_id)
    if not remito:
        return api_error(404, "Remito no encontrado", "El remito solicitado no existe.")

    db.session.delete(remito)
    db.session.commit()
    return jsonify({"success": True, "message": "Remito eliminado correctamente"})
