"""Limpieza de FKs antes de borrar filas de catálogo.

Una empresa duplicada sin alguna de sus dependencias puede seguir apuntando
a categorías, clientes, productos o estados de la empresa origen. Antes de
borrar esas filas se ponen en NULL las referencias que quedan colgando, para
que el borrado no falle en motores que validan claves foráneas.
"""
from typing import Iterable

from sqlalchemy.orm import Session

from models.product import Product
from models.remito import Remito, RemitoItem


def _null_out(db: Session, column, ids: list[int]) -> int:
    if not ids:
        return 0
    return (
        db.query(column.class_)
        .filter(column.in_(ids))
        .update({column: None}, synchronize_session=False)
    )


def release_references(
    db: Session,
    *,
    categories: Iterable[int] = (),
    clients: Iterable[int] = (),
    estados: Iterable[int] = (),
    products: Iterable[int] = (),
    users: Iterable[int] = (),
) -> None:
    """Pone en NULL toda FK que apunte a los ids indicados. No hace commit."""
    _null_out(db, Product.category_id, list(categories))
    _null_out(db, Remito.client_id, list(clients))
    _null_out(db, Remito.status_id, list(estados))
    _null_out(db, RemitoItem.product_id, list(products))
    _null_out(db, Remito.created_by_id, list(users))
