from sqlalchemy.orm import Session

from models.estado_remito import EstadoRemito


# Estados con los que arranca toda empresa nueva
DEFAULT_ESTADOS = (
    {
        "name": "Pendiente",
        "description": "Remito creado, esperando procesamiento",
        "color": "#f59e0b",
        "icon": "⏰",
        "is_active": True,
        "is_default": True,
        "sort_order": 1,
    },
    {
        "name": "Preparado",
        "description": "Remito preparado para entrega",
        "color": "#10b981",
        "icon": "✅",
        "is_active": True,
        "is_default": False,
        "sort_order": 2,
    },
    {
        "name": "Entregado",
        "description": "Remito entregado al cliente",
        "color": "#3b82f6",
        "icon": "🚚",
        "is_active": True,
        "is_default": False,
        "sort_order": 3,
    },
    {
        "name": "Cancelado",
        "description": "Remito cancelado",
        "color": "#ef4444",
        "icon": "❌",
        "is_active": True,
        "is_default": False,
        "sort_order": 4,
    },
)


def seed_default_estados(db: Session, *, company_id: int) -> list[EstadoRemito]:
    """Crea los 4 estados canónicos (Pendiente/Preparado/Entregado/Cancelado)."""
    estados = [EstadoRemito(company_id=company_id, **data) for data in DEFAULT_ESTADOS]
    db.add_all(estados)
    db.flush()
    return estados


def get_default_estado(db: Session, *, company_id: int) -> EstadoRemito | None:
    """Estado marcado por defecto; si no hay, el primero activo por sort_order."""
    base = db.query(EstadoRemito).filter(
        EstadoRemito.company_id == company_id,
        EstadoRemito.is_active.is_(True),
    )
    estado = base.filter(EstadoRemito.is_default.is_(True)).order_by(EstadoRemito.sort_order.asc()).first()
    if estado:
        return estado
    return base.order_by(EstadoRemito.sort_order.asc(), EstadoRemito.id.asc()).first()
