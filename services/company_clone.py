"""Duplicación de una empresa con sus datos.

Orden de copia (cada paso necesita los mapas de ids del anterior):
estados -> categorías -> productos -> clientes -> remitos -> items -> usuarios.

Todo ocurre en la transacción de la sesión recibida. Acá solo se hace flush:
quien llama decide commit o rollback, así una falla a mitad de camino no deja
una empresa copiada a medias.
"""
from typing import Callable, Iterable, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from models.category import Category
from models.client import Client
from models.company import Company
from models.estado_remito import EstadoRemito
from models.product import Product
from models.remito import Remito, RemitoItem
from models.user import User
from services.estados import seed_default_estados


class CloneError(ValueError):
    """Error de validación al duplicar (se informa al cliente como 4xx)."""


class InvalidCompanyName(CloneError):
    pass


class CompanyNotFound(CloneError):
    pass


class CompanyNameTaken(CloneError):
    pass


class CloneOptions:
    """Qué recursos copiar de la empresa origen."""

    FLAGS = ("estados", "categorias", "productos", "clientes", "remitos", "usuarios")

    def __init__(
        self,
        *,
        estados: bool = False,
        categorias: bool = False,
        productos: bool = False,
        clientes: bool = False,
        remitos: bool = False,
        usuarios: bool = False,
    ):
        self.estados = estados
        self.categorias = categorias
        self.productos = productos
        self.clientes = clientes
        self.remitos = remitos
        self.usuarios = usuarios

    @classmethod
    def from_payload(cls, payload: dict) -> "CloneOptions":
        return cls(**{f: payload.get(f) is True for f in cls.FLAGS})

    def __repr__(self) -> str:
        on = [f for f in self.FLAGS if getattr(self, f)]
        return f"<CloneOptions {','.join(on) or '-'}>"


class CloneActor:
    """Usuario ya autorizado que ejecuta la duplicación."""

    def __init__(self, user_id: int):
        self.user_id = user_id


def _copy_rows(db: Session, sources: Iterable, build: Callable) -> dict[int, int]:
    """Inserta una copia de cada fila y devuelve {id_origen: id_nuevo}.

    El mapa sale del par (origen, copia) armado antes del flush; no depende
    del orden en que la BD devuelva las filas.
    """
    pairs = [(src, build(src)) for src in sources]
    if not pairs:
        return {}
    db.add_all([new for _, new in pairs])
    db.flush()
    return {src.id: new.id for src, new in pairs}


def _remap(
    id_map: dict[int, int],
    old_id: Optional[int],
    *,
    cloned: bool,
    keep_foreign: bool,
) -> Optional[int]:
    """Resuelve una FK de la copia.

    - Si el recurso referenciado se copió: id nuevo, o None si no está mapeado.
    - Si no se copió: se conserva el id original (apunta a la empresa origen)
      salvo que keep_foreign sea False.
    """
    if old_id is None:
        return None
    if cloned:
        return id_map.get(old_id)
    return old_id if keep_foreign else None


def _by_company(db: Session, model, company_id: int) -> list:
    return db.query(model).filter(model.company_id == company_id).order_by(model.id.asc()).all()


def insert_company(db: Session, name: str) -> Company:
    company = Company(name=name)
    db.add(company)
    try:
        db.flush()
    except IntegrityError as e:
        # companies.name es UNIQUE: la BD resuelve la carrera entre requests.
        # La sesión queda inválida hasta que quien llama haga rollback.
        raise CompanyNameTaken("Ya existe una empresa con ese nombre.") from e
    return company


def _clone_estados(db: Session, *, source_id: int, target_id: int) -> dict[int, int]:
    return _copy_rows(
        db,
        _by_company(db, EstadoRemito, source_id),
        lambda e: EstadoRemito(
            company_id=target_id,
            name=e.name,
            description=e.description,
            color=e.color,
            icon=e.icon,
            is_active=e.is_active,
            is_default=e.is_default,
            sort_order=e.sort_order,
        ),
    )


def _estado_map_by_name(db: Session, *, source_id: int, target_id: int) -> dict[int, int]:
    """Mapa de estados por nombre (sirve también para los estados por defecto)."""
    new_by_name = {e.name: e.id for e in _by_company(db, EstadoRemito, target_id)}
    return {
        e.id: new_by_name[e.name]
        for e in _by_company(db, EstadoRemito, source_id)
        if e.name in new_by_name
    }


def _clone_categories(db: Session, *, source_id: int, target_id: int) -> dict[int, int]:
    return _copy_rows(
        db,
        _by_company(db, Category, source_id),
        lambda c: Category(company_id=target_id, name=c.name, description=c.description),
    )


def _clone_products(
    db: Session,
    *,
    source_id: int,
    target_id: int,
    category_map: dict[int, int],
    categories_cloned: bool,
    keep_foreign: bool,
) -> dict[int, int]:
    return _copy_rows(
        db,
        _by_company(db, Product, source_id),
        lambda p: Product(
            company_id=target_id,
            name=p.name,
            description=p.description,
            price=p.price,
            stock=p.stock,
            category_id=_remap(
                category_map, p.category_id, cloned=categories_cloned, keep_foreign=keep_foreign
            ),
        ),
    )


def _clone_clients(db: Session, *, source_id: int, target_id: int) -> dict[int, int]:
    return _copy_rows(
        db,
        _by_company(db, Client, source_id),
        lambda c: Client(
            company_id=target_id,
            name=c.name,
            email=c.email,
            phone=c.phone,
            address=c.address,
        ),
    )


def _clone_remitos(
    db: Session,
    *,
    source_id: int,
    target_id: int,
    actor: CloneActor,
    options: CloneOptions,
    client_map: dict[int, int],
    product_map: dict[int, int],
    keep_foreign: bool,
) -> tuple[int, int]:
    source_remitos = _by_company(db, Remito, source_id)
    if not source_remitos:
        return 0, 0

    estado_map = _estado_map_by_name(db, source_id=source_id, target_id=target_id)

    def _status(old_status: Optional[int]) -> Optional[int]:
        if old_status is None:
            return None
        if old_status in estado_map:
            return estado_map[old_status]
        return old_status if keep_foreign else None

    remito_map = _copy_rows(
        db,
        source_remitos,
        lambda r: Remito(
            company_id=target_id,
            number=r.number,
            client_id=_remap(client_map, r.client_id, cloned=options.clientes, keep_foreign=keep_foreign),
            status_id=_status(r.status_id),
            notes=r.notes,
            created_by_id=actor.user_id,
        ),
    )

    source_items = (
        db.query(RemitoItem)
        .filter(RemitoItem.remito_id.in_([r.id for r in source_remitos]))
        .order_by(RemitoItem.id.asc())
        .all()
    )
    item_map = _copy_rows(
        db,
        source_items,
        lambda it: RemitoItem(
            remito_id=remito_map.get(it.remito_id),
            product_id=_remap(product_map, it.product_id, cloned=options.productos, keep_foreign=keep_foreign),
            quantity=it.quantity,
            unit_price=it.unit_price,
            line_total=it.line_total,
            product_name=it.product_name,
            product_desc=it.product_desc,
        ),
    )
    return len(remito_map), len(item_map)


def _clone_users(db: Session, *, source_id: int, target_id: int) -> dict[int, int]:
    # Nunca copiar contraseñas: los usuarios copiados deben definir una nueva.
    return _copy_rows(
        db,
        _by_company(db, User, source_id),
        lambda u: User(
            company_id=target_id,
            name=u.name,
            email=u.email,
            role=u.role,
            phone=u.phone,
            address=u.address,
            password_hash=None,
            has_temporary_password=True,
            is_active=u.is_active,
        ),
    )


def duplicate_company(
    db: Session,
    *,
    source_company_id: int,
    name: str | None,
    options: CloneOptions,
    actor: CloneActor,
    keep_foreign_references: bool = True,
) -> Company:
    """Crea una empresa nueva copiando los recursos elegidos de otra.

    Lanza InvalidCompanyName, CompanyNotFound o CompanyNameTaken.
    No hace commit.
    """
    log = current_app.logger

    name = (name or "").strip()
    if not name:
        raise InvalidCompanyName("El nombre de la empresa es requerido.")

    source = db.get(Company, source_company_id)
    if not source:
        raise CompanyNotFound("La empresa a duplicar no existe.")

    company = insert_company(db, name)
    source_id, target_id = source.id, company.id
    log.info("Duplicando empresa %s -> %s (%s) %r", source_id, target_id, name, options)

    if options.estados:
        n = len(_clone_estados(db, source_id=source_id, target_id=target_id))
        log.info("  estados copiados: %s", n)
    else:
        seed_default_estados(db, company_id=target_id)
        log.info("  estados por defecto creados")

    category_map: dict[int, int] = {}
    if options.categorias:
        category_map = _clone_categories(db, source_id=source_id, target_id=target_id)
        log.info("  categorías copiadas: %s", len(category_map))

    product_map: dict[int, int] = {}
    if options.productos:
        product_map = _clone_products(
            db,
            source_id=source_id,
            target_id=target_id,
            category_map=category_map,
            categories_cloned=options.categorias,
            keep_foreign=keep_foreign_references,
        )
        log.info("  productos copiados: %s", len(product_map))

    client_map: dict[int, int] = {}
    if options.clientes:
        client_map = _clone_clients(db, source_id=source_id, target_id=target_id)
        log.info("  clientes copiados: %s", len(client_map))

    if options.remitos:
        n_remitos, n_items = _clone_remitos(
            db,
            source_id=source_id,
            target_id=target_id,
            actor=actor,
            options=options,
            client_map=client_map,
            product_map=product_map,
            keep_foreign=keep_foreign_references,
        )
        log.info("  remitos copiados: %s (items: %s)", n_remitos, n_items)

    if options.usuarios:
        n = len(_clone_users(db, source_id=source_id, target_id=target_id))
        log.info("  usuarios copiados: %s", n)

    return company
