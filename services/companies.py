from sqlalchemy.orm import Session

from models.category import Category
from models.client import Client
from models.company import Company
from models.estado_remito import EstadoRemito
from models.product import Product
from models.remito import Remito, RemitoItem
from models.user import User
from services.company_clone import insert_company
from services.estados import seed_default_estados
from services.references import release_references


class CompanyInUse(ValueError):
    pass


def create_company(db: Session, *, name: str) -> Company:
    """Alta de empresa con sus estados por defecto. No hace commit.

    Lanza CompanyNameTaken si el nombre ya existe; el rollback queda a cargo
    de quien llama.
    """
    company = insert_company(db, name)
    seed_default_estados(db, company_id=company.id)
    return company


def _ids(db: Session, model, company_id: int) -> list[int]:
    return [row_id for (row_id,) in db.query(model.id).filter(model.company_id == company_id)]


def delete_company(db: Session, *, company: Company) -> None:
    """Borra la empresa y todo lo que cuelga de ella.

    Si todavía tiene usuarios no se borra (CompanyInUse). Las filas de otras
    empresas que apuntaban a su catálogo (copias que conservaron referencias)
    quedan con la FK en NULL.
    """
    has_users = db.query(User.id).filter(User.company_id == company.id).first() is not None
    if has_users:
        raise CompanyInUse("Esta empresa tiene usuarios asociados y no puede ser eliminada.")

    remito_ids = _ids(db, Remito, company.id)
    if remito_ids:
        db.query(RemitoItem).filter(RemitoItem.remito_id.in_(remito_ids)).delete(synchronize_session=False)

    release_references(
        db,
        categories=_ids(db, Category, company.id),
        clients=_ids(db, Client, company.id),
        estados=_ids(db, EstadoRemito, company.id),
        products=_ids(db, Product, company.id),
    )

    for model in (Remito, Product, Category, Client, EstadoRemito):
        db.query(model).filter(model.company_id == company.id).delete(synchronize_session=False)

    db.delete(company)
    db.flush()
