from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from models import db
from models.company import Company
from routes.errors import api_error
from routes.guards import require_superadmin
from routes.helpers import clean_str, json_body
from services.companies import CompanyInUse, create_company, delete_company
from services.company_clone import (
    CloneActor,
    CloneOptions,
    CompanyNameTaken,
    CompanyNotFound,
    InvalidCompanyName,
    duplicate_company,
)
from services.transform import transform_company, transform_many

companies_bp = Blueprint("companies", __name__, url_prefix="/api/companies")


@companies_bp.get("")
@login_required
@require_superadmin()
def companies_list():
    companies = db.session.query(Company).order_by(Company.name.asc()).all()
    return jsonify(transform_many(transform_company, companies))


@companies_bp.post("")
@login_required
@require_superadmin()
def companies_create():
    name = clean_str(json_body().get("name"))
    if not name:
        return api_error(400, "Datos faltantes", "El nombre de la empresa es requerido.")

    try:
        company = create_company(db.session, name=name)
        db.session.commit()
    except CompanyNameTaken as e:
        db.session.rollback()
        return api_error(400, "Empresa duplicada", str(e))

    current_app.logger.info("Empresa creada: %s (%s)", company.id, company.name)
    return jsonify(transform_company(company)), 201


@companies_bp.get("/<int:company_id>")
@login_required
@require_superadmin()
def companies_get(company_id: int):
    company = db.session.get(Company, company_id)
    if not company:
        return api_error(404, "Empresa no encontrada", "La empresa solicitada no existe.")
    return jsonify(transform_company(company))


@companies_bp.put("/<int:company_id>")
@login_required
@require_superadmin()
def companies_update(company_id: int):
    name = clean_str(json_body().get("name"))
    if not name:
        return api_error(400, "Datos faltantes", "El nombre de la empresa es requerido.")

    company = db.session.get(Company, company_id)
    if not company:
        return api_error(404, "Empresa no encontrada", "La empresa solicitada no existe.")

    exists = (
        db.session.query(Company.id)
        .filter(Company.name == name, Company.id != company.id)
        .first()
    )
    if exists:
        return api_error(409, "Nombre en uso", "Ya existe otra empresa con este nombre.")

    company.name = name
    db.session.commit()
    return jsonify(transform_company(company))


@companies_bp.delete("/<int:company_id>")
@login_required
@require_superadmin()
def companies_delete(company_id: int):
    company = db.session.get(Company, company_id)
    if not company:
        return api_error(404, "Empresa no encontrada", "La empresa solicitada no existe.")

    try:
        delete_company(db.session, company=company)
        db.session.commit()
    except CompanyInUse as e:
        db.session.rollback()
        return api_error(409, "No se puede eliminar", str(e))
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception("Empresa %s con datos referenciados, no se elimina", company_id)
        return api_error(409, "No se puede eliminar", "La empresa tiene datos referenciados por otros registros.")

    current_app.logger.info("Empresa eliminada: %s", company_id)
    return jsonify({"message": "Empresa eliminada correctamente", "success": True})


@companies_bp.post("/<int:company_id>/duplicate")
@login_required
@require_superadmin()
def companies_duplicate(company_id: int):
    """Duplica una empresa.

    Body: {name, estados, categorias, productos, clientes, remitos, usuarios}.
    Todo o nada: ante cualquier error se hace rollback completo.
    """
    data = json_body()
    name = data.get("name") if isinstance(data.get("name"), str) else None
    options = CloneOptions.from_payload(data)
    actor = CloneActor(user_id=current_user.id)

    try:
        company = duplicate_company(
            db.session,
            source_company_id=company_id,
            name=name,
            options=options,
            actor=actor,
            keep_foreign_references=current_app.config.get("CLONE_KEEP_FOREIGN_REFERENCES", True),
        )
        db.session.commit()
    except InvalidCompanyName as e:
        db.session.rollback()
        return api_error(400, "Nombre requerido", str(e))
    except CompanyNotFound as e:
        db.session.rollback()
        return api_error(404, "Empresa no encontrada", str(e))
    except CompanyNameTaken as e:
        db.session.rollback()
        return api_error(400, "Empresa duplicada", str(e))
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error duplicando empresa %s", company_id)
        return api_error(500, "Error interno del servidor", "Ocurrió un error al duplicar la empresa.")

    current_app.logger.info("Empresa %s duplicada como %s (%s)", company_id, company.id, company.name)
    return jsonify(transform_company(company)), 201
