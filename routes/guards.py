from functools import wraps

from flask import request
from flask_login import current_user

from models import db
from models.company import Company
from models.user import Role
from routes.errors import api_error


def require_roles(*allowed_roles):
    """Valida que el usuario logueado tenga uno de los roles permitidos.

    Va siempre debajo de @login_required.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if current_user.role not in allowed_roles:
                return api_error(403, "No autorizado", "No tienes permisos para acceder a esta sección.")
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def require_superadmin():
    """Solo SUPERADMIN (rol global, ve todas las empresas)."""
    return require_roles(Role.SUPERADMIN)


def resolve_company_id():
    """Empresa sobre la que opera el request.

    - Usuarios de empresa: siempre su company_id (se ignora ?companyId=).
    - SUPERADMIN: ?companyId= o, si no viene, su propio company_id.

    Devuelve (company_id, None) o (None, respuesta_de_error).
    """
    if current_user.role != Role.SUPERADMIN:
        if not current_user.company_id:
            return None, api_error(403, "No autorizado", "Usuario no asociado a una empresa.")
        return int(current_user.company_id), None

    company_id = request.args.get("companyId", type=int) or current_user.company_id
    if not company_id:
        return None, api_error(400, "Datos faltantes", "No se pudo determinar la empresa.")
    if not db.session.get(Company, int(company_id)):
        return None, api_error(404, "Empresa no encontrada", "La empresa solicitada no existe.")
    return int(company_id), None
