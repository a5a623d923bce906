from flask import Blueprint, current_app, jsonify
from flask_login import current_user, login_required
from sqlalchemy.exc import IntegrityError

from models import db
from models.user import Role, User
from routes.errors import api_error
from routes.guards import require_roles, require_superadmin, resolve_company_id
from routes.helpers import clean_str, json_body, opt_str
from services.passwords import InvalidPassword, set_temporary_password, validate_password
from services.references import release_references
from services.transform import transform_many, transform_user

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _scoped_user(user_id: int):
    """Usuario visible para quien llama: SUPERADMIN ve todos, ADMIN solo los de su empresa."""
    user = db.session.get(User, user_id)
    if not user:
        return None
    if current_user.role != Role.SUPERADMIN and user.company_id != current_user.company_id:
        return None
    return user


def _role_from(data, default=None):
    role = data.get("role", default)
    if role not in Role.ALL:
        return None
    # Un ADMIN no puede dar acceso global
    if role == Role.SUPERADMIN and current_user.role != Role.SUPERADMIN:
        return None
    return role


def _email_taken(company_id, email: str, exclude_id=None) -> bool:
    q = db.session.query(User.id).filter(User.company_id == company_id, User.email == email)
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


@users_bp.get("")
@login_required
@require_roles(Role.ADMIN, Role.SUPERADMIN)
def users_list():
    company_id, err = resolve_company_id()
    if err:
        return err

    users = (
        db.session.query(User)
        .filter(User.company_id == company_id)
        .order_by(User.name.asc())
        .all()
    )
    return jsonify(transform_many(transform_user, users))


@users_bp.post("")
@login_required
@require_roles(Role.ADMIN, Role.SUPERADMIN)
def users_create():
    """Alta de usuario en la empresa.

    Sin contraseña el usuario queda pendiente: no puede ingresar hasta que
    un administrador le genere una temporal.
    """
    company_id, err = resolve_company_id()
    if err:
        return err

    data = json_body()
    name = clean_str(data.get("name"))
    email = clean_str(data.get("email")).lower()
    if not name or "@" not in email:
        return api_error(400, "Datos inválidos", "Nombre y email válido son requeridos.")

    role = _role_from(data, Role.USER)
    if not role:
        return api_error(400, "Datos inválidos", "Rol inválido.")

    if _email_taken(company_id, email):
        return api_error(400, "Email en uso", "El email ya está en uso en esta empresa.")

    user = User(
        company_id=company_id,
        name=name,
        email=email,
        role=role,
        phone=opt_str(data.get("phone")),
        address=opt_str(data.get("address")),
    )
    if data.get("password"):
        try:
            user.set_password(validate_password(data.get("password")))
        except InvalidPassword as e:
            return api_error(400, "Contraseña inválida", str(e))
    else:
        user.has_temporary_password = True

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return api_error(400, "Email en uso", "El email ya está en uso en esta empresa.")

    current_app.logger.info("Usuario %s creado en empresa %s", user.id, company_id)
    return jsonify(transform_user(user)), 201


@users_bp.put("/<int:user_id>")
@login_required
@require_roles(Role.ADMIN, Role.SUPERADMIN)
def users_update(user_id: int):
    user = _scoped_user(user_id)
    if not user:
        return api_error(404, "Usuario no encontrado", "El usuario solicitado no existe.")
    if user.role == Role.SUPERADMIN and current_user.role != Role.SUPERADMIN:
        return api_error(403, "No autorizado", "No tienes permisos para editar este usuario.")

    data = json_body()

    if "name" in data:
        name = clean_str(data.get("name"))
        if not name:
            return api_error(400, "Datos inválidos", "El nombre es requerido.")
        user.name = name

    if "email" in data:
        email = clean_str(data.get("email")).lower()
        if "@" not in email:
            return api_error(400, "Datos inválidos", "Email inválido.")
        if _email_taken(user.company_id, email, exclude_id=user.id):
            return api_error(409, "Email en uso", "El email ya está en uso por otro usuario.")
        user.email = email

    if "role" in data:
        role = _role_from(data)
        if not role:
            return api_error(400, "Datos inválidos", "Rol inválido.")
        user.role = role

    for field in ("phone", "address"):
        if field in data:
            setattr(user, field, opt_str(data.get(field)))

    if "isActive" in data:
        user.is_active = data.get("isActive") is True

    if clean_str(data.get("password")):
        try:
            user.set_password(validate_password(data.get("password")))
        except InvalidPassword as e:
            return api_error(400, "Contraseña inválida", str(e))
        user.has_temporary_password = False

    db.session.commit()
    return jsonify(transform_user(user))


@users_bp.delete("/<int:user_id>")
@login_required
@require_superadmin()
def users_delete(user_id: int):
    if user_id == current_user.id:
        return api_error(400, "Operación no permitida", "No puedes eliminar tu propia cuenta.")

    user = db.session.get(User, user_id)
    if not user:
        return api_error(404, "Usuario no encontrado", "El usuario solicitado no existe.")

    # Los remitos que creó se conservan sin autor
    release_references(db.session, users=[user.id])
    db.session.delete(user)
    db.session.commit()

    current_app.logger.info("Usuario %s eliminado por %s", user_id, current_user.id)
    return jsonify({"message": "Usuario eliminado correctamente", "success": True})


@users_bp.post("/<int:user_id>/reset-password")
@login_required
@require_roles(Role.ADMIN, Role.SUPERADMIN)
def users_reset_password(user_id: int):
    """Genera una contraseña temporal y la devuelve al administrador.

    El usuario la usa para ingresar y luego la cambia (/api/auth/change-password).
    """
    user = _scoped_user(user_id)
    if not user:
        return api_error(404, "Usuario no encontrado", "No se pudo encontrar el usuario.")

    temp = set_temporary_password(user)
    db.session.commit()

    current_app.logger.info("Contraseña temporal generada para usuario %s por %s", user.id, current_user.id)
    return jsonify({
        "success": True,
        "message": "Contraseña temporal generada.",
        "tempPassword": temp,
    })


@users_bp.post("/<int:user_id>/clear-temporary-password")
@login_required
def users_clear_temporary_password(user_id: int):
    if current_user.id != user_id:
        return api_error(403, "No autorizado", "Solo puedes actualizar tu propia contraseña.")

    current_user.has_temporary_password = False
    db.session.commit()
    return jsonify({"message": "Flag actualizado correctamente", "success": True})
