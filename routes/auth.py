from flask import current_app, jsonify, session
from flask_login import current_user, login_required, login_user, logout_user

from models import db
from models.user import User
from routes import auth_bp
from routes.errors import api_error
from routes.helpers import clean_str, json_body
from services.passwords import (
    ExpiredResetToken,
    InvalidPassword,
    InvalidResetToken,
    change_password,
    issue_reset_token,
    reset_with_token,
)
from services.transform import transform_user


@auth_bp.post("/login")
def login_post():
    data = json_body()
    email = clean_str(data.get("email")).lower()
    password = data.get("password") if isinstance(data.get("password"), str) else ""

    if not email or not password:
        return api_error(400, "Datos faltantes", "Email y contraseña son obligatorios.")

    # El mismo email puede existir en varias empresas (p.ej. tras duplicar una);
    # solo entra el usuario cuya contraseña coincide.
    candidates = (
        db.session.query(User)
        .filter(User.email == email, User.is_active == True)
        .order_by(User.id.asc())
        .all()
    )
    user = next((u for u in candidates if u.check_password(password)), None)
    if not user:
        current_app.logger.info("Login fallido para %s", email)
        return api_error(401, "No autorizado", "Credenciales inválidas.")

    session.clear()
    login_user(user)
    return jsonify(transform_user(user))


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    session.clear()
    return jsonify({"success": True})


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(transform_user(current_user))


@auth_bp.post("/change-password")
@login_required
def change_password_post():
    """Cambio de contraseña propio (p.ej. al ingresar con una temporal)."""
    data = json_body()
    current = data.get("currentPassword") if isinstance(data.get("currentPassword"), str) else ""
    if not current_user.check_password(current):
        return api_error(400, "Contraseña inválida", "La contraseña actual no es correcta.")

    try:
        change_password(current_user, data.get("newPassword"))
    except InvalidPassword as e:
        return api_error(400, "Contraseña inválida", str(e))

    db.session.commit()
    current_app.logger.info("Usuario %s cambió su contraseña", current_user.id)
    return jsonify(transform_user(current_user))


@auth_bp.post("/forgot-password")
def forgot_password():
    email = clean_str(json_body().get("email")).lower()
    if "@" not in email:
        return api_error(400, "Email inválido", "Por favor ingresa un email válido.")

    users = db.session.query(User).filter(User.email == email, User.is_active == True).all()
    for user in users:
        issue_reset_token(user)
    db.session.commit()

    # El envío del enlace queda fuera de la API; no se revela si el email existe.
    current_app.logger.info("Recupero de contraseña solicitado para %s (%s cuentas)", email, len(users))
    return jsonify({
        "success": True,
        "message": "Si el email existe, se enviaron las instrucciones para restablecer la contraseña.",
    })


@auth_bp.post("/reset-password")
def reset_password():
    data = json_body()
    if not data.get("token") or not data.get("password"):
        return api_error(400, "Datos incompletos", "Token y contraseña son requeridos.")

    try:
        user = reset_with_token(db.session, token=data.get("token"), password=data.get("password"))
    except InvalidPassword as e:
        return api_error(400, "Contraseña inválida", str(e))
    except ExpiredResetToken as e:
        db.session.commit()
        return api_error(400, "Token expirado", str(e))
    except InvalidResetToken as e:
        return api_error(400, "Token inválido", str(e))

    db.session.commit()
    current_app.logger.info("Contraseña restablecida por token para usuario %s", user.id)
    return jsonify({"success": True, "message": "Contraseña actualizada correctamente."})
