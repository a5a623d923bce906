"""Contraseñas temporales y tokens de recupero.

Los usuarios creados sin contraseña (por ejemplo al duplicar una empresa)
no pueden ingresar hasta que un administrador les genere una contraseña
temporal o hasta que completen el recupero con token.
"""
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from models.user import User

MIN_PASSWORD_LENGTH = 6
RESET_TOKEN_TTL = timedelta(hours=1)


class PasswordError(ValueError):
    pass


class InvalidPassword(PasswordError):
    pass


class InvalidResetToken(PasswordError):
    pass


class ExpiredResetToken(PasswordError):
    pass


def validate_password(password) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidPassword(f"La contraseña debe tener al menos {MIN_PASSWORD_LENGTH} caracteres.")
    return password


def set_temporary_password(user: User) -> str:
    """Genera una contraseña temporal de 8 caracteres y la asigna. Devuelve el texto plano."""
    temp = secrets.token_hex(4)
    user.set_password(temp)
    user.has_temporary_password = True
    return temp


def change_password(user: User, password: str) -> None:
    user.set_password(validate_password(password))
    user.has_temporary_password = False
    user.password_reset_token = None
    user.password_reset_expires = None


def issue_reset_token(user: User, *, now: datetime | None = None) -> str:
    now = now or datetime.utcnow()
    user.password_reset_token = secrets.token_urlsafe(32)
    user.password_reset_expires = now + RESET_TOKEN_TTL
    return user.password_reset_token


def reset_with_token(db: Session, *, token, password, now: datetime | None = None) -> User:
    """Consume el token y fija la nueva contraseña. No hace commit.

    Un token vencido se borra igual; quien llama debe hacer commit también
    en ese caso para que no quede reutilizable.
    """
    validate_password(password)
    if not isinstance(token, str) or not token:
        raise InvalidResetToken("El token de reset no es válido o ha expirado.")

    user = db.query(User).filter(User.password_reset_token == token).first()
    if not user:
        raise InvalidResetToken("El token de reset no es válido o ha expirado.")

    now = now or datetime.utcnow()
    if not user.password_reset_expires or now > user.password_reset_expires:
        user.password_reset_token = None
        user.password_reset_expires = None
        raise ExpiredResetToken("El enlace de reset ha expirado. Por favor, solicita uno nuevo.")

    change_password(user, password)
    return user
