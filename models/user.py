from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from . import db, login_manager


class Role:
    USER = "USER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"  # acceso a todas las empresas

    ALL = {USER, ADMIN, SUPERADMIN}


class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    # NULL solo para SUPERADMIN
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True, index=True)

    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(180), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False, default=Role.USER)

    phone = db.Column(db.String(40), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    # NULL => debe definir contraseña antes de poder ingresar
    password_hash = db.Column(db.String(255), nullable=True)
    has_temporary_password = db.Column(db.Boolean, default=False, nullable=False)

    # Recupero de contraseña: token de un solo uso con vencimiento
    password_reset_token = db.Column(db.String(64), nullable=True, unique=True)
    password_reset_expires = db.Column(db.DateTime, nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    company = db.relationship("Company", back_populates="users")

    __table_args__ = (
        db.UniqueConstraint("company_id", "email", name="uq_user_company_email"),
    )

    @property
    def is_superadmin(self) -> bool:
        return self.role == Role.SUPERADMIN

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email} role={self.role}>"

@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(User, int(user_id))
