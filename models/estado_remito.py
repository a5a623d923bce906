from datetime import datetime
from . import db


class EstadoRemito(db.Model):
    """Estado configurable de un remito (Pendiente, Entregado, ...).

    Se espera un solo estado con is_default=True por empresa; no lo
    garantiza la BD.
    """
    __tablename__ = "estados_remitos"

    id = db.Column(db.Integer, primary_key=True)

    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    name = db.Column(db.String(80), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    color = db.Column(db.String(20), nullable=True)
    icon = db.Column(db.String(20), nullable=True)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_default = db.Column(db.Boolean, default=False, nullable=False)
    sort_order = db.Column(db.Integer, default=0, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_estado_company_name"),
    )

    def __repr__(self) -> str:
        return f"<EstadoRemito {self.id} {self.name} company={self.company_id}>"
