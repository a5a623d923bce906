from datetime import datetime
from decimal import Decimal

from . import db


class Remito(db.Model):
    __tablename__ = "remitos"

    id = db.Column(db.Integer, primary_key=True)

    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    number = db.Column(db.Integer, nullable=False)

    # Cliente (opcional)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=True, index=True)
    client = db.relationship("Client", lazy="joined")

    # Se expone como "status" en la API
    status_id = db.Column(db.Integer, db.ForeignKey("estados_remitos.id"), nullable=True, index=True)
    estado = db.relationship("EstadoRemito", lazy="joined")

    notes = db.Column(db.Text, nullable=True)

    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    items = db.relationship(
        "RemitoItem",
        backref="remito",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="RemitoItem.id",
    )

    __table_args__ = (
        db.UniqueConstraint("company_id", "number", name="uq_remito_company_number"),
        db.Index("ix_remitos_company_created", "company_id", "created_at"),
    )

    @property
    def total(self) -> Decimal:
        return sum((Decimal(str(it.line_total or 0)) for it in self.items), Decimal("0.00"))

    def __repr__(self):
        return f"<Remito {self.id} #{self.number} company={self.company_id}>"


class RemitoItem(db.Model):
    __tablename__ = "remito_items"

    id = db.Column(db.Integer, primary_key=True)

    remito_id = db.Column(db.Integer, db.ForeignKey("remitos.id"), nullable=True, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    quantity = db.Column(db.Numeric(14, 3), nullable=False)
    unit_price = db.Column(db.Numeric(14, 2), nullable=False)
    line_total = db.Column(db.Numeric(14, 2), nullable=False)

    # Datos del producto "fotografiados" al momento de emitir el remito.
    product_name = db.Column(db.String(160), nullable=False)
    product_desc = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index("ix_remito_items_remito_product", "remito_id", "product_id"),
    )

    def __repr__(self):
        return f"<RemitoItem remito={self.remito_id} product={self.product_id} qty={self.quantity}>"
