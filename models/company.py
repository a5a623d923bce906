from datetime import datetime
from . import db

class Company(db.Model):
    __tablename__ = "companies"

    id = db.Column(db.Integer, primary_key=True)
    # La unicidad del nombre la garantiza la BD (ver services.company_clone)
    name = db.Column(db.String(120), nullable=False, unique=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    users = db.relationship("User", back_populates="company")

    def __repr__(self) -> str:
        return f"<Company {self.id} {self.name}>"
