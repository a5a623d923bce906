from decimal import Decimal

from app import create_app
from models import db
from models.category import Category
from models.client import Client
from models.company import Company
from models.product import Product
from models.remito import Remito, RemitoItem
from models.user import Role, User
from services.companies import create_company
from services.estados import get_default_estado


def run():
    app = create_app()
    with app.app_context():
        # ✅ Importante:
        # No usamos db.create_all() porque ya estamos trabajando con migraciones (Flask-Migrate).
        # Asegúrate de haber corrido: flask db upgrade

        # 1) SUPERADMIN global (sin empresa)
        root = db.session.query(User).filter_by(email="superadmin@demo.com", company_id=None).first()
        if not root:
            root = User(email="superadmin@demo.com", name="Super Admin", role=Role.SUPERADMIN, is_active=True)
            root.set_password("admin1234")
            db.session.add(root)
            db.session.flush()

        # 2) Empresa demo (con sus estados por defecto)
        company = db.session.query(Company).filter_by(name="Acme").first()
        if not company:
            company = create_company(db.session, name="Acme")

        # 3) Admin de la empresa
        admin = db.session.query(User).filter_by(email="admin@acme.com", company_id=company.id).first()
        if not admin:
            admin = User(
                email="admin@acme.com",
                name="Admin Acme",
                role=Role.ADMIN,
                company_id=company.id,
                is_active=True,
            )
            admin.set_password("admin1234")
            db.session.add(admin)
            db.session.flush()

        # 4) Datos de ejemplo
        category = db.session.query(Category).filter_by(company_id=company.id, name="Bebidas").first()
        if not category:
            category = Category(company_id=company.id, name="Bebidas", description="Bebidas sin alcohol")
            db.session.add(category)
            db.session.flush()

        product = db.session.query(Product).filter_by(company_id=company.id, name="Cola").first()
        if not product:
            product = Product(
                company_id=company.id,
                name="Cola",
                description="Cola 2.25L",
                price=Decimal("10.00"),
                stock=100,
                category_id=category.id,
            )
            db.session.add(product)
            db.session.flush()

        client = db.session.query(Client).filter_by(company_id=company.id, name="Juan").first()
        if not client:
            client = Client(company_id=company.id, name="Juan", email="juan@example.com")
            db.session.add(client)
            db.session.flush()

        remito = db.session.query(Remito).filter_by(company_id=company.id, number=1).first()
        if not remito:
            estado = get_default_estado(db.session, company_id=company.id)
            remito = Remito(
                company_id=company.id,
                number=1,
                client_id=client.id,
                status_id=estado.id if estado else None,
                created_by_id=admin.id,
            )
            db.session.add(remito)
            db.session.flush()
            db.session.add(RemitoItem(
                remito_id=remito.id,
                product_id=product.id,
                quantity=Decimal("3"),
                unit_price=Decimal("10.00"),
                line_total=Decimal("30.00"),
                product_name=product.name,
                product_desc=product.description,
            ))

        db.session.commit()

        print("✅ Seed listo.")
        print("SUPERADMIN: superadmin@demo.com / admin1234 (puede crear y duplicar empresas)")
        print("ADMIN Acme: admin@acme.com / admin1234")


if __name__ == "__main__":
    run()
