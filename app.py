import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask
from flask_migrate import Migrate

from config import Config
from models import db, login_manager
from routes.errors import api_error, register_error_handlers


migrate = Migrate()


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)

    # -------------------------
    # Extensiones
    # -------------------------
    db.init_app(app)
    migrate.init_app(app, db)

    login_manager.init_app(app)

    @login_manager.unauthorized_handler
    def _unauthorized():
        return api_error(401, "No autorizado", "Sesión no encontrada. Por favor, inicia sesión.")

    # -------------------------
    # Importar modelos (Alembic)
    # -------------------------
    from models.company import Company  # noqa: F401
    from models.user import User  # noqa: F401
    from models.estado_remito import EstadoRemito  # noqa: F401
    from models.category import Category  # noqa: F401
    from models.product import Product  # noqa: F401
    from models.client import Client  # noqa: F401
    from models.remito import Remito, RemitoItem  # noqa: F401

    # -------------------------
    # Blueprints
    # -------------------------
    from routes import auth_bp
    import routes.auth  # noqa: F401  (registra las vistas en auth_bp)
    from routes.companies import companies_bp
    from routes.catalog import catalog_bp
    from routes.remitos import remitos_bp
    from routes.users import users_bp

    blueprints = [
        auth_bp,

        # SUPERADMIN
        companies_bp,

        # Operación por empresa
        catalog_bp,
        remitos_bp,
        users_bp,
    ]

    for bp in blueprints:
        app.register_blueprint(bp)

    # -------------------------
    # Logging + manejo global de errores
    # -------------------------
    log_dir = app.config.get("LOG_DIR") or os.path.join(os.path.dirname(__file__), "logs")
    os.makedirs(log_dir, exist_ok=True)

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=2_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    ))

    if not any(isinstance(h, RotatingFileHandler) for h in app.logger.handlers):
        app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)

    register_error_handlers(app)

    return app


if __name__ == "__main__":
    app = create_app()
    # Debug controlado por config / variables de entorno
    app.run(debug=app.config.get("DEBUG", False))
