import os

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name: str, default: bool) -> bool:
    v = os.environ.get(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret_key_change_me")

    DB_PATH = os.environ.get("DB_PATH", os.path.join(basedir, "remitos.db"))
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", f"sqlite:///{DB_PATH}")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Cookies de sesión más seguras (ajusta en producción)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    LOG_DIR = os.environ.get("LOG_DIR", os.path.join(basedir, "logs"))

    # Al duplicar una empresa sin copiar categorías/clientes/productos, los
    # registros dependientes conservan el id original (de la otra empresa).
    # En False esas referencias quedan en NULL.
    CLONE_KEEP_FOREIGN_REFERENCES = _env_bool("CLONE_KEEP_FOREIGN_REFERENCES", True)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    CLONE_KEEP_FOREIGN_REFERENCES = True
