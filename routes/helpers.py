from decimal import Decimal, InvalidOperation

from flask import request


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def clean_str(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def opt_str(value) -> str | None:
    return clean_str(value) or None


def to_int(val, default: int = 0) -> int:
    if isinstance(val, bool):
        return default
    try:
        return int(val)
    except (TypeError, ValueError):
        return default


def to_id(val) -> int:
    """Id recibido por JSON; -1 si no es un entero (no matchea ninguna fila)."""
    return to_int(val, -1)


def to_price(val) -> Decimal | None:
    """Decimal(12,2) >= 0, o None si no es un número válido."""
    try:
        d = to_decimal(val, "0.01")
    except ValueError:
        return None
    return d if d >= 0 else None


def to_decimal(val, places: str) -> Decimal:
    """Acepta "4,50" o 4.5. Lanza ValueError si no es un número finito."""
    if isinstance(val, bool) or val is None:
        raise ValueError("valor numérico requerido")
    try:
        d = Decimal(str(val).strip().replace(",", "."))
    except InvalidOperation as e:
        raise ValueError(f"número inválido: {val!r}") from e
    if not d.is_finite():
        raise ValueError(f"número inválido: {val!r}")
    return d.quantize(Decimal(places))
