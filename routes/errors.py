from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException


def api_error(status: int, error: str, message: str):
    """Respuesta de error uniforme: {error, message} + status HTTP."""
    return jsonify({"error": error, "message": message}), status


_TITLES = {
    400: "Solicitud inválida",
    401: "No autorizado",
    403: "No autorizado",
    404: "No encontrado",
    405: "Método no permitido",
    409: "Conflicto",
}


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _handle_http(e: HTTPException):
        return api_error(e.code or 500, _TITLES.get(e.code, e.name), e.description or e.name)

    @app.errorhandler(500)
    def _handle_500(e):
        current_app.logger.exception("Error 500 no manejado: %s %s", request.method, request.path)
        return api_error(500, "Error interno del servidor", "Ocurrió un error inesperado.")
