"""Typed application errors and the JSON error envelope.

Services raise :class:`AppError`; the handlers registered here turn it (and
FastAPI's own errors) into ``{"success": false, "error": {...}}`` responses.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.config import settings


logger = logging.getLogger(__name__)


class AppError(Exception):
    def __init__(self, message: str, status_code: int = 500) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"

    @classmethod
    def bad_request(cls, message: str = "Solicitud incorrecta") -> AppError:
        return cls(message, 400)

    @classmethod
    def unauthorized(cls, message: str = "No autorizado") -> AppError:
        return cls(message, 401)

    @classmethod
    def forbidden(cls, message: str = "Prohibido") -> AppError:
        return cls(message, 403)

    @classmethod
    def not_found(cls, message: str = "Recurso no encontrado") -> AppError:
        return cls(message, 404)

    @classmethod
    def conflict(cls, message: str = "Conflicto de recursos") -> AppError:
        return cls(message, 409)

    @classmethod
    def validation_error(cls, message: str = "Error de validación") -> AppError:
        return cls(message, 422)

    @classmethod
    def too_many_requests(cls, message: str = "Demasiadas solicitudes") -> AppError:
        return cls(message, 429)

    @classmethod
    def internal(cls, message: str = "Error interno del servidor") -> AppError:
        return cls(message, 500)

    @classmethod
    def service_unavailable(cls, message: str = "Servicio no disponible") -> AppError:
        return cls(message, 503)


def error_body(message: str, status_code: int) -> dict:
    return {
        "success": False,
        "error": {
            "message": message,
            "statusCode": status_code,
            "status": "fail" if 400 <= status_code < 500 else "error",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        text = err.get("msg", "valor no válido")
        messages.append(f"{location}: {text}" if location else text)
    return ", ".join(messages) or "Error de validación"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.status_code))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), exc.status_code),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content=error_body(_format_validation_errors(exc), 422))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.is_development else "Error interno del servidor"
    return JSONResponse(status_code=500, content=error_body(message, 500))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
