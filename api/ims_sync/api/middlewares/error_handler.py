"""
Middleware para manejo centralizado de errores no controlados.
"""
import time

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Captura errores no controlados y responde con el formato de error comun."""

    async def dispatch(self, request: Request, call_next):
        started = time.monotonic()
        try:
            return await call_next(request)
        except Exception as exc:
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.opt(exception=exc).error(
                f"Error no manejado en {request.method} {request.url.path} "
                f"({elapsed_ms:.0f} ms): {exc}"
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "INTERNAL_SERVER_ERROR",
                    "message": "Ha ocurrido un error interno del servidor",
                    "details": {}
                }
            )
