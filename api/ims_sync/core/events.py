"""
Manejadores de eventos de inicio y cierre de la aplicacion.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI
from loguru import logger

from ims_sync.core.config import settings
from ims_sync.infrastructure.database.session import init_db, close_db
from ims_sync.shared.utils.audit_logger import SyncAuditLogger


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de inicio
    """
    async def startup() -> None:
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            _validate_config()

            # Crea tablas si no existen (alembic sigue siendo la fuente de verdad)
            await init_db()
            logger.info("Base de datos inicializada")

            SyncAuditLogger.initialize()
            logger.info("Log de auditoria de sync inicializado")

            app.state.log_sink_id = logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            logger.success("Aplicacion iniciada correctamente")
        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuracion critica este presente."""
    warnings = []

    if not settings.IMS_BASE_URL:
        warnings.append("IMS_BASE_URL no configurada - la sincronizacion fallara")
    if not settings.IMS_TOKEN:
        warnings.append("IMS_TOKEN no configurado - IMS rechazara las consultas")
    if not settings.WEBHOOK_API_KEY:
        warnings.append("WEBHOOK_API_KEY no configurada - el webhook de sync queda cerrado")

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicacion.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Funcion asincrona de cierre
    """
    async def shutdown() -> None:
        logger.info("Cerrando aplicacion...")

        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        SyncAuditLogger.shutdown()
        sink_id = getattr(app.state, "log_sink_id", None)
        if sink_id is not None:
            logger.remove(sink_id)
            app.state.log_sink_id = None
        logger.success("Aplicacion cerrada correctamente")

    return shutdown


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Ciclo de vida de la aplicacion: startup antes de servir, shutdown al cerrar."""
    await startup_handler(app)()
    try:
        yield
    finally:
        await shutdown_handler(app)()
