"""
Dependencias para inyeccion del orquestador de sincronizacion y validacion del webhook.
"""
import secrets
from typing import AsyncGenerator, Optional

from fastapi import Header

from ims_sync.application.use_cases.sync_use_cases import SyncOrchestrator, build_sync_orchestrator
from ims_sync.core.config import settings
from ims_sync.infrastructure.database.session import AsyncSessionLocal
from ims_sync.infrastructure.repositories.sync_log_repository import SyncLogRepository
from ims_sync.shared.exceptions.base import AuthenticationException


async def verify_webhook_api_key(x_api_key: Optional[str] = Header(default=None)) -> None:
    """
    Valida el header X-API-Key contra WEBHOOK_API_KEY.

    Sin WEBHOOK_API_KEY configurada el webhook queda cerrado.
    """
    if not settings.WEBHOOK_API_KEY or not x_api_key:
        raise AuthenticationException()
    if not secrets.compare_digest(x_api_key, settings.WEBHOOK_API_KEY):
        raise AuthenticationException()


async def get_sync_orchestrator() -> AsyncGenerator[SyncOrchestrator, None]:
    """
    Dependencia para obtener el orquestador de sincronizacion.

    Yields:
        SyncOrchestrator: Orquestador con cliente IMS propio (se cierra al terminar)
    """
    orchestrator, client = build_sync_orchestrator()
    try:
        yield orchestrator
    finally:
        await client.aclose()


def get_sync_log_repository() -> SyncLogRepository:
    """Dependencia para consultar el Run Log sin requerir credenciales IMS."""
    return SyncLogRepository(AsyncSessionLocal)
