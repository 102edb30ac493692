"""
Repositorio del Run Log (tabla api_sync_logs).

Cada operacion abre una sesion corta y confirma de inmediato, de modo que el
estado del Run Log queda visible aunque el procesamiento del tipo falle y
revierta su propia transaccion.

Transiciones validas: pending -> running -> {completed, failed}.
Un registro finalizado nunca vuelve a modificarse.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ims_sync.infrastructure.database.models import ApiSyncLogModel
from ims_sync.shared.constants.sync_constants import (
    MAX_ERROR_MESSAGE_LENGTH,
    OPEN_SYNC_STATUSES,
    SyncStatus,
)
from ims_sync.shared.utils.datetime_utils import DateTimeUtils


class SyncLogRepository:
    """Persistencia del ciclo de vida de cada ejecucion por tipo de dominio."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create_pending(self, sync_type: str, started_at: Optional[datetime] = None) -> int:
        """Crea el registro en estado pending y retorna su id."""
        async with self._session_factory() as session:
            log = ApiSyncLogModel(
                sync_type=sync_type,
                status=SyncStatus.PENDING,
                records_processed=0,
                records_success=0,
                records_failed=0,
                records_skipped=0,
                sync_started_at=started_at or DateTimeUtils.now_utc(),
            )
            session.add(log)
            await session.flush()
            log_id = log.id
            await session.commit()
            return log_id

    async def mark_running(self, log_id: int) -> bool:
        return await self._transition(
            log_id,
            allowed_from=(SyncStatus.PENDING,),
            values={"status": SyncStatus.RUNNING},
        )

    async def finish_success(
        self, log_id: int, *, processed: int, success: int, failed: int = 0, skipped: int = 0
    ) -> bool:
        return await self._transition(
            log_id,
            allowed_from=OPEN_SYNC_STATUSES,
            values={
                "status": SyncStatus.COMPLETED,
                "records_processed": processed,
                "records_success": success,
                "records_failed": failed,
                "records_skipped": skipped,
                "error_message": None,
                "sync_completed_at": DateTimeUtils.now_utc(),
            },
        )

    async def finish_failed(
        self,
        log_id: int,
        error_message: str,
        *,
        processed: int = 0,
        success: int = 0,
        failed: int = 0,
    ) -> bool:
        return await self._transition(
            log_id,
            allowed_from=OPEN_SYNC_STATUSES,
            values={
                "status": SyncStatus.FAILED,
                "records_processed": processed,
                "records_success": success,
                "records_failed": failed,
                "error_message": (error_message or "")[:MAX_ERROR_MESSAGE_LENGTH],
                "sync_completed_at": DateTimeUtils.now_utc(),
            },
        )

    async def _transition(self, log_id: int, *, allowed_from: Iterable[SyncStatus], values: dict) -> bool:
        """
        UPDATE condicionado al estado actual. Retorna False (con warning) si el
        registro ya no estaba en un estado desde el que se permite la transicion.
        """
        async with self._session_factory() as session:
            result = await session.execute(
                update(ApiSyncLogModel)
                .where(ApiSyncLogModel.id == log_id)
                .where(ApiSyncLogModel.status.in_(list(allowed_from)))
                .values(**values)
            )
            await session.commit()

        if not result.rowcount:
            logger.warning(
                f"Run Log {log_id}: transicion a '{values['status'].value}' ignorada "
                f"(estado actual no lo permite)"
            )
            return False
        return True

    async def get(self, log_id: int) -> Optional[ApiSyncLogModel]:
        async with self._session_factory() as session:
            return await session.get(ApiSyncLogModel, log_id)

    async def list_recent(self, limit: int = 50, sync_type: Optional[str] = None) -> List[ApiSyncLogModel]:
        """Ultimas ejecuciones, mas recientes primero."""
        async with self._session_factory() as session:
            query = select(ApiSyncLogModel).order_by(
                ApiSyncLogModel.sync_started_at.desc(), ApiSyncLogModel.id.desc()
            )
            if sync_type:
                query = query.where(ApiSyncLogModel.sync_type == sync_type)
            result = await session.execute(query.limit(limit))
            return list(result.scalars().all())

    async def find_running_types(self, sync_types: Iterable[str], window: timedelta) -> List[str]:
        """
        Chequeo consultivo de exclusion: tipos con una ejecucion abierta
        (pending/running) iniciada dentro de la ventana.

        No es un lock: dos disparos simultaneos pueden pasar ambos el chequeo.
        """
        types = list(sync_types)
        if not types:
            return []
        since = DateTimeUtils.now_utc() - window
        async with self._session_factory() as session:
            result = await session.execute(
                select(ApiSyncLogModel.sync_type)
                .where(ApiSyncLogModel.sync_type.in_(types))
                .where(ApiSyncLogModel.status.in_(list(OPEN_SYNC_STATUSES)))
                .where(ApiSyncLogModel.sync_started_at >= since)
                .distinct()
            )
            return sorted(result.scalars().all())
