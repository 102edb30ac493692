"""
Casos de uso de sincronizacion IMS.

SyncOrchestrator ejecuta una corrida completa:
- Resuelve el conjunto de plantas (todas las activas si no se indican).
- Lanza los fetch de todos los tipos seleccionados en paralelo.
- Procesa los tipos en orden fijo de dependencias, uno tras otro.
- Cada tipo tiene su propio Run Log y su error queda aislado: la corrida
  continua con el siguiente tipo.

El alcance de la corrida viaja explicito en un RunContext inmutable; el
orquestador no guarda estado por corrida.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Mapping, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ims_sync.application.dto.sync_dto import SyncTypeResultDTO
from ims_sync.application.processors import (
    BaseProcessor,
    DailyPlantDataProcessor,
    EquipmentMaterialProcessor,
    EquipmentProcessor,
    EquipmentWorkOrderProcessor,
    RunningTimeProcessor,
    WorkOrderProcessor,
)
from ims_sync.core.config import settings
from ims_sync.infrastructure.external.ims.fetchers import BaseFetcher, RawItems, build_fetchers
from ims_sync.infrastructure.external.ims.ims_client import ImsClient, ImsCredentials
from ims_sync.infrastructure.repositories.plant_repository import PlantRepository
from ims_sync.infrastructure.repositories.sync_log_repository import SyncLogRepository
from ims_sync.shared.constants.sync_constants import SYNC_ORDER, SyncType
from ims_sync.shared.exceptions.sync import (
    ChunkProcessingError,
    ImsApiError,
    SyncAlreadyRunningError,
    SyncConfigError,
    UnknownSyncTypeError,
)
from ims_sync.shared.utils.audit_logger import SyncAuditLogger
from ims_sync.shared.utils.date_utils import DateRange, resolve_date_ranges

SyncResults = dict[SyncType, SyncTypeResultDTO]


@dataclass(frozen=True)
class RunContext:
    """
    Alcance inmutable de una corrida.

    - plant_codes: plantas que se consultan en IMS
    - allowed_plant_codes: filtro de procesamiento; sin plantas explicitas son las activas
    - date_ranges: rango por tipo
    - selected_types: tipos a ejecutar, en orden de dependencias
    """

    plant_codes: frozenset[str]
    allowed_plant_codes: Optional[frozenset[str]]
    date_ranges: Mapping[SyncType, DateRange]
    selected_types: tuple[SyncType, ...]

    def date_range_for(self, sync_type: SyncType) -> Optional[DateRange]:
        return self.date_ranges.get(sync_type)


def parse_sync_types(names: Optional[Iterable[str]]) -> Optional[list[SyncType]]:
    """Convierte nombres a SyncType. None se mantiene como "todos"."""
    if names is None:
        return None
    valid = {sync_type.value: sync_type for sync_type in SyncType}
    parsed = []
    for name in names:
        if name not in valid:
            raise UnknownSyncTypeError(name, list(valid))
        parsed.append(valid[name])
    return parsed


class SyncOrchestrator:
    """Orquestador de una corrida de sincronizacion IMS."""

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        fetchers: Mapping[SyncType, BaseFetcher],
        processors: Mapping[SyncType, BaseProcessor],
        sync_logs: Optional[SyncLogRepository] = None,
        fetch_timeout_s: Optional[float] = None,
    ) -> None:
        missing = [t.value for t in SYNC_ORDER if t not in fetchers or t not in processors]
        if missing:
            raise ValueError(f"Faltan fetchers/procesadores para: {missing}")
        self._session_factory = session_factory
        self._fetchers = dict(fetchers)
        self._processors = dict(processors)
        self._sync_logs = sync_logs or SyncLogRepository(session_factory)
        self._fetch_timeout_s = fetch_timeout_s

    @property
    def sync_logs(self) -> SyncLogRepository:
        return self._sync_logs

    async def ensure_not_running(self, sync_types: Iterable[SyncType], window: timedelta) -> None:
        """
        Chequeo consultivo previo a disparar una corrida.

        Raises:
            SyncAlreadyRunningError: si algun tipo tiene una ejecucion abierta reciente
        """
        running = await self._sync_logs.find_running_types([t.value for t in sync_types], window)
        if running:
            raise SyncAlreadyRunningError(running)

    async def build_context(
        self,
        plant_codes: Optional[Iterable[str]] = None,
        date_ranges: Optional[Mapping[SyncType, DateRange]] = None,
        selected_types: Optional[Iterable[SyncType]] = None,
        today: Optional[date] = None,
    ) -> RunContext:
        if plant_codes is None:
            async with self._session_factory() as session:
                codes = frozenset(await PlantRepository(session).get_active_plant_codes())
        else:
            codes = frozenset(code.strip() for code in plant_codes if code and code.strip())

        selected = set(SYNC_ORDER if selected_types is None else selected_types)
        return RunContext(
            plant_codes=codes,
            allowed_plant_codes=codes,
            date_ranges=resolve_date_ranges(date_ranges, today),
            selected_types=tuple(t for t in SYNC_ORDER if t in selected),
        )

    async def sync_all(
        self,
        plant_codes: Optional[Iterable[str]] = None,
        date_ranges: Optional[Mapping[SyncType, DateRange]] = None,
        selected_types: Optional[Iterable[SyncType]] = None,
    ) -> SyncResults:
        """
        Ejecuta la corrida completa.

        Args:
            plant_codes: Plantas a sincronizar. None = todas las activas.
            date_ranges: Rangos por tipo; los omitidos usan el rango por defecto.
            selected_types: Tipos a ejecutar. None = todos.

        Returns:
            Resultado por tipo, en orden de dependencias. Los tipos no
            seleccionados aparecen como skipped.
        """
        started = time.monotonic()
        context = await self.build_context(plant_codes, date_ranges, selected_types)
        logger.info(
            f"Iniciando sync IMS: tipos={[t.value for t in context.selected_types]}, "
            f"plantas={len(context.plant_codes)}"
        )

        log_ids = {t: await self._sync_logs.create_pending(t.value) for t in context.selected_types}

        fetch_tasks: dict[SyncType, asyncio.Task] = {}
        try:
            for sync_type in context.selected_types:
                await self._sync_logs.mark_running(log_ids[sync_type])
                fetch_tasks[sync_type] = asyncio.create_task(self._fetch(sync_type, context))

            results: SyncResults = {}
            for sync_type in SYNC_ORDER:
                if sync_type not in fetch_tasks:
                    results[sync_type] = SyncTypeResultDTO.skipped_result()
                    continue
                results[sync_type] = await self._run_type(
                    sync_type, context, fetch_tasks[sync_type], log_ids[sync_type]
                )
        finally:
            for task in fetch_tasks.values():
                if not task.done():
                    task.cancel()

        SyncAuditLogger.log_run_summary(
            {t.value: r.to_summary() for t, r in results.items()},
            duration_s=time.monotonic() - started,
        )
        return results

    async def _fetch(self, sync_type: SyncType, context: RunContext) -> RawItems:
        fetcher = self._fetchers[sync_type]
        call = fetcher.fetch(context.plant_codes, context.date_range_for(sync_type))
        if self._fetch_timeout_s is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self._fetch_timeout_s)
        except asyncio.TimeoutError as e:
            raise ImsApiError(f"Timeout de {self._fetch_timeout_s}s consultando IMS ({sync_type.value})") from e

    async def _run_type(
        self,
        sync_type: SyncType,
        context: RunContext,
        fetch_task: asyncio.Task,
        log_id: int,
    ) -> SyncTypeResultDTO:
        """Procesa un tipo y finaliza su Run Log. Nunca propaga el error del tipo."""
        name = sync_type.value
        try:
            items = await fetch_task
        except Exception as e:
            message = f"Error obteniendo datos de IMS: {e}"
            logger.error(f"[{name}] {message}")
            SyncAuditLogger.log_failure(name, message)
            await self._sync_logs.finish_failed(log_id, message)
            return SyncTypeResultDTO(error=message)

        processed = len(items)
        if not items:
            logger.info(f"[{name}] IMS no devolvio items")
            await self._sync_logs.finish_success(log_id, processed=0, success=0)
            return SyncTypeResultDTO()

        SyncAuditLogger.log_progress(name, f"Procesando {processed} item(s)")
        try:
            stats = await self._processors[sync_type].process_batch(items, context.allowed_plant_codes)
        except ChunkProcessingError as e:
            failed = processed - e.committed_items
            logger.error(f"[{name}] {e.message}")
            SyncAuditLogger.log_failure(name, e.message)
            await self._sync_logs.finish_failed(
                log_id, e.message, processed=processed, success=e.committed_items, failed=failed
            )
            return SyncTypeResultDTO(processed=processed, success=e.committed_items, failed=failed, error=e.message)
        except Exception as e:
            message = f"Error procesando {name}: {e}"
            logger.exception(f"[{name}] {message}")
            SyncAuditLogger.log_failure(name, message)
            await self._sync_logs.finish_failed(log_id, message, processed=processed, failed=processed)
            return SyncTypeResultDTO(processed=processed, failed=processed, error=message)

        omitted = stats.skipped_total
        success = stats.committed - omitted
        await self._sync_logs.finish_success(log_id, processed=processed, success=success, skipped=omitted)
        logger.success(
            f"[{name}] Sync completado: {success}/{processed} items, "
            f"upserts={stats.upserted}, deletes={stats.deleted}, omitidos={omitted}"
        )
        return SyncTypeResultDTO(processed=processed, success=success, failed=0, omitted=omitted)


def build_sync_orchestrator(
    *,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    client: Optional[ImsClient] = None,
) -> tuple[SyncOrchestrator, ImsClient]:
    """
    Constructor "oficial" del pipeline a partir de settings.

    Retorna tambien el cliente IMS para que el llamador lo cierre.

    Raises:
        SyncConfigError: si falta IMS_BASE_URL
    """
    if session_factory is None:
        from ims_sync.infrastructure.database.session import AsyncSessionLocal
        session_factory = AsyncSessionLocal

    if client is None:
        if not settings.IMS_BASE_URL:
            raise SyncConfigError("Falta variable de entorno obligatoria: IMS_BASE_URL")
        client = ImsClient(
            ImsCredentials(base_url=settings.IMS_BASE_URL, token=settings.IMS_TOKEN),
            timeout_s=settings.IMS_TIMEOUT,
            max_concurrency=settings.IMS_MAX_CONCURRENCY,
            max_retries=settings.IMS_MAX_RETRIES,
        )

    chunk_size = settings.SYNC_CHUNK_SIZE
    processors: dict[SyncType, BaseProcessor] = {
        SyncType.EQUIPMENT: EquipmentProcessor(session_factory, chunk_size=chunk_size),
        SyncType.WORK_ORDERS: WorkOrderProcessor(session_factory, chunk_size=chunk_size),
        SyncType.RUNNING_TIME: RunningTimeProcessor(session_factory, chunk_size=chunk_size),
        SyncType.EQUIPMENT_WORK_ORDERS: EquipmentWorkOrderProcessor(
            session_factory, chunk_size=chunk_size, excluded_prefixes=settings.excluded_material_prefixes
        ),
        SyncType.EQUIPMENT_MATERIALS: EquipmentMaterialProcessor(
            session_factory, chunk_size=chunk_size, excluded_prefixes=settings.excluded_material_prefixes
        ),
        SyncType.DAILY_PLANT_DATA: DailyPlantDataProcessor(session_factory, chunk_size=chunk_size),
    }
    fetchers = build_fetchers(
        client,
        plant_batch_size=settings.IMS_PLANT_BATCH_SIZE,
        daily_plant_url=settings.IMS_DAILY_PLANT_URL,
        regional_codes=settings.regional_codes,
    )
    orchestrator = SyncOrchestrator(
        session_factory=session_factory,
        fetchers=fetchers,
        processors=processors,
        fetch_timeout_s=settings.IMS_FETCH_TIMEOUT,
    )
    return orchestrator, client
