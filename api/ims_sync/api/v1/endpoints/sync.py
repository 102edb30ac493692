"""
Endpoints para disparar la sincronizacion IMS (webhook) y consultar el Run Log.
"""
from datetime import timedelta
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from loguru import logger

from ims_sync.api.v1.dependencies.sync_deps import (
    get_sync_log_repository,
    get_sync_orchestrator,
    verify_webhook_api_key,
)
from ims_sync.application.dto.sync_dto import (
    SyncLogDTO,
    SyncRequestDTO,
    SyncResponseDTO,
)
from ims_sync.application.use_cases.sync_use_cases import SyncOrchestrator, parse_sync_types
from ims_sync.core.config import settings
from ims_sync.infrastructure.repositories.sync_log_repository import SyncLogRepository
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.utils.date_utils import DateRange


router = APIRouter(
    prefix="/sync",
    tags=["Sync"],
    dependencies=[Depends(verify_webhook_api_key)],
)

# Tipos que consultan IMS con rango de fechas
DATED_SYNC_TYPES = tuple(t for t in SyncType if t != SyncType.EQUIPMENT)


def _date_overrides(request: SyncRequestDTO) -> Optional[dict[SyncType, DateRange]]:
    if request.start_date is None or request.end_date is None:
        return None
    date_range = DateRange(request.start_date, request.end_date)
    return {sync_type: date_range for sync_type in DATED_SYNC_TYPES}


async def _run_sync(
    orchestrator: SyncOrchestrator,
    request: SyncRequestDTO,
    selected_types: Optional[List[SyncType]],
) -> SyncResponseDTO:
    types_to_check = selected_types or list(SyncType)
    if not request.force:
        await orchestrator.ensure_not_running(
            types_to_check, timedelta(minutes=settings.SYNC_LOCK_WINDOW_MINUTES)
        )

    logger.info(f"Webhook de sync recibido: tipos={[t.value for t in types_to_check]}")
    results = await orchestrator.sync_all(
        plant_codes=request.plant_codes,
        date_ranges=_date_overrides(request),
        selected_types=selected_types,
    )

    failed = [t.value for t, result in results.items() if result.is_error]
    message = (
        f"Sincronizacion completada con errores en: {', '.join(failed)}"
        if failed
        else "Sincronizacion completada"
    )
    return SyncResponseDTO(
        success=not failed,
        message=message,
        results={t.value: result for t, result in results.items()},
    )


@router.post(
    "",
    response_model=SyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar todos los tipos desde IMS"
)
async def sync_all(
    request: Optional[SyncRequestDTO] = Body(default=None),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> SyncResponseDTO:
    """
    Ejecuta una corrida completa en orden de dependencias:
    equipment -> work_orders -> running_time -> equipment_work_orders ->
    equipment_materials -> daily_plant_data.

    Responde 409 si hay una corrida reciente sin finalizar (salvo force=true).
    """
    return await _run_sync(orchestrator, request or SyncRequestDTO(), None)


@router.post(
    "/{sync_type}",
    response_model=SyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar un tipo desde IMS"
)
async def sync_one(
    sync_type: str,
    request: Optional[SyncRequestDTO] = Body(default=None),
    orchestrator: SyncOrchestrator = Depends(get_sync_orchestrator),
) -> SyncResponseDTO:
    """Ejecuta la sincronizacion de un solo tipo de dominio."""
    selected = parse_sync_types([sync_type])
    return await _run_sync(orchestrator, request or SyncRequestDTO(), selected)


@router.get(
    "/logs",
    response_model=List[SyncLogDTO],
    summary="Ultimas ejecuciones del Run Log"
)
async def list_sync_logs(
    limit: int = Query(50, ge=1, le=500),
    sync_type: Optional[str] = Query(None),
    sync_logs: SyncLogRepository = Depends(get_sync_log_repository),
) -> List[SyncLogDTO]:
    if sync_type is not None:
        parse_sync_types([sync_type])
    logs = await sync_logs.list_recent(limit=limit, sync_type=sync_type)
    return [SyncLogDTO.model_validate(log) for log in logs]
