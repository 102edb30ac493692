"""
Procesador de datos diarios de planta (rekapitulasi).

El endpoint se consulta por regional, asi que el lote puede traer plantas
fuera del alcance: el filtro por planta se aplica aqui. Llave (planta, fecha);
si el item no trae fecha se usa el dia de procesamiento.
"""

from __future__ import annotations

from datetime import date
from typing import Any, AbstractSet, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ims_sync.infrastructure.database.models import DailyPlantDataModel
from ims_sync.infrastructure.database.upsert import bulk_upsert
from ims_sync.infrastructure.external.ims.field_mappings import (
    DAILY_PLANT_DATE_SOURCES,
    DAILY_PLANT_FLAG_SOURCES,
    DAILY_PLANT_SOURCES,
)
from ims_sync.infrastructure.external.ims.types import RawItem, resolve_field, to_int_flag
from ims_sync.infrastructure.repositories.plant_repository import PlantRepository
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.utils.datetime_utils import DateTimeUtils, parse_date

from .base import BaseProcessor, ChunkStats

KEY_COLUMNS = ("plant_id", "date")


class DailyPlantDataProcessor(BaseProcessor):
    sync_type = SyncType.DAILY_PLANT_DATA
    plant_sources = DAILY_PLANT_SOURCES

    def __init__(self, session_factory, *, chunk_size: int = 1000, today_provider=DateTimeUtils.today) -> None:
        super().__init__(session_factory, chunk_size=chunk_size)
        self._today_provider = today_provider

    async def process_chunk(
        self,
        session: AsyncSession,
        *,
        chunk: Sequence[RawItem],
        allowed_plant_codes: Optional[AbstractSet[str]],
        batch_context: Any,
    ) -> ChunkStats:
        stats = ChunkStats()
        plant_ids = await PlantRepository(session).get_plant_ids_by_code(self.collect_plant_codes(chunk))
        today: date = self._today_provider()
        now = DateTimeUtils.now_utc()

        rows = []
        for item in chunk:
            plant = self.resolve_plant(item, plant_ids, allowed_plant_codes, stats)
            if plant is None:
                continue
            rows.append({
                "plant_id": plant[1],
                "date": parse_date(resolve_field(item, DAILY_PLANT_DATE_SOURCES)) or today,
                "is_mengolah": to_int_flag(resolve_field(item, DAILY_PLANT_FLAG_SOURCES)),
                "created_at": now,
                "updated_at": now,
            })

        stats.upserted = await bulk_upsert(
            session,
            DailyPlantDataModel,
            rows,
            key_columns=KEY_COLUMNS,
            update_columns=("is_mengolah", "updated_at"),
        )
        return stats
