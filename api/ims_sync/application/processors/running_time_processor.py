"""
Procesador de horas de operacion (jam jalan).

UPSERT item por item sobre (equipment_number, fecha) dentro de la unidad de
trabajo del chunk. No hay pasada de borrado.
"""

from __future__ import annotations

from typing import Any, AbstractSet, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ims_sync.infrastructure.database.models import RunningTimeModel
from ims_sync.infrastructure.database.upsert import bulk_upsert
from ims_sync.infrastructure.external.ims.field_mappings import (
    RUNNING_TIME_MAPPINGS,
    RUNNING_TIME_PLANT_SOURCES,
)
from ims_sync.infrastructure.external.ims.types import RawItem, map_item
from ims_sync.infrastructure.repositories.plant_repository import PlantRepository
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.utils.datetime_utils import DateTimeUtils

from .base import SKIP_MISSING_KEY, BaseProcessor, ChunkStats

KEY_COLUMNS = ("equipment_number", "reading_date")
NON_UPDATABLE = {"equipment_number", "reading_date", "created_at"}


class RunningTimeProcessor(BaseProcessor):
    sync_type = SyncType.RUNNING_TIME
    plant_sources = RUNNING_TIME_PLANT_SOURCES

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
        now = DateTimeUtils.now_utc()

        for item in chunk:
            plant = self.resolve_plant(item, plant_ids, allowed_plant_codes, stats)
            if plant is None:
                continue

            row: dict[str, Any] = map_item(item, RUNNING_TIME_MAPPINGS)
            if row["reading_date"] is None and row["reading_at"] is not None:
                row["reading_date"] = row["reading_at"].date()
            if not row["equipment_number"] or row["reading_date"] is None:
                stats.skip(SKIP_MISSING_KEY)
                continue

            row["plant_id"] = plant[1]
            row["created_at"] = now
            row["updated_at"] = now
            stats.upserted += await bulk_upsert(
                session,
                RunningTimeModel,
                [row],
                key_columns=KEY_COLUMNS,
                update_columns=[c for c in row if c not in NON_UPDATABLE],
            )

        return stats
