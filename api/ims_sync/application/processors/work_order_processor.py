"""
Procesador de ordenes de trabajo.

- UPSERT masivo por order_number (las ventanas mensuales son grandes).
- La planta es opcional: si el codigo no existe localmente se guarda el codigo
  con plant_id nulo. Con un filtro de plantas activo, solo entran ordenes de
  plantas permitidas.
- equipment_number solo se conserva si el equipo existe (equipment se procesa antes).
"""

from __future__ import annotations

from typing import Any, AbstractSet, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ims_sync.infrastructure.database.models import EquipmentModel, WorkOrderModel
from ims_sync.infrastructure.database.upsert import bulk_upsert, select_existing
from ims_sync.infrastructure.external.ims.field_mappings import (
    WORK_ORDER_MAPPINGS,
    WORK_ORDER_PLANT_SOURCES,
)
from ims_sync.infrastructure.external.ims.types import RawItem, map_item
from ims_sync.infrastructure.repositories.plant_repository import PlantRepository
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.utils.datetime_utils import DateTimeUtils

from .base import (
    SKIP_MISSING_KEY,
    SKIP_NO_PLANT,
    SKIP_PLANT_NOT_ALLOWED,
    BaseProcessor,
    ChunkStats,
    is_plant_allowed,
)

KEY_COLUMNS = ("order_number",)
NON_UPDATABLE = {"order_number", "created_at"}


class WorkOrderProcessor(BaseProcessor):
    sync_type = SyncType.WORK_ORDERS
    plant_sources = WORK_ORDER_PLANT_SOURCES

    async def process_chunk(
        self,
        session: AsyncSession,
        *,
        chunk: Sequence[RawItem],
        allowed_plant_codes: Optional[AbstractSet[str]],
        batch_context: Any,
    ) -> ChunkStats:
        stats = ChunkStats()
        repo = PlantRepository(session)
        plant_ids = await repo.get_plant_ids_by_code(self.collect_plant_codes(chunk))

        rows: list[dict[str, Any]] = []
        for item in chunk:
            plant_code = self.plant_code_of(item)
            if plant_code is None and allowed_plant_codes is not None:
                stats.skip(SKIP_NO_PLANT)
                continue
            if plant_code is not None and not is_plant_allowed(plant_code, allowed_plant_codes):
                stats.skip(SKIP_PLANT_NOT_ALLOWED)
                continue

            row = map_item(item, WORK_ORDER_MAPPINGS)
            if not row["order_number"]:
                stats.skip(SKIP_MISSING_KEY)
                continue
            row["plant_code"] = plant_code
            row["plant_id"] = plant_ids.get(plant_code) if plant_code else None
            rows.append(row)

        if not rows:
            return stats

        known_equipment = await select_existing(
            session, EquipmentModel.equipment_number, (row["equipment_number"] for row in rows)
        )
        station_ids = await repo.get_station_ids({row["plant_id"] for row in rows if row["plant_id"]})

        now = DateTimeUtils.now_utc()
        for row in rows:
            if row["equipment_number"] not in known_equipment:
                row["equipment_number"] = None
            row["station_id"] = (
                station_ids.get((row["plant_id"], row["cost_center"])) if row["plant_id"] else None
            )
            row["created_at"] = now
            row["updated_at"] = now

        stats.upserted = await bulk_upsert(
            session,
            WorkOrderModel,
            rows,
            key_columns=KEY_COLUMNS,
            update_columns=[c for c in rows[0] if c not in NON_UPDATABLE],
        )
        return stats
