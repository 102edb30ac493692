"""
Procesador de equipos.

Ademas del UPSERT por equipment_number:
- crea los grupos de equipos que aun no existen (por nombre)
- vincula la estacion por (planta, centro de costo)
"""

from __future__ import annotations

from typing import Any, AbstractSet, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ims_sync.infrastructure.database.models import EquipmentGroupModel, EquipmentModel
from ims_sync.infrastructure.database.upsert import bulk_upsert, insert_ignore
from ims_sync.infrastructure.external.ims.field_mappings import (
    EQUIPMENT_GROUP_SOURCES,
    EQUIPMENT_MAPPINGS,
    EQUIPMENT_PLANT_SOURCES,
)
from ims_sync.infrastructure.external.ims.types import RawItem, map_item, resolve_field, to_str
from ims_sync.infrastructure.repositories.plant_repository import PlantRepository
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.utils.datetime_utils import DateTimeUtils

from .base import SKIP_MISSING_KEY, BaseProcessor, ChunkStats

KEY_COLUMNS = ("equipment_number",)
NON_UPDATABLE = {"equipment_number", "created_at"}


class EquipmentProcessor(BaseProcessor):
    sync_type = SyncType.EQUIPMENT
    plant_sources = EQUIPMENT_PLANT_SOURCES

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

        pending: list[tuple[dict[str, Any], Optional[str]]] = []
        for item in chunk:
            plant = self.resolve_plant(item, plant_ids, allowed_plant_codes, stats)
            if plant is None:
                continue
            row = map_item(item, EQUIPMENT_MAPPINGS)
            if not row["equipment_number"]:
                stats.skip(SKIP_MISSING_KEY)
                continue
            row["plant_id"] = plant[1]
            pending.append((row, to_str(resolve_field(item, EQUIPMENT_GROUP_SOURCES))))

        if not pending:
            return stats

        now = DateTimeUtils.now_utc()
        group_ids = await self._ensure_groups(session, repo, {name for _, name in pending if name}, now)
        station_ids = await repo.get_station_ids({row["plant_id"] for row, _ in pending})

        rows = []
        for row, group_name in pending:
            row["equipment_group_id"] = group_ids.get(group_name) if group_name else None
            row["station_id"] = station_ids.get((row["plant_id"], row["cost_center"]))
            row["is_active"] = True
            row["created_at"] = now
            row["updated_at"] = now
            rows.append(row)

        stats.upserted = await bulk_upsert(
            session,
            EquipmentModel,
            rows,
            key_columns=KEY_COLUMNS,
            update_columns=[c for c in rows[0] if c not in NON_UPDATABLE],
        )
        return stats

    async def _ensure_groups(self, session: AsyncSession, repo: PlantRepository, names: set[str], now) -> dict[str, int]:
        """Crea los grupos faltantes (INSERT ... DO NOTHING) y recarga el mapa nombre -> id."""
        if not names:
            return {}
        existing = await repo.get_group_ids_by_name(names)
        missing = sorted(names - existing.keys())
        if not missing:
            return existing

        await insert_ignore(
            session,
            EquipmentGroupModel,
            [
                {"name": name, "description": None, "is_active": True, "created_at": now, "updated_at": now}
                for name in missing
            ],
            key_columns=("name",),
        )
        return await repo.get_group_ids_by_name(names)
