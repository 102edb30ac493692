"""
Implementación del repositorio de plantas y catálogos de referencia.
Provee los mapas de lookup que precargan los procesadores por chunk.
"""
from typing import Iterable, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ims_sync.infrastructure.database.models import (
    EquipmentGroupModel,
    PlantModel,
    StationModel,
)
from ims_sync.infrastructure.database.upsert import LOOKUP_BATCH_SIZE, chunked


class PlantRepository:
    """Repositorio para plantas, estaciones y grupos de equipos."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active_plant_codes(self) -> List[str]:
        """Codigos de todas las plantas activas."""
        result = await self.db.execute(
            select(PlantModel.plant_code).where(PlantModel.is_active == True)  # noqa: E712
            .order_by(PlantModel.plant_code)
        )
        return list(result.scalars().all())

    async def get_plant_ids_by_code(self, plant_codes: Iterable[str]) -> dict[str, int]:
        """Mapa codigo -> id para los codigos dados."""
        codes = [c for c in dict.fromkeys(plant_codes) if c]
        mapping: dict[str, int] = {}
        for batch in chunked(codes, LOOKUP_BATCH_SIZE):
            result = await self.db.execute(
                select(PlantModel.plant_code, PlantModel.id).where(PlantModel.plant_code.in_(list(batch)))
            )
            mapping.update({code: plant_id for code, plant_id in result.all()})
        return mapping

    async def get_station_ids(self, plant_ids: Iterable[int]) -> dict[tuple[int, str], int]:
        """Mapa (plant_id, cost_center) -> station_id para las plantas dadas."""
        ids = list(dict.fromkeys(plant_ids))
        mapping: dict[tuple[int, str], int] = {}
        for batch in chunked(ids, LOOKUP_BATCH_SIZE):
            result = await self.db.execute(
                select(StationModel.plant_id, StationModel.cost_center, StationModel.id)
                .where(StationModel.plant_id.in_(list(batch)))
            )
            mapping.update({(plant_id, cost_center): station_id for plant_id, cost_center, station_id in result.all()})
        return mapping

    async def get_group_ids_by_name(self, names: Iterable[str]) -> dict[str, int]:
        """Mapa nombre -> id de grupos de equipos."""
        unique_names = [n for n in dict.fromkeys(names) if n]
        mapping: dict[str, int] = {}
        for batch in chunked(unique_names, LOOKUP_BATCH_SIZE):
            result = await self.db.execute(
                select(EquipmentGroupModel.name, EquipmentGroupModel.id)
                .where(EquipmentGroupModel.name.in_(list(batch)))
            )
            mapping.update({name: group_id for name, group_id in result.all()})
        return mapping
