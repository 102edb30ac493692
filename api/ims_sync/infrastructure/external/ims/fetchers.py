"""
Fetchers por tipo de dominio.

Contrato comun: fetch(plant_codes, date_range) -> lista de dicts planos,
completamente materializada. Las plantas se consultan en lotes concurrentes;
si cualquier lote falla, el fetch completo falla con ImsApiError (no hay
resultados parciales).
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable, Optional, Sequence

from loguru import logger

from ims_sync.infrastructure.database.upsert import chunked
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.utils.date_utils import DateRange

from .ims_client import ImsClient

RawItems = list[dict[str, Any]]


class BaseFetcher:
    """Fetcher de un endpoint IMS que recibe plantas en lotes como cuerpo JSON."""

    sync_type: SyncType
    path: str = ""
    uses_date_range: bool = True

    def __init__(self, client: ImsClient, *, plant_batch_size: int = 5) -> None:
        self._client = client
        self._plant_batch_size = max(1, plant_batch_size)

    @property
    def url(self) -> str:
        return f"{self._client.base_url}/{self.path}"

    def build_params(self, date_range: Optional[DateRange]) -> dict[str, Any]:
        if self.uses_date_range and date_range is not None:
            return date_range.as_params()
        return {}

    async def fetch(self, plant_codes: Iterable[str], date_range: Optional[DateRange] = None) -> RawItems:
        codes = sorted(set(plant_codes))
        if not codes:
            logger.info(f"[{self.sync_type.value}] Sin plantas para consultar")
            return []

        params = self.build_params(date_range)
        batches = list(chunked(codes, self._plant_batch_size))
        logger.info(f"[{self.sync_type.value}] Consultando {len(codes)} planta(s) en {len(batches)} lote(s)")

        responses = await asyncio.gather(
            *[self._fetch_batch(batch, params) for batch in batches]
        )

        items: RawItems = []
        for batch_items in responses:
            items.extend(batch_items)
        logger.info(f"[{self.sync_type.value}] {len(items)} item(s) recibidos de IMS")
        return items

    async def _fetch_batch(self, plant_codes: Sequence[str], params: dict[str, Any]) -> RawItems:
        return await self._client.get_items(
            self.url,
            params=params or None,
            json_body={"plant": list(plant_codes)},
        )


class EquipmentFetcher(BaseFetcher):
    sync_type = SyncType.EQUIPMENT
    path = "equipments"
    uses_date_range = False


class WorkOrderFetcher(BaseFetcher):
    sync_type = SyncType.WORK_ORDERS
    path = "work-order"


class RunningTimeFetcher(BaseFetcher):
    sync_type = SyncType.RUNNING_TIME
    path = "equipments/jam-jalan"


class EquipmentWorkOrderFetcher(BaseFetcher):
    sync_type = SyncType.EQUIPMENT_WORK_ORDERS
    path = "equipments/work-order"


class EquipmentMaterialFetcher(BaseFetcher):
    sync_type = SyncType.EQUIPMENT_MATERIALS
    path = "equipments/material"


class DailyPlantDataFetcher(BaseFetcher):
    """
    Datos diarios de planta (rekapitulasi).

    Este endpoint se consulta por codigo regional, no por planta; los items
    traen `kode_unit` y se filtran por planta en el procesador.
    """

    sync_type = SyncType.DAILY_PLANT_DATA

    def __init__(
        self,
        client: ImsClient,
        *,
        url: str,
        regional_codes: Sequence[str],
        plant_batch_size: int = 5,
    ) -> None:
        super().__init__(client, plant_batch_size=plant_batch_size)
        self._url = url
        self._regional_codes = list(regional_codes)

    @property
    def url(self) -> str:
        return self._url

    async def fetch(self, plant_codes: Iterable[str], date_range: Optional[DateRange] = None) -> RawItems:
        if not set(plant_codes):
            return []

        params = self.build_params(date_range)
        responses = await asyncio.gather(
            *[
                self._client.get_items(self.url, params={**params, "regional": regional})
                for regional in self._regional_codes
            ]
        )

        items: RawItems = []
        for regional_items in responses:
            items.extend(regional_items)
        logger.info(
            f"[{self.sync_type.value}] {len(items)} item(s) de {len(self._regional_codes)} regional(es)"
        )
        return items


def build_fetchers(
    client: ImsClient,
    *,
    plant_batch_size: int,
    daily_plant_url: str,
    regional_codes: Sequence[str],
) -> dict[SyncType, BaseFetcher]:
    """Construye el fetcher de cada tipo de dominio."""
    fetchers: list[BaseFetcher] = [
        EquipmentFetcher(client, plant_batch_size=plant_batch_size),
        WorkOrderFetcher(client, plant_batch_size=plant_batch_size),
        RunningTimeFetcher(client, plant_batch_size=plant_batch_size),
        EquipmentWorkOrderFetcher(client, plant_batch_size=plant_batch_size),
        EquipmentMaterialFetcher(client, plant_batch_size=plant_batch_size),
        DailyPlantDataFetcher(
            client,
            url=daily_plant_url,
            regional_codes=regional_codes,
            plant_batch_size=plant_batch_size,
        ),
    ]
    return {fetcher.sync_type: fetcher for fetcher in fetchers}
