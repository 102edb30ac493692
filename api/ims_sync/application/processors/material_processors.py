"""
Procesadores de lineas de material: feed de ordenes (equipment_work_orders)
y feed de materiales (equipment_materials).

Reglas comunes:
- Ambos feeds aceptan los nombres de campo de cualquiera de las dos
  representaciones y se normalizan al mismo esquema.
- Materiales con prefijo excluido (por defecto 11, 12, 31) nunca se persisten.
- Un item con flag de borrado elimina la fila en su llave natural y nunca se
  inserta. Dentro de un chunk, la ultima ocurrencia de una llave decide si
  se escribe o se borra.

equipment_materials ademas:
- valida production_order contra work_orders (si no existe, queda nulo)
- completa equipment_number por numero de reserva desde equipment_work_orders
- reconcilia borrados por (planta, orden): tras el lote, las filas de cada par
  presente son exactamente los materiales vigentes del lote.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AbstractSet, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ims_sync.infrastructure.database.models import (
    EquipmentMaterialModel,
    EquipmentWorkOrderModel,
    WorkOrderModel,
)
from ims_sync.infrastructure.database.upsert import (
    LOOKUP_BATCH_SIZE,
    bulk_upsert,
    chunked,
    delete_by_keys,
    select_existing,
)
from ims_sync.infrastructure.external.ims.field_mappings import (
    DELETION_FLAG_SOURCES,
    EQUIPMENT_MATERIAL_MAPPINGS,
    EQUIPMENT_WORK_ORDER_MAPPINGS,
    MATERIAL_ORDER_SOURCES,
    MATERIAL_PLANT_SOURCES,
)
from ims_sync.infrastructure.external.ims.types import (
    FieldMapping,
    RawItem,
    has_excluded_prefix,
    is_flag_set,
    map_item,
    resolve_field,
    to_str,
)
from ims_sync.infrastructure.repositories.plant_repository import PlantRepository
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.utils.datetime_utils import DateTimeUtils

from .base import (
    SKIP_EXCLUDED_MATERIAL,
    SKIP_MISSING_KEY,
    BaseProcessor,
    ChunkStats,
    is_plant_allowed,
)

DEFAULT_EXCLUDED_PREFIXES = ("11", "12", "31")


@dataclass(frozen=True)
class MaterialAction:
    """Decision final para una llave natural dentro de un chunk."""

    delete: bool
    row: Optional[dict[str, Any]] = None


class MaterialLineProcessor(BaseProcessor):
    """Base comun de los dos feeds de materiales."""

    plant_sources = MATERIAL_PLANT_SOURCES
    model: Any
    mappings: tuple[FieldMapping, ...]
    # Columnas de la llave natural, en el orden de la restriccion unica
    key_columns: tuple[str, ...]

    def __init__(
        self,
        session_factory,
        *,
        chunk_size: int = 1000,
        excluded_prefixes: Sequence[str] = DEFAULT_EXCLUDED_PREFIXES,
    ) -> None:
        super().__init__(session_factory, chunk_size=chunk_size)
        self._excluded_prefixes = tuple(excluded_prefixes)

    def is_excluded(self, material_number: Optional[str]) -> bool:
        return has_excluded_prefix(material_number, self._excluded_prefixes)

    @staticmethod
    def is_deleted(item: RawItem) -> bool:
        return is_flag_set(resolve_field(item, DELETION_FLAG_SOURCES))

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

        actions: dict[tuple, MaterialAction] = {}
        for item in chunk:
            plant = self.resolve_plant(item, plant_ids, allowed_plant_codes, stats)
            if plant is None:
                continue
            row = map_item(item, self.mappings)
            row["plant_id"] = plant[1]
            if any(not row[c] for c in self.key_columns):
                stats.skip(SKIP_MISSING_KEY)
                continue
            if self.is_excluded(row["material_number"]):
                stats.skip(SKIP_EXCLUDED_MATERIAL)
                continue

            key = tuple(row[c] for c in self.key_columns)
            # Reinsertar mueve la llave al final: gana la ultima ocurrencia
            actions.pop(key, None)
            if self.is_deleted(item):
                actions[key] = MaterialAction(delete=True)
            else:
                actions[key] = MaterialAction(delete=False, row=row)

        rows = [action.row for action in actions.values() if not action.delete]
        delete_keys = [key for key, action in actions.items() if action.delete]

        if rows:
            await self.enrich_rows(session, rows)
            now = DateTimeUtils.now_utc()
            for row in rows:
                row["created_at"] = now
                row["updated_at"] = now
            stats.upserted = await bulk_upsert(
                session,
                self.model,
                rows,
                key_columns=self.key_columns,
                update_columns=[c for c in rows[0] if c not in self.key_columns and c != "created_at"],
            )

        stats.deleted = await delete_by_keys(session, self.model, delete_keys, key_columns=self.key_columns)
        stats.deleted += await self.reconcile(session, chunk, plant_ids, batch_context)
        return stats

    async def enrich_rows(self, session: AsyncSession, rows: list[dict[str, Any]]) -> None:
        """Hook para completar columnas que dependen de la base."""

    async def reconcile(self, session: AsyncSession, chunk, plant_ids, batch_context) -> int:
        """Hook de reconciliacion de borrados. Retorna filas eliminadas."""
        return 0


class EquipmentWorkOrderProcessor(MaterialLineProcessor):
    """Lineas de material por orden, llave (planta, orden, material)."""

    sync_type = SyncType.EQUIPMENT_WORK_ORDERS
    model = EquipmentWorkOrderModel
    mappings = EQUIPMENT_WORK_ORDER_MAPPINGS
    key_columns = ("plant_id", "order_number", "material_number")


class EquipmentMaterialProcessor(MaterialLineProcessor):
    """Reservas de material, llave (planta, material, orden)."""

    sync_type = SyncType.EQUIPMENT_MATERIALS
    model = EquipmentMaterialModel
    mappings = EQUIPMENT_MATERIAL_MAPPINGS
    key_columns = ("plant_id", "material_number", "order_number")

    def prepare_batch(
        self,
        items: Sequence[RawItem],
        allowed_plant_codes: Optional[AbstractSet[str]],
    ) -> dict[tuple[str, str], set[str]]:
        """
        Materiales vigentes por (codigo de planta, orden) sobre el lote completo.

        Un par presente en el lote cuyos materiales fueron todos borrados o
        excluidos queda con un conjunto vacio: todas sus filas se eliminan.
        """
        latest: dict[tuple[str, str], dict[str, bool]] = {}
        for item in items:
            plant_code = self.plant_code_of(item)
            if not plant_code or not is_plant_allowed(plant_code, allowed_plant_codes):
                continue
            row = map_item(item, self.mappings)
            order_number, material_number = row["order_number"], row["material_number"]
            if not order_number or not material_number:
                continue
            retained = not self.is_excluded(material_number) and not self.is_deleted(item)
            latest.setdefault((plant_code, order_number), {})[material_number] = retained

        return {
            pair: {material for material, retained in materials.items() if retained}
            for pair, materials in latest.items()
        }

    async def enrich_rows(self, session: AsyncSession, rows: list[dict[str, Any]]) -> None:
        known_orders = await select_existing(
            session, WorkOrderModel.order_number, (row["order_number"] for row in rows)
        )
        equipment_by_reservation = await self._equipment_by_reservation(
            session, (row["reservation_number"] for row in rows if not row["equipment_number"])
        )
        for row in rows:
            row["production_order"] = row["order_number"] if row["order_number"] in known_orders else None
            if not row["equipment_number"]:
                row["equipment_number"] = equipment_by_reservation.get(row["reservation_number"])

    @staticmethod
    async def _equipment_by_reservation(session: AsyncSession, reservations) -> dict[str, str]:
        """Equipo de cada reserva segun las lineas del feed de ordenes."""
        distinct = [r for r in dict.fromkeys(reservations) if r]
        found: dict[str, str] = {}
        for batch in chunked(distinct, LOOKUP_BATCH_SIZE):
            result = await session.execute(
                select(EquipmentWorkOrderModel.reservation_number, EquipmentWorkOrderModel.equipment_number)
                .where(EquipmentWorkOrderModel.reservation_number.in_(list(batch)))
                .where(EquipmentWorkOrderModel.equipment_number.is_not(None))
                .order_by(EquipmentWorkOrderModel.id)
            )
            for reservation, equipment_number in result.all():
                found.setdefault(reservation, equipment_number)
        return found

    async def reconcile(self, session: AsyncSession, chunk, plant_ids, batch_context) -> int:
        retained_by_pair: dict[tuple[str, str], set[str]] = batch_context or {}
        pairs = set()
        for item in chunk:
            plant_code = self.plant_code_of(item)
            order_number = to_str(resolve_field(item, MATERIAL_ORDER_SOURCES))
            if (plant_code, order_number) in retained_by_pair and plant_code in plant_ids:
                pairs.add((plant_code, order_number))

        stale_ids: list[int] = []
        for plant_code, order_number in sorted(pairs):
            retained = retained_by_pair[(plant_code, order_number)]
            result = await session.execute(
                select(EquipmentMaterialModel.id, EquipmentMaterialModel.material_number).where(
                    EquipmentMaterialModel.plant_id == plant_ids[plant_code],
                    EquipmentMaterialModel.order_number == order_number,
                )
            )
            stale_ids.extend(row_id for row_id, material in result.all() if material not in retained)

        deleted = 0
        for batch in chunked(stale_ids, LOOKUP_BATCH_SIZE):
            result = await session.execute(
                delete(EquipmentMaterialModel).where(EquipmentMaterialModel.id.in_(list(batch)))
            )
            deleted += result.rowcount or 0
        return deleted
