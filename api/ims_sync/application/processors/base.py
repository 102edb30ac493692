"""
Base de los procesadores de sincronizacion.

Un procesador recibe el lote completo de items crudos de un tipo de dominio y:
1. Lo particiona en chunks.
2. Persiste cada chunk en su propia unidad de trabajo (todo o nada).
3. Si un chunk falla, levanta ChunkProcessingError con el indice del chunk y
   la cantidad de items ya confirmados por chunks anteriores.

Los problemas de un item individual (planta ausente, no permitida o
desconocida, llave natural incompleta) no fallan el chunk: el item se omite
y se reporta con un warning agregado por chunk.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from functools import partial
from typing import Any, AbstractSet, Iterable, Mapping, Optional, Sequence

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ims_sync.infrastructure.database.unit_of_work import UnitOfWork
from ims_sync.infrastructure.database.upsert import chunked
from ims_sync.infrastructure.external.ims.types import RawItem, resolve_field, to_str
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.exceptions.sync import ChunkProcessingError
from ims_sync.shared.utils.audit_logger import SyncAuditLogger


# Motivos de omision de items
SKIP_NO_PLANT = "sin codigo de planta"
SKIP_PLANT_NOT_ALLOWED = "planta fuera del alcance de la corrida"
SKIP_UNKNOWN_PLANT = "planta desconocida"
SKIP_MISSING_KEY = "llave natural incompleta"
SKIP_EXCLUDED_MATERIAL = "material con prefijo excluido"


@dataclass
class ChunkStats:
    """Contadores de un chunk confirmado."""

    upserted: int = 0
    deleted: int = 0
    skipped: Counter = field(default_factory=Counter)

    def skip(self, reason: str) -> None:
        self.skipped[reason] += 1


@dataclass
class ProcessStats:
    """Resumen de process_batch."""

    processed: int = 0
    committed: int = 0
    upserted: int = 0
    deleted: int = 0
    skipped: Counter = field(default_factory=Counter)

    def add_chunk(self, chunk_size: int, chunk: ChunkStats) -> None:
        self.committed += chunk_size
        self.upserted += chunk.upserted
        self.deleted += chunk.deleted
        self.skipped.update(chunk.skipped)

    @property
    def skipped_total(self) -> int:
        return sum(self.skipped.values())


class BaseProcessor:
    """Procesador generico: chunking, unidad de trabajo y resolucion de planta."""

    sync_type: SyncType
    plant_sources: tuple[str, ...] = ()

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        chunk_size: int = 1000,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size debe ser >= 1")
        self._uow = UnitOfWork(session_factory)
        self._chunk_size = chunk_size

    async def process_batch(
        self,
        items: Iterable[RawItem],
        allowed_plant_codes: Optional[AbstractSet[str]] = None,
    ) -> ProcessStats:
        """
        Persiste un lote completo.

        Args:
            items: Items crudos de IMS
            allowed_plant_codes: Plantas permitidas en esta corrida. None = sin filtro.

        Raises:
            ChunkProcessingError: si un chunk falla (ese chunk queda revertido)
        """
        items = list(items)
        stats = ProcessStats(processed=len(items))
        if not items:
            return stats

        batch_context = self.prepare_batch(items, allowed_plant_codes)
        chunks = list(chunked(items, self._chunk_size))

        for index, chunk in enumerate(chunks):
            work = partial(
                self.process_chunk,
                chunk=chunk,
                allowed_plant_codes=allowed_plant_codes,
                batch_context=batch_context,
            )
            outcome = await self._uow.run(work)
            if not outcome.committed:
                logger.error(f"[{self.sync_type.value}] Chunk {index + 1}/{len(chunks)} revertido: {outcome.error}")
                raise ChunkProcessingError(
                    sync_type=self.sync_type.value,
                    chunk_index=index,
                    committed_items=stats.committed,
                    cause=outcome.error,
                ) from outcome.error

            chunk_stats: ChunkStats = outcome.value
            stats.add_chunk(len(chunk), chunk_stats)
            self._log_skips(index, chunk_stats)
            SyncAuditLogger.log_progress(
                self.sync_type.value,
                f"Chunk {index + 1}/{len(chunks)}: {stats.committed}/{stats.processed} items "
                f"(upserts={chunk_stats.upserted}, deletes={chunk_stats.deleted})",
            )

        return stats

    def prepare_batch(
        self,
        items: Sequence[RawItem],
        allowed_plant_codes: Optional[AbstractSet[str]],
    ) -> Any:
        """Hook para calculos sobre el lote completo antes del primer chunk."""
        return None

    async def process_chunk(
        self,
        session: AsyncSession,
        *,
        chunk: Sequence[RawItem],
        allowed_plant_codes: Optional[AbstractSet[str]],
        batch_context: Any,
    ) -> ChunkStats:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Helpers de resolucion de planta
    # ------------------------------------------------------------------

    def plant_code_of(self, item: RawItem) -> Optional[str]:
        return to_str(resolve_field(item, self.plant_sources))

    def collect_plant_codes(self, chunk: Sequence[RawItem]) -> set[str]:
        return {code for code in (self.plant_code_of(item) for item in chunk) if code}

    def resolve_plant(
        self,
        item: RawItem,
        plant_ids: Mapping[str, int],
        allowed_plant_codes: Optional[AbstractSet[str]],
        stats: ChunkStats,
    ) -> Optional[tuple[str, int]]:
        """
        Resuelve (codigo, id) de la planta del item respetando el alcance.
        Retorna None (y registra el motivo) si el item debe omitirse.
        """
        code = self.plant_code_of(item)
        if not code:
            stats.skip(SKIP_NO_PLANT)
            return None
        if not is_plant_allowed(code, allowed_plant_codes):
            stats.skip(SKIP_PLANT_NOT_ALLOWED)
            return None
        plant_id = plant_ids.get(code)
        if plant_id is None:
            stats.skip(SKIP_UNKNOWN_PLANT)
            return None
        return code, plant_id

    def _log_skips(self, index: int, chunk_stats: ChunkStats) -> None:
        for reason, count in chunk_stats.skipped.items():
            logger.warning(f"[{self.sync_type.value}] Chunk {index + 1}: {count} item(s) omitidos ({reason})")


def is_plant_allowed(plant_code: str, allowed_plant_codes: Optional[AbstractSet[str]]) -> bool:
    """None significa sin filtro; un conjunto (aun vacio) filtra estrictamente."""
    return allowed_plant_codes is None or plant_code in allowed_plant_codes
