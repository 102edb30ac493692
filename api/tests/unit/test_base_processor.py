"""
Tests del procesamiento por chunks: atomicidad por chunk y reporte del fallo.
"""
from sqlalchemy import select

import pytest

from ims_sync.application.processors.base import BaseProcessor, ChunkStats, ProcessStats, is_plant_allowed
from ims_sync.infrastructure.database.models import PlantModel
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.exceptions.sync import ChunkProcessingError


class _PlantWriter(BaseProcessor):
    """Escribe una planta por item; falla el chunk si un item trae boom."""

    sync_type = SyncType.EQUIPMENT

    async def process_chunk(self, session, *, chunk, allowed_plant_codes, batch_context):
        stats = ChunkStats()
        for item in chunk:
            session.add(PlantModel(plant_code=item["code"], name=item["code"], is_active=True))
            await session.flush()
            if item.get("boom"):
                raise RuntimeError("constraint violada")
            stats.upserted += 1
        return stats


async def _stored_codes(db_session) -> set[str]:
    return set((await db_session.execute(select(PlantModel.plant_code))).scalars().all())


@pytest.mark.asyncio
async def test_all_chunks_committed(session_factory, db_session):
    processor = _PlantWriter(session_factory, chunk_size=2)

    stats = await processor.process_batch([{"code": f"P{i}"} for i in range(5)])

    assert stats.processed == 5
    assert stats.committed == 5
    assert stats.upserted == 5
    assert await _stored_codes(db_session) == {"P0", "P1", "P2", "P3", "P4"}


@pytest.mark.asyncio
async def test_failed_chunk_rolls_back_only_itself(session_factory, db_session):
    processor = _PlantWriter(session_factory, chunk_size=2)
    items = [{"code": "P1"}, {"code": "P2"}, {"code": "P3"}, {"code": "P4", "boom": True}, {"code": "P5"}]

    with pytest.raises(ChunkProcessingError) as exc_info:
        await processor.process_batch(items)

    error = exc_info.value
    assert error.chunk_index == 1
    assert error.committed_items == 2
    assert error.sync_type == "equipment"
    assert isinstance(error.cause, RuntimeError)
    assert isinstance(error.__cause__, RuntimeError)
    # Chunk 0 confirmado, chunk 1 revertido completo, chunk 2 nunca se ejecuta
    assert await _stored_codes(db_session) == {"P1", "P2"}


@pytest.mark.asyncio
async def test_empty_batch(session_factory):
    stats = await _PlantWriter(session_factory).process_batch([])
    assert stats == ProcessStats()


def test_chunk_size_must_be_positive(session_factory):
    with pytest.raises(ValueError):
        _PlantWriter(session_factory, chunk_size=0)


def test_plant_filter_semantics():
    assert is_plant_allowed("A01", None) is True
    assert is_plant_allowed("A01", frozenset({"A01"})) is True
    assert is_plant_allowed("B02", frozenset({"A01"})) is False
    assert is_plant_allowed("A01", frozenset()) is False
