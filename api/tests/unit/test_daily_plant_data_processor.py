from datetime import date

from sqlalchemy import select

import pytest

from ims_sync.application.processors import DailyPlantDataProcessor
from ims_sync.application.processors.base import SKIP_PLANT_NOT_ALLOWED
from ims_sync.infrastructure.database.models import DailyPlantDataModel

TODAY = date(2026, 10, 19)


@pytest.fixture
def processor(session_factory):
    return DailyPlantDataProcessor(session_factory, today_provider=lambda: TODAY)


async def _rows(db_session) -> dict[tuple[int, date], int]:
    result = await db_session.execute(select(DailyPlantDataModel))
    return {(r.plant_id, r.date): r.is_mengolah for r in result.scalars().all()}


@pytest.mark.asyncio
async def test_filters_plants_and_defaults_date(processor, db_session, plants):
    items = [
        {"kode_unit": "A01", "tanggal": "2026-10-18", "is_mengolah": "1"},
        {"kode_unit": "B02", "is_mengolah": 0},
    ]

    stats = await processor.process_batch(items, frozenset({"A01"}))
    assert stats.skipped[SKIP_PLANT_NOT_ALLOWED] == 1
    assert await _rows(db_session) == {(plants["A01"], date(2026, 10, 18)): 1}

    await processor.process_batch(items)
    assert (plants["B02"], TODAY) in await _rows(db_session)


@pytest.mark.asyncio
async def test_upsert_on_plant_and_date(processor, db_session, plants):
    await processor.process_batch([{"plant_code": "A01", "date": "2026-10-18", "is_mengolah": "1"}])
    await processor.process_batch([{"plant_code": "A01", "date": "2026-10-18", "is_mengolah": "0"}])

    assert await _rows(db_session) == {(plants["A01"], date(2026, 10, 18)): 0}


@pytest.mark.asyncio
async def test_default_date_is_local_today(session_factory, db_session, plants):
    processor = DailyPlantDataProcessor(session_factory)

    await processor.process_batch([{"kode_unit": "A01", "is_mengolah": 1}])

    assert await _rows(db_session) == {(plants["A01"], date.today()): 1}
