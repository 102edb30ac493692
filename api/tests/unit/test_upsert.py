"""
Tests de escrituras masivas por llave natural sobre SQLite.
"""
from datetime import date, timedelta

import pytest
from sqlalchemy import func, select

from ims_sync.infrastructure.database.models import DailyPlantDataModel, EquipmentGroupModel
from ims_sync.infrastructure.database.upsert import (
    bulk_upsert,
    chunked,
    dedupe_by_key,
    delete_by_keys,
    insert_ignore,
    max_bind_params,
    rows_per_statement,
    select_existing,
)
from ims_sync.shared.utils.datetime_utils import DateTimeUtils


def _daily_rows(plant_id: int, days: int, flag: int) -> list[dict]:
    now = DateTimeUtils.now_utc()
    start = date(2024, 1, 1)
    return [
        {
            "plant_id": plant_id,
            "date": start + timedelta(days=offset),
            "is_mengolah": flag,
            "created_at": now,
            "updated_at": now,
        }
        for offset in range(days)
    ]


class TestPureHelpers:

    def test_chunked(self):
        assert [list(c) for c in chunked([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]
        assert list(chunked([], 3)) == []
        with pytest.raises(ValueError):
            list(chunked([1], 0))

    def test_rows_per_statement(self):
        assert rows_per_statement(10, 999) == 99
        assert rows_per_statement(35, 65535) == 1872
        assert rows_per_statement(2000, 999) == 1
        with pytest.raises(ValueError):
            rows_per_statement(0, 999)

    def test_dedupe_keeps_last_value_at_first_position(self):
        rows = [
            {"k": 1, "v": "a"},
            {"k": 2, "v": "b"},
            {"k": 1, "v": "c"},
        ]
        assert dedupe_by_key(rows, ("k",)) == [{"k": 1, "v": "c"}, {"k": 2, "v": "b"}]


class TestBulkUpsert:

    @pytest.mark.asyncio
    async def test_sqlite_bind_limit(self, db_session):
        assert max_bind_params(db_session) == 999

    @pytest.mark.asyncio
    async def test_splits_statements_and_updates_on_conflict(self, db_session, plants):
        # 600 filas x 5 columnas supera el limite de 999 parametros de SQLite
        written = await bulk_upsert(
            db_session,
            DailyPlantDataModel,
            _daily_rows(plants["A01"], 600, 0),
            key_columns=("plant_id", "date"),
            update_columns=("is_mengolah", "updated_at"),
        )
        await db_session.commit()
        assert written == 600

        await bulk_upsert(
            db_session,
            DailyPlantDataModel,
            _daily_rows(plants["A01"], 600, 1),
            key_columns=("plant_id", "date"),
            update_columns=("is_mengolah", "updated_at"),
        )
        await db_session.commit()

        total = await db_session.scalar(select(func.count()).select_from(DailyPlantDataModel))
        active = await db_session.scalar(
            select(func.count()).select_from(DailyPlantDataModel).where(DailyPlantDataModel.is_mengolah == 1)
        )
        assert total == 600
        assert active == 600

    @pytest.mark.asyncio
    async def test_duplicate_keys_in_same_batch_collapse(self, db_session, plants):
        rows = _daily_rows(plants["A01"], 1, 0) + _daily_rows(plants["A01"], 1, 1)

        written = await bulk_upsert(
            db_session,
            DailyPlantDataModel,
            rows,
            key_columns=("plant_id", "date"),
            update_columns=("is_mengolah",),
        )
        await db_session.commit()

        assert written == 1
        stored = (await db_session.execute(select(DailyPlantDataModel))).scalars().all()
        assert [r.is_mengolah for r in stored] == [1]

    @pytest.mark.asyncio
    async def test_empty_rows_is_noop(self, db_session):
        assert await bulk_upsert(
            db_session, DailyPlantDataModel, [], key_columns=("plant_id", "date"), update_columns=()
        ) == 0

    @pytest.mark.asyncio
    async def test_missing_key_column_raises(self, db_session):
        with pytest.raises(ValueError):
            await bulk_upsert(
                db_session,
                DailyPlantDataModel,
                [{"date": date(2024, 1, 1), "is_mengolah": 1}],
                key_columns=("plant_id", "date"),
                update_columns=("is_mengolah",),
            )


class TestDeleteAndLookups:

    @pytest.mark.asyncio
    async def test_delete_by_keys(self, db_session, plants):
        await bulk_upsert(
            db_session,
            DailyPlantDataModel,
            _daily_rows(plants["A01"], 5, 0),
            key_columns=("plant_id", "date"),
            update_columns=("is_mengolah",),
        )

        deleted = await delete_by_keys(
            db_session,
            DailyPlantDataModel,
            [
                (plants["A01"], date(2024, 1, 1)),
                (plants["A01"], date(2024, 1, 2)),
                (plants["A01"], date(2024, 1, 2)),
                (plants["B02"], date(2024, 1, 3)),
            ],
            key_columns=("plant_id", "date"),
        )
        await db_session.commit()

        assert deleted == 2
        remaining = await db_session.scalar(select(func.count()).select_from(DailyPlantDataModel))
        assert remaining == 3

    @pytest.mark.asyncio
    async def test_insert_ignore_and_select_existing(self, db_session):
        rows = [{"name": "Pompa", "is_active": True}, {"name": "Boiler", "is_active": True}]
        await insert_ignore(db_session, EquipmentGroupModel, rows, key_columns=("name",))
        await insert_ignore(db_session, EquipmentGroupModel, rows[:1], key_columns=("name",))
        await db_session.commit()

        total = await db_session.scalar(select(func.count()).select_from(EquipmentGroupModel))
        assert total == 2

        found = await select_existing(db_session, EquipmentGroupModel.name, ["Pompa", "Turbin", None, "Pompa"])
        assert found == {"Pompa"}
