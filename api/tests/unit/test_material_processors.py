"""
Tests de los dos feeds de materiales: exclusion por prefijo, flag de borrado,
validacion de production_order y reconciliacion por (planta, orden).
"""
from sqlalchemy import select

import pytest

from ims_sync.application.processors import EquipmentMaterialProcessor, EquipmentWorkOrderProcessor
from ims_sync.application.processors.base import SKIP_EXCLUDED_MATERIAL
from ims_sync.infrastructure.database.models import (
    EquipmentMaterialModel,
    EquipmentWorkOrderModel,
    WorkOrderModel,
)


def _wo_line(material: str, order: str = "4000", plant: str = "A01", **extra) -> dict:
    return {"plant": plant, "order": order, "material": material, "requirement_quantity": "1", **extra}


def _em_line(material: str, order: str = "4000", plant: str = "A01", **extra) -> dict:
    return {"plant": plant, "production_order": order, "material_number": material, "requirement_qty": "1", **extra}


async def _materials(db_session, model, order: str = "4000") -> set[str]:
    result = await db_session.execute(select(model.material_number).where(model.order_number == order))
    return set(result.scalars().all())


class TestEquipmentWorkOrderProcessor:

    @pytest.fixture
    def processor(self, session_factory):
        return EquipmentWorkOrderProcessor(session_factory, chunk_size=100)

    @pytest.mark.asyncio
    async def test_excluded_prefixes_never_persist(self, processor, db_session, plants):
        stats = await processor.process_batch([
            _wo_line("200000001"),
            _wo_line("110000001"),
            _wo_line("120000001"),
            _wo_line("310000001"),
        ])

        assert stats.skipped[SKIP_EXCLUDED_MATERIAL] == 3
        assert await _materials(db_session, EquipmentWorkOrderModel) == {"200000001"}

    @pytest.mark.asyncio
    async def test_deletion_flag_removes_row(self, processor, db_session, plants):
        await processor.process_batch([_wo_line("M1"), _wo_line("M2")])

        stats = await processor.process_batch([_wo_line("M1", deletion_flag="X")])

        assert stats.deleted == 1
        assert await _materials(db_session, EquipmentWorkOrderModel) == {"M2"}

    @pytest.mark.asyncio
    async def test_last_occurrence_in_chunk_decides(self, processor, db_session, plants):
        await processor.process_batch([
            _wo_line("M1"),
            _wo_line("M1", item_deleted="X"),
            _wo_line("M2", item_deleted="X"),
            _wo_line("M2"),
        ])

        assert await _materials(db_session, EquipmentWorkOrderModel) == {"M2"}

    @pytest.mark.asyncio
    async def test_excluded_material_is_skipped_before_deletion(self, processor, db_session, plants):
        db_session.add(EquipmentWorkOrderModel(
            plant_id=plants["A01"], order_number="4000", material_number="110000001",
            movement_allowed=False, final_issue=False, missing_part=False,
        ))
        await db_session.commit()

        stats = await processor.process_batch([_wo_line("110000001", deletion_flag="X")])

        assert stats.deleted == 0
        assert stats.skipped[SKIP_EXCLUDED_MATERIAL] == 1
        assert await _materials(db_session, EquipmentWorkOrderModel) == {"110000001"}

    @pytest.mark.asyncio
    async def test_custom_prefixes(self, session_factory, db_session, plants):
        processor = EquipmentWorkOrderProcessor(session_factory, excluded_prefixes=("99",))

        await processor.process_batch([_wo_line("110000001"), _wo_line("990000001")])

        assert await _materials(db_session, EquipmentWorkOrderModel) == {"110000001"}


class TestEquipmentMaterialProcessor:

    @pytest.fixture
    def processor(self, session_factory):
        return EquipmentMaterialProcessor(session_factory, chunk_size=100)

    @pytest.mark.asyncio
    async def test_reconciles_materials_per_plant_and_order(self, processor, db_session, plants):
        await processor.process_batch([_em_line("M1"), _em_line("M2"), _em_line("M9", order="4001")])
        assert await _materials(db_session, EquipmentMaterialModel) == {"M1", "M2"}

        stats = await processor.process_batch([_em_line("M1")])

        assert stats.deleted == 1
        assert await _materials(db_session, EquipmentMaterialModel) == {"M1"}
        # El par (A01, 4001) no vino en el lote: no se toca
        assert await _materials(db_session, EquipmentMaterialModel, order="4001") == {"M9"}

    @pytest.mark.asyncio
    async def test_pair_with_only_deleted_materials_is_emptied(self, processor, db_session, plants):
        await processor.process_batch([_em_line("M1"), _em_line("M2")])

        await processor.process_batch([_em_line("M1", deletion_flag="X")])

        assert await _materials(db_session, EquipmentMaterialModel) == set()

    @pytest.mark.asyncio
    async def test_reconciliation_spans_chunks(self, session_factory, db_session, plants):
        processor = EquipmentMaterialProcessor(session_factory, chunk_size=1)
        await processor.process_batch([_em_line("M1"), _em_line("M2")])

        await processor.process_batch([_em_line("M1"), _em_line("M3")])

        assert await _materials(db_session, EquipmentMaterialModel) == {"M1", "M3"}

    @pytest.mark.asyncio
    async def test_production_order_requires_existing_work_order(self, processor, db_session, plants):
        db_session.add(WorkOrderModel(order_number="4000", plant_id=plants["A01"], plant_code="A01"))
        await db_session.commit()

        await processor.process_batch([_em_line("M1", order="4000"), _em_line("M1", order="5000")])

        rows = {
            r.order_number: r
            for r in (await db_session.execute(select(EquipmentMaterialModel))).scalars().all()
        }
        assert rows["4000"].production_order == "4000"
        assert rows["5000"].production_order is None

    @pytest.mark.asyncio
    async def test_plant_filter_limits_reconciliation(self, processor, db_session, plants):
        await processor.process_batch([_em_line("M1", plant="B02"), _em_line("M2", plant="B02")])

        await processor.process_batch([_em_line("M1", plant="B02")], frozenset({"A01"}))

        result = await db_session.execute(
            select(EquipmentMaterialModel.material_number).where(EquipmentMaterialModel.plant_id == plants["B02"])
        )
        assert set(result.scalars().all()) == {"M1", "M2"}

    @pytest.mark.asyncio
    async def test_reconciliation_with_many_retained_materials(self, session_factory, db_session, plants):
        processor = EquipmentMaterialProcessor(session_factory, chunk_size=2000)
        await processor.process_batch([_em_line("OLD")])

        materials = {f"M{i:05d}" for i in range(1200)}
        stats = await processor.process_batch([_em_line(m) for m in sorted(materials)])

        assert stats.deleted == 1
        assert await _materials(db_session, EquipmentMaterialModel) == materials

    @pytest.mark.asyncio
    async def test_equipment_number_comes_from_work_order_reservation(self, session_factory, processor, db_session, plants):
        await EquipmentWorkOrderProcessor(session_factory).process_batch([
            _wo_line("M1", reservation="R-100", equipment_number="EQ-7"),
        ])

        await processor.process_batch([
            _em_line("M1", reservation_number="R-100"),
            _em_line("M2", reservation_number="R-100", equipment_number="EQ-9"),
            _em_line("M3", reservation_number="R-404"),
        ])

        rows = {
            r.material_number: r.equipment_number
            for r in (await db_session.execute(select(EquipmentMaterialModel))).scalars().all()
        }
        assert rows == {"M1": "EQ-7", "M2": "EQ-9", "M3": None}
