"""
Tests unitarios de normalizacion de items IMS (tipos y mapeos de campos).
"""
from datetime import date

from ims_sync.infrastructure.external.ims.field_mappings import (
    EQUIPMENT_MAPPINGS,
    EQUIPMENT_MATERIAL_MAPPINGS,
    EQUIPMENT_WORK_ORDER_MAPPINGS,
    WORK_ORDER_MAPPINGS,
)
from ims_sync.infrastructure.external.ims.types import (
    has_excluded_prefix,
    is_flag_set,
    map_item,
    resolve_field,
    to_decimal,
    to_int_flag,
    to_str,
)


class TestScalarConversions:

    def test_to_str_strips_and_blanks_to_none(self):
        assert to_str("  EQ-1 ") == "EQ-1"
        assert to_str("   ") is None
        assert to_str(None) is None
        assert to_str(10001) == "10001"

    def test_to_decimal_removes_thousand_separators(self):
        assert to_decimal("1,234.50") == 1234.5
        assert to_decimal(3) == 3.0
        assert to_decimal("abc") is None
        assert to_decimal("") is None
        assert to_decimal(True) is None

    def test_to_int_flag(self):
        assert to_int_flag("1") == 1
        assert to_int_flag("0") == 0
        assert to_int_flag(0) == 0
        assert to_int_flag("X") == 1
        assert to_int_flag(True) == 1
        assert to_int_flag(None) == 0

    def test_is_flag_set(self):
        assert is_flag_set("X") is True
        assert is_flag_set(" x ") is True
        assert is_flag_set("") is False
        assert is_flag_set("N") is False
        assert is_flag_set(None) is False

    def test_has_excluded_prefix(self):
        assert has_excluded_prefix("110000123", ("11", "12", "31")) is True
        assert has_excluded_prefix("310000001", ("11", "12", "31")) is True
        assert has_excluded_prefix("210000001", ("11", "12", "31")) is False
        assert has_excluded_prefix(None, ("11",)) is False


class TestFieldResolution:

    def test_first_non_blank_alias_wins(self):
        item = {"plant_id": "", "plant_code": None, "plant": "A01"}
        assert resolve_field(item, ("plant_id", "plant_code", "plant")) == "A01"

    def test_missing_aliases_resolve_to_none(self):
        assert resolve_field({}, ("plant_id", "SWERK")) is None

    def test_equipment_accepts_sap_names(self):
        row = map_item({"EQUNR": "10001", "KOSTL": "CC-A01", "EQKTU": "Pompa"}, EQUIPMENT_MAPPINGS)

        assert row["equipment_number"] == "10001"
        assert row["cost_center"] == "CC-A01"
        assert row["equipment_description"] == "Pompa"
        assert row["api_created_at"] is None

    def test_work_order_release_and_close_aliases(self):
        row = map_item(
            {"order": "4000123", "release": "20260105", "close": "05.02.2026"},
            WORK_ORDER_MAPPINGS,
        )

        assert row["order_number"] == "4000123"
        assert row["release_date"] == date(2026, 1, 5)
        assert row["close_date"] == date(2026, 2, 5)

    def test_both_material_feeds_normalize_to_same_columns(self):
        material_feed = {
            "order_number": "4000",
            "material_number": "M1",
            "requirement_qty": "2,500.000",
            "goods_receipt_flag": "X",
        }
        work_order_feed = {
            "order": "4000",
            "material": "M1",
            "requirement_quantity": "2500",
            "movement_allowed": "X",
        }

        a = map_item(material_feed, EQUIPMENT_WORK_ORDER_MAPPINGS)
        b = map_item(work_order_feed, EQUIPMENT_WORK_ORDER_MAPPINGS)

        for column in ("order_number", "material_number", "requirement_qty", "movement_allowed"):
            assert a[column] == b[column]
        assert a["requirement_qty"] == 2500.0
        assert a["movement_allowed"] is True

    def test_material_order_number_priority(self):
        def order_of(item):
            return map_item(item, EQUIPMENT_MATERIAL_MAPPINGS)["order_number"]

        assert order_of({"production_order": "PO1", "order_number": "4000", "planned_order": "P1"}) == "PO1"
        assert order_of({"production_order": "", "order_number": "4000", "planned_order": "P1"}) == "4000"
        assert order_of({"planned_order": "P1"}) == "P1"
        assert order_of({}) is None
