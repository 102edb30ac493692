"""
Mapeos de campos IMS -> columnas locales, por tipo de dominio.

IMS ha cambiado nombres de campos a lo largo del tiempo (nombres "amigables",
nombres tecnicos SAP en mayusculas, y nombres distintos entre el feed de
ordenes y el feed de materiales). Cada FieldMapping lista los alias en orden
de prioridad; gana el primero que trae valor.
"""

from __future__ import annotations

from ims_sync.shared.utils.datetime_utils import parse_date, parse_datetime

from .types import FieldMapping, is_flag_set, to_decimal

# --------------------------------------------------------------------------
# Alias de identificacion de planta
# --------------------------------------------------------------------------

EQUIPMENT_PLANT_SOURCES = ("plant_id", "plant_code", "plant", "SWERK")
WORK_ORDER_PLANT_SOURCES = ("plant", "plant_code", "plant_id", "WERKS")
RUNNING_TIME_PLANT_SOURCES = ("plant_id", "plant_code", "plant", "SWERK")
MATERIAL_PLANT_SOURCES = ("plant", "plant_code", "plant_id", "WERKS")
DAILY_PLANT_SOURCES = ("kode_unit", "plant_code", "plant")

# Alias de flag de borrado (ambos feeds de materiales)
DELETION_FLAG_SOURCES = ("deletion_flag", "item_deleted", "XLOEK")

# Orden en el feed de materiales: production_order > order_number > planned_order
MATERIAL_ORDER_SOURCES = ("production_order", "order_number", "AUFNR", "planned_order")

# --------------------------------------------------------------------------
# Equipment
# --------------------------------------------------------------------------

EQUIPMENT_GROUP_SOURCES = ("group_name", "equipment_group")

EQUIPMENT_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping("equipment_number", ("equipment_number", "EQUNR")),
    FieldMapping("mandt", ("mandt", "MANDT")),
    FieldMapping("company_code", ("company_code", "BUKRS")),
    FieldMapping("cost_center", ("cost_center", "KOSTL")),
    FieldMapping("equipment_description", ("equipment_description", "description", "EQKTU")),
    FieldMapping("object_number", ("object_number", "OBJNR")),
    FieldMapping("point", ("point", "POINT")),
    FieldMapping("baujj", ("baujj", "BAUJJ")),
    FieldMapping("groes", ("groes", "GROES")),
    FieldMapping("herst", ("herst", "HERST")),
    FieldMapping("mrnug", ("mrnug", "MRNUG")),
    FieldMapping("eqtyp", ("eqtyp", "EQTYP")),
    FieldMapping("eqart", ("eqart", "EQART")),
    FieldMapping("maintenance_planner_group", ("maintenance_planner_group", "INGRP")),
    FieldMapping("maintenance_work_center", ("maintenance_work_center", "GEWRK")),
    FieldMapping("functional_location", ("functional_location", "TPLNR")),
    FieldMapping("description_func_location", ("description_func_location", "PLTXT")),
    FieldMapping("api_created_at", ("api_created_at", "created_at", "CREATED_AT"), parse_datetime),
)

# --------------------------------------------------------------------------
# Work orders
# --------------------------------------------------------------------------

WORK_ORDER_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping("order_number", ("order", "order_number", "AUFNR")),
    FieldMapping("mandt", ("mandt", "MANDT")),
    FieldMapping("order_type", ("order_type", "AUART")),
    FieldMapping("created_on", ("created_on", "ERDAT"), parse_date),
    FieldMapping("change_date_for_order_master", ("change_date_for_order_master", "AEDAT"), parse_date),
    FieldMapping("description", ("description", "KTEXT")),
    FieldMapping("company_code", ("company_code", "BUKRS")),
    FieldMapping("responsible_cctr", ("responsible_cctr", "KOSTV")),
    FieldMapping("order_status", ("order_status", "status")),
    FieldMapping("technical_completion", ("technical_completion",), parse_date),
    FieldMapping("cost_center", ("cost_center", "KOSTL")),
    FieldMapping("profit_center", ("profit_center", "PRCTR")),
    FieldMapping("object_class", ("object_class", "SCOPE")),
    FieldMapping("main_work_center", ("main_work_center", "VAPLZ")),
    FieldMapping("notification", ("notification", "QMNUM")),
    FieldMapping("cause", ("cause",)),
    FieldMapping("cause_text", ("cause_text",)),
    FieldMapping("code_group_problem", ("code_group_problem",)),
    FieldMapping("item_text", ("item_text",)),
    FieldMapping("created", ("created",), parse_date),
    FieldMapping("released", ("released",), parse_date),
    FieldMapping("completed", ("completed",), parse_date),
    FieldMapping("closed", ("closed",), parse_date),
    FieldMapping("planned_release", ("planned_release",), parse_date),
    FieldMapping("planned_completion", ("planned_completion",), parse_date),
    FieldMapping("planned_closing_date", ("planned_closing_date",), parse_date),
    FieldMapping("release_date", ("release", "release_date"), parse_date),
    FieldMapping("close_date", ("close", "close_date"), parse_date),
    FieldMapping("equipment_number", ("equipment_number", "EQUNR")),
    FieldMapping("functional_location", ("functional_location", "TPLNR")),
    FieldMapping("functional_location_description", ("functional_location_description",)),
    FieldMapping("opertn_task_list_no", ("opertn_task_list_no",)),
    FieldMapping("api_updated_at", ("updated_at", "api_updated_at"), parse_datetime),
)

# --------------------------------------------------------------------------
# Running time
# --------------------------------------------------------------------------

RUNNING_TIME_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping("equipment_number", ("equipment_number", "EQUNR")),
    FieldMapping("reading_date", ("date", "DATE"), parse_date),
    FieldMapping("reading_at", ("date_time", "DATE_TIME"), parse_datetime),
    FieldMapping("running_hours", ("running_hours", "RECDV"), to_decimal),
    FieldMapping("counter_reading", ("counter_reading", "CNTRR"), to_decimal),
    FieldMapping("maintenance_text", ("maintenance_text", "MDTXT")),
    FieldMapping("mandt", ("mandt", "MANDT")),
    FieldMapping("point", ("point", "POINT")),
    FieldMapping("api_id", ("api_id", "ims_id", "ID", "id")),
)

# --------------------------------------------------------------------------
# Lineas de material (feed equipments/work-order y feed equipments/material)
#
# Primer alias: nombre del feed de materiales; segundo: nombre del feed de
# ordenes; ultimo: nombre tecnico SAP (RESB).
# --------------------------------------------------------------------------

MATERIAL_LINE_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping("material_number", ("material_number", "material", "MATNR")),
    FieldMapping("material_description", ("material_description", "material_text", "MAKTX")),
    FieldMapping("equipment_number", ("equipment_number", "EQUNR")),
    FieldMapping("reservation_number", ("reservation_number", "reservation", "RSNUM")),
    FieldMapping("reservation_item", ("reservation_item", "item_number", "RSPOS")),
    FieldMapping("requirement_type", ("requirement_type", "BDART")),
    FieldMapping("reservation_status", ("reservation_status", "RSSTA")),
    FieldMapping("movement_allowed", ("goods_receipt_flag", "movement_allowed", "XWAOK"), is_flag_set),
    FieldMapping("final_issue", ("final_issue_flag", "final_issue", "KZEAR"), is_flag_set),
    FieldMapping("missing_part", ("error_flag", "missing_part", "XFEHL"), is_flag_set),
    FieldMapping("storage_location", ("storage_location", "LGORT")),
    FieldMapping("requirement_date", ("requirement_date", "requirements_date", "BDTER"), parse_date),
    FieldMapping("requirement_qty", ("requirement_qty", "requirement_quantity", "BDMNG"), to_decimal),
    FieldMapping("unit_of_measure", ("unit_of_measure", "base_unit_of_measure", "MEINS")),
    FieldMapping("debit_credit_indicator", ("debit_credit_indicator", "debit_credit_ind", "SHKZG")),
    FieldMapping("withdrawn_qty", ("withdrawn_qty", "quantity_withdrawn", "ENMNG"), to_decimal),
    FieldMapping("withdrawn_value", ("withdrawn_value", "value_withdrawn", "ENWRT"), to_decimal),
    FieldMapping("currency", ("currency", "WAERS")),
    FieldMapping("entry_qty", ("entry_qty", "qty_in_unit_of_entry", "ERFMG"), to_decimal),
    FieldMapping("entry_uom", ("entry_uom", "unit_of_entry", "ERFME")),
    FieldMapping("movement_type", ("movement_type", "BWART")),
    FieldMapping("gl_account", ("gl_account", "SAKNR")),
    FieldMapping("receiving_plant", ("receiving_plant", "UMWRK")),
    FieldMapping("receiving_storage_loc", ("receiving_storage_loc", "receiving_storage_location", "UMLGO")),
)

EQUIPMENT_WORK_ORDER_MAPPINGS: tuple[FieldMapping, ...] = MATERIAL_LINE_MAPPINGS + (
    FieldMapping("order_number", ("order_number", "order", "AUFNR")),
    FieldMapping("functional_location", ("functional_location", "TPLNR")),
    FieldMapping("material_group", ("material_group", "MATKL")),
    FieldMapping("goods_recipient", ("goods_recipient", "WEMPF")),
    FieldMapping("funds_center", ("funds_center", "FISTL")),
    FieldMapping("start_time", ("start_time",)),
    FieldMapping("end_time", ("end_time",)),
    FieldMapping("service_duration", ("service_duration",), to_decimal),
    FieldMapping("service_dur_unit", ("service_dur_unit",)),
    FieldMapping("api_updated_at", ("updated_at", "api_updated_at"), parse_datetime),
)

EQUIPMENT_MATERIAL_MAPPINGS: tuple[FieldMapping, ...] = MATERIAL_LINE_MAPPINGS + (
    FieldMapping("order_number", MATERIAL_ORDER_SOURCES),
    FieldMapping("planned_order", ("planned_order", "PLNUM")),
    FieldMapping("purchase_requisition", ("purchase_requisition", "BANFN")),
    FieldMapping("purchase_requisition_item", ("purchase_requisition_item", "BNFPO")),
    FieldMapping("batch_number", ("batch_number", "CHARG")),
    FieldMapping("storage_bin", ("storage_bin", "LGPLA")),
    FieldMapping("production_supply_area", ("production_supply_area", "PRVBE")),
    FieldMapping("special_stock_indicator", ("special_stock_indicator", "SOBKZ")),
    FieldMapping("issued_qty", ("issued_qty", "VMENG"), to_decimal),
    FieldMapping("api_created_at", ("api_created_at", "created_at"), parse_datetime),
)

# --------------------------------------------------------------------------
# Daily plant data
# --------------------------------------------------------------------------

DAILY_PLANT_DATE_SOURCES = ("tanggal", "date", "DATE")
DAILY_PLANT_FLAG_SOURCES = ("is_mengolah",)
