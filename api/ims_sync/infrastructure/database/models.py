"""
Modelos de base de datos (ORM).

Cada entidad sincronizada declara su llave natural como UniqueConstraint;
los upserts del pipeline resuelven conflictos contra esas restricciones.
"""
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Index,
    Enum as SQLEnum,
)
from sqlalchemy.sql import func

from ims_sync.infrastructure.database.session import Base
from ims_sync.shared.constants.sync_constants import SyncStatus


def _quantity() -> Column:
    return Column(Numeric(18, 3, asdecimal=False), nullable=True)


def _amount() -> Column:
    return Column(Numeric(18, 2, asdecimal=False), nullable=True)


class PlantModel(Base):
    """Planta (pabrik). Catalogo de referencia, no se sincroniza desde IMS."""

    __tablename__ = "plants"

    id = Column(Integer, primary_key=True, index=True)
    plant_code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Plant(id={self.id}, plant_code={self.plant_code}, active={self.is_active})>"


class StationModel(Base):
    """Estacion de una planta, identificada por centro de costo."""

    __tablename__ = "stations"
    __table_args__ = (
        UniqueConstraint("plant_id", "cost_center", name="uq_stations_plant_cost_center"),
    )

    id = Column(Integer, primary_key=True, index=True)
    plant_id = Column(Integer, ForeignKey("plants.id", ondelete="CASCADE"), nullable=False)
    cost_center = Column(String(50), nullable=False)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Station(id={self.id}, plant_id={self.plant_id}, cost_center={self.cost_center})>"


class EquipmentGroupModel(Base):
    """Grupo de equipos. Se crea bajo demanda durante la sync de equipment."""

    __tablename__ = "equipment_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<EquipmentGroup(id={self.id}, name={self.name})>"


class EquipmentModel(Base):
    """Equipo registrado en IMS."""

    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, index=True)
    equipment_number = Column(String(50), nullable=False, unique=True, index=True)
    plant_id = Column(Integer, ForeignKey("plants.id", ondelete="SET NULL"), nullable=True, index=True)
    equipment_group_id = Column(Integer, ForeignKey("equipment_groups.id", ondelete="SET NULL"), nullable=True)
    station_id = Column(Integer, ForeignKey("stations.id", ondelete="SET NULL"), nullable=True)
    mandt = Column(String(10), nullable=True)
    company_code = Column(String(50), nullable=True)
    cost_center = Column(String(50), nullable=True)
    equipment_description = Column(Text, nullable=True)
    object_number = Column(String(50), nullable=True)
    point = Column(String(50), nullable=True)
    baujj = Column(String(10), nullable=True)  # año de construccion
    groes = Column(String(100), nullable=True)  # tamaño/dimension
    herst = Column(String(100), nullable=True)  # fabricante
    mrnug = Column(String(50), nullable=True)
    eqtyp = Column(String(10), nullable=True)  # categoria
    eqart = Column(String(50), nullable=True)  # tipo de objeto tecnico
    maintenance_planner_group = Column(String(50), nullable=True)
    maintenance_work_center = Column(String(50), nullable=True)
    functional_location = Column(String(100), nullable=True)
    description_func_location = Column(Text, nullable=True)
    api_created_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Equipment(id={self.id}, equipment_number={self.equipment_number})>"


class WorkOrderModel(Base):
    """Orden de trabajo de mantenimiento."""

    __tablename__ = "work_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    plant_id = Column(Integer, ForeignKey("plants.id", ondelete="SET NULL"), nullable=True, index=True)
    plant_code = Column(String(50), nullable=True)
    station_id = Column(Integer, ForeignKey("stations.id", ondelete="SET NULL"), nullable=True)
    equipment_number = Column(String(50), nullable=True, index=True)
    mandt = Column(String(10), nullable=True)
    order_type = Column(String(20), nullable=True)
    created_on = Column(Date, nullable=True)
    change_date_for_order_master = Column(Date, nullable=True)
    description = Column(Text, nullable=True)
    company_code = Column(String(50), nullable=True)
    responsible_cctr = Column(String(50), nullable=True)
    order_status = Column(String(100), nullable=True)
    technical_completion = Column(Date, nullable=True)
    cost_center = Column(String(50), nullable=True)
    profit_center = Column(String(50), nullable=True)
    object_class = Column(String(20), nullable=True)
    main_work_center = Column(String(50), nullable=True)
    notification = Column(String(50), nullable=True)
    cause = Column(String(50), nullable=True)
    cause_text = Column(Text, nullable=True)
    code_group_problem = Column(String(50), nullable=True)
    item_text = Column(Text, nullable=True)
    created = Column(Date, nullable=True)
    released = Column(Date, nullable=True)
    completed = Column(Date, nullable=True)
    closed = Column(Date, nullable=True)
    planned_release = Column(Date, nullable=True)
    planned_completion = Column(Date, nullable=True)
    planned_closing_date = Column(Date, nullable=True)
    release_date = Column(Date, nullable=True)
    close_date = Column(Date, nullable=True)
    functional_location = Column(String(100), nullable=True)
    functional_location_description = Column(Text, nullable=True)
    opertn_task_list_no = Column(String(50), nullable=True)
    api_updated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<WorkOrder(id={self.id}, order_number={self.order_number}, status={self.order_status})>"


class RunningTimeModel(Base):
    """Lectura diaria de horas de operacion de un equipo."""

    __tablename__ = "running_times"
    __table_args__ = (
        UniqueConstraint("equipment_number", "reading_date", name="uq_running_times_equipment_date"),
        Index("ix_running_times_plant_date", "plant_id", "reading_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    equipment_number = Column(String(50), nullable=False)
    reading_date = Column(Date, nullable=False)
    plant_id = Column(Integer, ForeignKey("plants.id", ondelete="SET NULL"), nullable=True)
    reading_at = Column(DateTime, nullable=True)
    running_hours = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    counter_reading = Column(Numeric(15, 2, asdecimal=False), nullable=True)
    maintenance_text = Column(Text, nullable=True)
    mandt = Column(String(10), nullable=True)
    point = Column(String(50), nullable=True)
    api_id = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (
            f"<RunningTime(equipment_number={self.equipment_number}, "
            f"date={self.reading_date}, hours={self.running_hours})>"
        )


class _MaterialLineColumns:
    """
    Columnas normalizadas compartidas por los dos feeds de materiales.

    El feed de ordenes (equipments/work-order) y el feed de materiales
    (equipments/material) reportan la misma reserva SAP con nombres distintos;
    ambos se persisten con este esquema.
    """

    id = Column(Integer, primary_key=True, index=True)
    material_number = Column(String(50), nullable=False)
    material_description = Column(Text, nullable=True)
    equipment_number = Column(String(50), nullable=True, index=True)
    reservation_number = Column(String(50), nullable=True)
    reservation_item = Column(String(10), nullable=True)
    requirement_type = Column(String(10), nullable=True)
    reservation_status = Column(String(5), nullable=True)
    movement_allowed = Column(Boolean, nullable=False, default=False)
    final_issue = Column(Boolean, nullable=False, default=False)
    missing_part = Column(Boolean, nullable=False, default=False)
    storage_location = Column(String(50), nullable=True)
    requirement_date = Column(Date, nullable=True)
    requirement_qty = _quantity()
    unit_of_measure = Column(String(20), nullable=True)
    debit_credit_indicator = Column(String(5), nullable=True)
    withdrawn_qty = _quantity()
    withdrawn_value = _amount()
    currency = Column(String(10), nullable=True)
    entry_qty = _quantity()
    entry_uom = Column(String(20), nullable=True)
    movement_type = Column(String(10), nullable=True)
    gl_account = Column(String(50), nullable=True)
    receiving_plant = Column(String(50), nullable=True)
    receiving_storage_loc = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class EquipmentWorkOrderModel(_MaterialLineColumns, Base):
    """Linea de material de una orden de trabajo (feed equipments/work-order)."""

    __tablename__ = "equipment_work_orders"
    __table_args__ = (
        UniqueConstraint(
            "plant_id", "order_number", "material_number",
            name="uq_equipment_work_orders_plant_order_material",
        ),
        Index("ix_equipment_work_orders_plant_date", "plant_id", "requirement_date"),
    )

    plant_id = Column(Integer, ForeignKey("plants.id", ondelete="CASCADE"), nullable=False)
    order_number = Column(String(50), nullable=False)
    functional_location = Column(String(100), nullable=True)
    material_group = Column(String(50), nullable=True)
    goods_recipient = Column(String(100), nullable=True)
    funds_center = Column(String(50), nullable=True)
    start_time = Column(String(10), nullable=True)
    end_time = Column(String(10), nullable=True)
    service_duration = Column(Numeric(10, 2, asdecimal=False), nullable=True)
    service_dur_unit = Column(String(10), nullable=True)
    api_updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (
            f"<EquipmentWorkOrder(plant_id={self.plant_id}, order={self.order_number}, "
            f"material={self.material_number})>"
        )


class EquipmentMaterialModel(_MaterialLineColumns, Base):
    """
    Reserva de material (feed equipments/material).

    order_number guarda la orden tal como llega (parte de la llave natural);
    production_order solo se llena si la orden existe en work_orders.
    """

    __tablename__ = "equipment_materials"
    __table_args__ = (
        UniqueConstraint(
            "plant_id", "material_number", "order_number",
            name="uq_equipment_materials_plant_material_order",
        ),
        Index("ix_equipment_materials_plant_date", "plant_id", "requirement_date"),
    )

    plant_id = Column(Integer, ForeignKey("plants.id", ondelete="CASCADE"), nullable=False)
    order_number = Column(String(50), nullable=False)
    production_order = Column(String(50), nullable=True, index=True)
    planned_order = Column(String(50), nullable=True)
    purchase_requisition = Column(String(50), nullable=True)
    purchase_requisition_item = Column(String(10), nullable=True)
    batch_number = Column(String(50), nullable=True)
    storage_bin = Column(String(50), nullable=True)
    production_supply_area = Column(String(50), nullable=True)
    special_stock_indicator = Column(String(10), nullable=True)
    issued_qty = _quantity()
    api_created_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return (
            f"<EquipmentMaterial(plant_id={self.plant_id}, material={self.material_number}, "
            f"order={self.order_number})>"
        )


class DailyPlantDataModel(Base):
    """Estado diario de procesamiento de una planta (is_mengolah 0/1)."""

    __tablename__ = "daily_plant_data"
    __table_args__ = (
        UniqueConstraint("plant_id", "date", name="uq_daily_plant_data_plant_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    plant_id = Column(Integer, ForeignKey("plants.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    is_mengolah = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<DailyPlantData(plant_id={self.plant_id}, date={self.date}, is_mengolah={self.is_mengolah})>"


class ApiSyncLogModel(Base):
    """
    Run Log: auditoria de una ejecucion de un tipo de dominio.

    Se crea en pending, pasa a running al iniciar el fetch y se finaliza
    una sola vez como completed o failed.
    """

    __tablename__ = "api_sync_logs"
    __table_args__ = (
        Index("ix_api_sync_logs_type_started", "sync_type", "sync_started_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    sync_type = Column(String(50), nullable=False)
    status = Column(
        SQLEnum(SyncStatus, values_callable=lambda enum: [e.value for e in enum], native_enum=False, length=20),
        nullable=False,
        default=SyncStatus.PENDING,
    )
    records_processed = Column(Integer, nullable=False, default=0)
    records_success = Column(Integer, nullable=False, default=0)
    records_failed = Column(Integer, nullable=False, default=0)
    records_skipped = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    sync_started_at = Column(DateTime(timezone=True), nullable=False)
    sync_completed_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def success_rate(self) -> float:
        """Porcentaje de items confirmados sobre procesados."""
        if not self.records_processed:
            return 0.0
        return round(self.records_success / self.records_processed * 100, 2)

    @property
    def duration_seconds(self) -> float | None:
        if not self.sync_started_at or not self.sync_completed_at:
            return None
        return (self.sync_completed_at - self.sync_started_at).total_seconds()

    def __repr__(self):
        return f"<ApiSyncLog(id={self.id}, type={self.sync_type}, status={self.status})>"
