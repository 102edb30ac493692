"""initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


SYNC_STATUS = sa.Enum(
    'pending', 'running', 'completed', 'failed', 'cancelled',
    name='syncstatus', native_enum=False, length=20,
)


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def _material_line_columns() -> list:
    """Columnas comunes de equipment_work_orders y equipment_materials."""
    qty = sa.Numeric(18, 3, asdecimal=False)
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plant_id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('material_number', sa.String(length=50), nullable=False),
        sa.Column('material_description', sa.Text(), nullable=True),
        sa.Column('equipment_number', sa.String(length=50), nullable=True),
        sa.Column('reservation_number', sa.String(length=50), nullable=True),
        sa.Column('reservation_item', sa.String(length=10), nullable=True),
        sa.Column('requirement_type', sa.String(length=10), nullable=True),
        sa.Column('reservation_status', sa.String(length=5), nullable=True),
        sa.Column('movement_allowed', sa.Boolean(), nullable=False),
        sa.Column('final_issue', sa.Boolean(), nullable=False),
        sa.Column('missing_part', sa.Boolean(), nullable=False),
        sa.Column('storage_location', sa.String(length=50), nullable=True),
        sa.Column('requirement_date', sa.Date(), nullable=True),
        sa.Column('requirement_qty', qty, nullable=True),
        sa.Column('unit_of_measure', sa.String(length=20), nullable=True),
        sa.Column('debit_credit_indicator', sa.String(length=5), nullable=True),
        sa.Column('withdrawn_qty', qty, nullable=True),
        sa.Column('withdrawn_value', sa.Numeric(18, 2, asdecimal=False), nullable=True),
        sa.Column('currency', sa.String(length=10), nullable=True),
        sa.Column('entry_qty', qty, nullable=True),
        sa.Column('entry_uom', sa.String(length=20), nullable=True),
        sa.Column('movement_type', sa.String(length=10), nullable=True),
        sa.Column('gl_account', sa.String(length=50), nullable=True),
        sa.Column('receiving_plant', sa.String(length=50), nullable=True),
        sa.Column('receiving_storage_loc', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['plant_id'], ['plants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table('plants'):
        op.create_table('plants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plant_code', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_plants_id'), 'plants', ['id'], unique=False)
        op.create_index(op.f('ix_plants_plant_code'), 'plants', ['plant_code'], unique=True)

    if not inspector.has_table('stations'):
        op.create_table('stations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plant_id', sa.Integer(), nullable=False),
        sa.Column('cost_center', sa.String(length=50), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.ForeignKeyConstraint(['plant_id'], ['plants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('plant_id', 'cost_center', name='uq_stations_plant_cost_center')
        )
        op.create_index(op.f('ix_stations_id'), 'stations', ['id'], unique=False)

    if not inspector.has_table('equipment_groups'):
        op.create_table('equipment_groups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
        )
        op.create_index(op.f('ix_equipment_groups_id'), 'equipment_groups', ['id'], unique=False)

    if not inspector.has_table('equipment'):
        op.create_table('equipment',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('equipment_number', sa.String(length=50), nullable=False),
        sa.Column('plant_id', sa.Integer(), nullable=True),
        sa.Column('equipment_group_id', sa.Integer(), nullable=True),
        sa.Column('station_id', sa.Integer(), nullable=True),
        sa.Column('mandt', sa.String(length=10), nullable=True),
        sa.Column('company_code', sa.String(length=50), nullable=True),
        sa.Column('cost_center', sa.String(length=50), nullable=True),
        sa.Column('equipment_description', sa.Text(), nullable=True),
        sa.Column('object_number', sa.String(length=50), nullable=True),
        sa.Column('point', sa.String(length=50), nullable=True),
        sa.Column('baujj', sa.String(length=10), nullable=True),
        sa.Column('groes', sa.String(length=100), nullable=True),
        sa.Column('herst', sa.String(length=100), nullable=True),
        sa.Column('mrnug', sa.String(length=50), nullable=True),
        sa.Column('eqtyp', sa.String(length=10), nullable=True),
        sa.Column('eqart', sa.String(length=50), nullable=True),
        sa.Column('maintenance_planner_group', sa.String(length=50), nullable=True),
        sa.Column('maintenance_work_center', sa.String(length=50), nullable=True),
        sa.Column('functional_location', sa.String(length=100), nullable=True),
        sa.Column('description_func_location', sa.Text(), nullable=True),
        sa.Column('api_created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['plant_id'], ['plants.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['equipment_group_id'], ['equipment_groups.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['station_id'], ['stations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_equipment_id'), 'equipment', ['id'], unique=False)
        op.create_index(op.f('ix_equipment_equipment_number'), 'equipment', ['equipment_number'], unique=True)
        op.create_index(op.f('ix_equipment_plant_id'), 'equipment', ['plant_id'], unique=False)

    if not inspector.has_table('work_orders'):
        date_columns = [
            'created_on', 'change_date_for_order_master', 'technical_completion', 'created',
            'released', 'completed', 'closed', 'planned_release', 'planned_completion',
            'planned_closing_date', 'release_date', 'close_date',
        ]
        op.create_table('work_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=50), nullable=False),
        sa.Column('plant_id', sa.Integer(), nullable=True),
        sa.Column('plant_code', sa.String(length=50), nullable=True),
        sa.Column('station_id', sa.Integer(), nullable=True),
        sa.Column('equipment_number', sa.String(length=50), nullable=True),
        sa.Column('mandt', sa.String(length=10), nullable=True),
        sa.Column('order_type', sa.String(length=20), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('company_code', sa.String(length=50), nullable=True),
        sa.Column('responsible_cctr', sa.String(length=50), nullable=True),
        sa.Column('order_status', sa.String(length=100), nullable=True),
        sa.Column('cost_center', sa.String(length=50), nullable=True),
        sa.Column('profit_center', sa.String(length=50), nullable=True),
        sa.Column('object_class', sa.String(length=20), nullable=True),
        sa.Column('main_work_center', sa.String(length=50), nullable=True),
        sa.Column('notification', sa.String(length=50), nullable=True),
        sa.Column('cause', sa.String(length=50), nullable=True),
        sa.Column('cause_text', sa.Text(), nullable=True),
        sa.Column('code_group_problem', sa.String(length=50), nullable=True),
        sa.Column('item_text', sa.Text(), nullable=True),
        *[sa.Column(name, sa.Date(), nullable=True) for name in date_columns],
        sa.Column('functional_location', sa.String(length=100), nullable=True),
        sa.Column('functional_location_description', sa.Text(), nullable=True),
        sa.Column('opertn_task_list_no', sa.String(length=50), nullable=True),
        sa.Column('api_updated_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['plant_id'], ['plants.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['station_id'], ['stations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_work_orders_id'), 'work_orders', ['id'], unique=False)
        op.create_index(op.f('ix_work_orders_order_number'), 'work_orders', ['order_number'], unique=True)
        op.create_index(op.f('ix_work_orders_plant_id'), 'work_orders', ['plant_id'], unique=False)
        op.create_index(op.f('ix_work_orders_equipment_number'), 'work_orders', ['equipment_number'], unique=False)

    if not inspector.has_table('running_times'):
        op.create_table('running_times',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('equipment_number', sa.String(length=50), nullable=False),
        sa.Column('reading_date', sa.Date(), nullable=False),
        sa.Column('plant_id', sa.Integer(), nullable=True),
        sa.Column('reading_at', sa.DateTime(), nullable=True),
        sa.Column('running_hours', sa.Numeric(10, 2, asdecimal=False), nullable=True),
        sa.Column('counter_reading', sa.Numeric(15, 2, asdecimal=False), nullable=True),
        sa.Column('maintenance_text', sa.Text(), nullable=True),
        sa.Column('mandt', sa.String(length=10), nullable=True),
        sa.Column('point', sa.String(length=50), nullable=True),
        sa.Column('api_id', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['plant_id'], ['plants.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('equipment_number', 'reading_date', name='uq_running_times_equipment_date')
        )
        op.create_index(op.f('ix_running_times_id'), 'running_times', ['id'], unique=False)
        op.create_index('ix_running_times_plant_date', 'running_times', ['plant_id', 'reading_date'], unique=False)

    if not inspector.has_table('equipment_work_orders'):
        op.create_table('equipment_work_orders',
        *_material_line_columns(),
        sa.Column('functional_location', sa.String(length=100), nullable=True),
        sa.Column('material_group', sa.String(length=50), nullable=True),
        sa.Column('goods_recipient', sa.String(length=100), nullable=True),
        sa.Column('funds_center', sa.String(length=50), nullable=True),
        sa.Column('start_time', sa.String(length=10), nullable=True),
        sa.Column('end_time', sa.String(length=10), nullable=True),
        sa.Column('service_duration', sa.Numeric(10, 2, asdecimal=False), nullable=True),
        sa.Column('service_dur_unit', sa.String(length=10), nullable=True),
        sa.Column('api_updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            'plant_id', 'order_number', 'material_number',
            name='uq_equipment_work_orders_plant_order_material'
        )
        )
        op.create_index(op.f('ix_equipment_work_orders_id'), 'equipment_work_orders', ['id'], unique=False)
        op.create_index(
            op.f('ix_equipment_work_orders_equipment_number'), 'equipment_work_orders',
            ['equipment_number'], unique=False
        )
        op.create_index(
            'ix_equipment_work_orders_plant_date', 'equipment_work_orders',
            ['plant_id', 'requirement_date'], unique=False
        )

    if not inspector.has_table('equipment_materials'):
        op.create_table('equipment_materials',
        *_material_line_columns(),
        sa.Column('production_order', sa.String(length=50), nullable=True),
        sa.Column('planned_order', sa.String(length=50), nullable=True),
        sa.Column('purchase_requisition', sa.String(length=50), nullable=True),
        sa.Column('purchase_requisition_item', sa.String(length=10), nullable=True),
        sa.Column('batch_number', sa.String(length=50), nullable=True),
        sa.Column('storage_bin', sa.String(length=50), nullable=True),
        sa.Column('production_supply_area', sa.String(length=50), nullable=True),
        sa.Column('special_stock_indicator', sa.String(length=10), nullable=True),
        sa.Column('issued_qty', sa.Numeric(18, 3, asdecimal=False), nullable=True),
        sa.Column('api_created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            'plant_id', 'material_number', 'order_number',
            name='uq_equipment_materials_plant_material_order'
        )
        )
        op.create_index(op.f('ix_equipment_materials_id'), 'equipment_materials', ['id'], unique=False)
        op.create_index(
            op.f('ix_equipment_materials_equipment_number'), 'equipment_materials',
            ['equipment_number'], unique=False
        )
        op.create_index(
            op.f('ix_equipment_materials_production_order'), 'equipment_materials',
            ['production_order'], unique=False
        )
        op.create_index(
            'ix_equipment_materials_plant_date', 'equipment_materials',
            ['plant_id', 'requirement_date'], unique=False
        )

    if not inspector.has_table('daily_plant_data'):
        op.create_table('daily_plant_data',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('plant_id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('is_mengolah', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['plant_id'], ['plants.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('plant_id', 'date', name='uq_daily_plant_data_plant_date')
        )
        op.create_index(op.f('ix_daily_plant_data_id'), 'daily_plant_data', ['id'], unique=False)
        op.create_index(op.f('ix_daily_plant_data_plant_id'), 'daily_plant_data', ['plant_id'], unique=False)
        op.create_index(op.f('ix_daily_plant_data_date'), 'daily_plant_data', ['date'], unique=False)

    if not inspector.has_table('api_sync_logs'):
        op.create_table('api_sync_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sync_type', sa.String(length=50), nullable=False),
        sa.Column('status', SYNC_STATUS, nullable=False),
        sa.Column('records_processed', sa.Integer(), nullable=False),
        sa.Column('records_success', sa.Integer(), nullable=False),
        sa.Column('records_failed', sa.Integer(), nullable=False),
        sa.Column('records_skipped', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('sync_started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('sync_completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_api_sync_logs_id'), 'api_sync_logs', ['id'], unique=False)
        op.create_index(
            'ix_api_sync_logs_type_started', 'api_sync_logs',
            ['sync_type', 'sync_started_at'], unique=False
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    # Orden inverso de dependencias de FK
    for table in (
        'api_sync_logs',
        'daily_plant_data',
        'equipment_materials',
        'equipment_work_orders',
        'running_times',
        'work_orders',
        'equipment',
        'equipment_groups',
        'stations',
        'plants',
    ):
        if inspector.has_table(table):
            op.drop_table(table)
