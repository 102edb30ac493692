"""
Constantes del pipeline de sincronizacion IMS.
"""
from enum import Enum


class SyncType(str, Enum):
    """Tipos de dominio sincronizados desde IMS."""
    EQUIPMENT = "equipment"
    WORK_ORDERS = "work_orders"
    RUNNING_TIME = "running_time"
    EQUIPMENT_WORK_ORDERS = "equipment_work_orders"
    EQUIPMENT_MATERIALS = "equipment_materials"
    DAILY_PLANT_DATA = "daily_plant_data"


class SyncStatus(str, Enum):
    """Estados de un registro de Run Log."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"  # reservado; el pipeline nunca lo asigna


# Orden fijo de procesamiento: equipment antes que cualquier tipo que lo
# referencie, work_orders antes que los dos feeds de materiales.
SYNC_ORDER: tuple[SyncType, ...] = (
    SyncType.EQUIPMENT,
    SyncType.WORK_ORDERS,
    SyncType.RUNNING_TIME,
    SyncType.EQUIPMENT_WORK_ORDERS,
    SyncType.EQUIPMENT_MATERIALS,
    SyncType.DAILY_PLANT_DATA,
)

# Estados que todavia pueden finalizarse
OPEN_SYNC_STATUSES = (SyncStatus.PENDING, SyncStatus.RUNNING)

# Valores que marcan un flag de IMS como activo ("X" en SAP)
TRUTHY_FLAG_VALUES = frozenset({"x", "1", "true", "y", "yes"})

# Limites de parametros por sentencia segun dialecto
MAX_BIND_PARAMS = {
    "postgresql": 65535,
    "sqlite": 999,
}
DEFAULT_MAX_BIND_PARAMS = 999

# Tamaño maximo del texto de error persistido en el Run Log
MAX_ERROR_MESSAGE_LENGTH = 2000
