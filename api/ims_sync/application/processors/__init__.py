"""
Procesadores por tipo de dominio: validan, transforman y persisten los items de IMS.
"""
from .base import BaseProcessor, ChunkStats, ProcessStats
from .daily_plant_data_processor import DailyPlantDataProcessor
from .equipment_processor import EquipmentProcessor
from .material_processors import EquipmentMaterialProcessor, EquipmentWorkOrderProcessor
from .running_time_processor import RunningTimeProcessor
from .work_order_processor import WorkOrderProcessor

__all__ = [
    "BaseProcessor",
    "ChunkStats",
    "ProcessStats",
    "DailyPlantDataProcessor",
    "EquipmentProcessor",
    "EquipmentMaterialProcessor",
    "EquipmentWorkOrderProcessor",
    "RunningTimeProcessor",
    "WorkOrderProcessor",
]
