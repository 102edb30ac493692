"""
Configuración de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from ims_sync.infrastructure.database.models import (
    PlantModel,
    StationModel,
    EquipmentGroupModel,
    EquipmentModel,
    WorkOrderModel,
    RunningTimeModel,
    EquipmentWorkOrderModel,
    EquipmentMaterialModel,
    DailyPlantDataModel,
    ApiSyncLogModel,
)
