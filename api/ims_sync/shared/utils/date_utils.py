"""
Rangos de fechas por defecto para cada tipo de sincronizacion.
"""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping, Optional

from ims_sync.shared.constants.sync_constants import SyncType


@dataclass(frozen=True)
class DateRange:
    """Rango de fechas inclusivo que se envia a IMS como start_date/end_date."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Rango invalido: {self.start} > {self.end}")

    def as_params(self) -> dict[str, str]:
        return {
            "start_date": self.start.isoformat(),
            "end_date": self.end.isoformat(),
        }


def first_day_of_previous_month(today: date) -> date:
    first_of_month = today.replace(day=1)
    return (first_of_month - timedelta(days=1)).replace(day=1)


def default_date_ranges(today: Optional[date] = None) -> dict[SyncType, DateRange]:
    """
    Rangos por defecto:
    - running_time: solo ayer (las horas del dia actual aun no cierran)
    - work_orders y feeds de materiales: desde el primer dia del mes anterior hasta hoy
    - daily_plant_data: ultimos 3 dias
    - equipment no usa rango
    """
    today = today or date.today()
    yesterday = today - timedelta(days=1)
    monthly = DateRange(first_day_of_previous_month(today), today)
    return {
        SyncType.RUNNING_TIME: DateRange(yesterday, yesterday),
        SyncType.WORK_ORDERS: monthly,
        SyncType.EQUIPMENT_WORK_ORDERS: monthly,
        SyncType.EQUIPMENT_MATERIALS: monthly,
        SyncType.DAILY_PLANT_DATA: DateRange(today - timedelta(days=3), today),
    }


def resolve_date_ranges(
    overrides: Optional[Mapping[SyncType, DateRange]] = None,
    today: Optional[date] = None,
) -> dict[SyncType, DateRange]:
    """Combina los rangos por defecto con los rangos explicitos del llamador."""
    ranges = default_date_ranges(today)
    if overrides:
        ranges.update(overrides)
    return ranges
