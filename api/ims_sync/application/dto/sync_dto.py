"""
DTOs para la sincronizacion IMS (resultado por tipo, request/response del webhook).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ims_sync.shared.constants.sync_constants import SyncStatus


class SyncTypeResultDTO(BaseModel):
    """
    Resultado de un tipo de dominio dentro de una corrida.

    - processed: items recibidos de IMS
    - success: items escritos en chunks confirmados
    - failed: items no confirmados (chunk fallido y posteriores)
    - omitted: items de chunks confirmados que se descartaron (planta fuera de
      alcance o desconocida, llave incompleta, prefijo excluido)
    - error: texto del error si el tipo fallo
    - skipped: el tipo no fue seleccionado en esta corrida
    """

    processed: int = 0
    success: int = 0
    failed: int = 0
    omitted: int = 0
    error: Optional[str] = None
    skipped: bool = False

    @classmethod
    def skipped_result(cls) -> "SyncTypeResultDTO":
        return cls(skipped=True)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_summary(self) -> dict:
        """Forma compacta: {processed, success, failed} + error/skipped si aplica."""
        summary = {"processed": self.processed, "success": self.success, "failed": self.failed}
        if self.omitted:
            summary["omitted"] = self.omitted
        if self.error is not None:
            summary["error"] = self.error
        if self.skipped:
            summary["skipped"] = True
        return summary


class SyncRequestDTO(BaseModel):
    """
    Request del webhook de sincronizacion.

    Si se indica start_date/end_date, el rango reemplaza el rango por defecto
    de todos los tipos con fecha.
    """

    plant_codes: Optional[list[str]] = Field(
        None,
        description="Codigos de planta a sincronizar. Si se omite, todas las plantas activas."
    )
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    force: bool = Field(False, description="Ignora el chequeo de corrida en curso")

    @model_validator(mode="after")
    def validate_range(self) -> "SyncRequestDTO":
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date y end_date deben indicarse juntos")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date no puede ser posterior a end_date")
        return self


class SyncResponseDTO(BaseModel):
    """Respuesta del webhook con el resultado por tipo."""

    success: bool
    message: str
    results: dict[str, SyncTypeResultDTO]


class SyncLogDTO(BaseModel):
    """Registro del Run Log expuesto por la API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    sync_type: str
    status: SyncStatus
    records_processed: int
    records_success: int
    records_failed: int
    records_skipped: int = 0
    error_message: Optional[str] = None
    sync_started_at: datetime
    sync_completed_at: Optional[datetime] = None
    success_rate: float
    duration_seconds: Optional[float] = None
