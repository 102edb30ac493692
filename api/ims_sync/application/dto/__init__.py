"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import (
    SyncLogDTO,
    SyncRequestDTO,
    SyncResponseDTO,
    SyncTypeResultDTO,
)

__all__ = [
    "SyncLogDTO",
    "SyncRequestDTO",
    "SyncResponseDTO",
    "SyncTypeResultDTO",
]
