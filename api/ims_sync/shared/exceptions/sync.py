"""
Excepciones del pipeline de sincronizacion IMS.

Jerarquia de propagacion:
- Problemas de un item: se omiten con warning (no hay excepcion).
- ChunkProcessingError: el chunk hace rollback y el tipo de dominio falla.
- ImsApiError: el fetch del tipo falla completo (sin resultados parciales).
- El orquestador captura ambos y continua con el siguiente tipo.
"""
from typing import Optional

from ims_sync.shared.exceptions.base import AppException


class SyncConfigError(AppException):
    """Error de configuracion del pipeline."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="SYNC_CONFIG_ERROR",
        )


class ImsApiError(AppException):
    """Error de integracion con la API de IMS (red, HTTP no 2xx, payload invalido, timeout)."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None):
        self.upstream_status = status_code
        self.url = url
        super().__init__(
            message=message,
            status_code=502,
            error_code="IMS_API_ERROR",
            details={"upstream_status": status_code, "url": url},
        )


class ChunkProcessingError(AppException):
    """
    Fallo al persistir un chunk.

    El chunk se revierte completo; los chunks anteriores ya estan confirmados
    y se reportan en committed_items.
    """

    def __init__(self, sync_type: str, chunk_index: int, committed_items: int, cause: BaseException):
        self.sync_type = sync_type
        self.chunk_index = chunk_index
        self.committed_items = committed_items
        self.cause = cause
        super().__init__(
            message=f"Chunk {chunk_index} de {sync_type} fallo: {cause}",
            status_code=500,
            error_code="CHUNK_PROCESSING_ERROR",
            details={
                "sync_type": sync_type,
                "chunk_index": chunk_index,
                "committed_items": committed_items,
            },
        )


class SyncAlreadyRunningError(AppException):
    """Existe una ejecucion reciente sin finalizar para alguno de los tipos."""

    def __init__(self, sync_types: list[str]):
        super().__init__(
            message=f"Ya hay una sincronizacion en curso para: {', '.join(sync_types)}",
            status_code=409,
            error_code="SYNC_ALREADY_RUNNING",
            details={"sync_types": sync_types},
        )


class UnknownSyncTypeError(AppException):
    """Nombre de tipo de dominio desconocido."""

    def __init__(self, sync_type: str, valid_types: list[str]):
        super().__init__(
            message=f"Tipo de sincronizacion '{sync_type}' no valido",
            status_code=400,
            error_code="UNKNOWN_SYNC_TYPE",
            details={"sync_type": sync_type, "valid_types": valid_types},
        )
