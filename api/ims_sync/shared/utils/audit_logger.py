"""
SyncAuditLogger - Log estructurado de las corridas de sincronizacion.

Escribe en logs/sync_logs/ un archivo por dia con:
- Lineas de progreso por tipo de dominio
- Un resumen por corrida completa
"""
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Mapping

from loguru import logger


class SyncAuditLogger:
    """
    Gestor del log de auditoria de sincronizaciones.

    Uso:
        # Al inicio de la app o del job
        SyncAuditLogger.initialize()

        # Durante la corrida
        SyncAuditLogger.log_progress("equipment", "Procesados 1000/3500 items")
        SyncAuditLogger.log_run_summary({"equipment": {...}}, duration_s=12.3)

    Si no se inicializa, las lineas llegan igual a los sinks por defecto de loguru.
    """

    BASE_LOG_DIR = Path("logs")
    SYNC_LOG_DIR = BASE_LOG_DIR / "sync_logs"

    FILE_TIMESTAMP_FORMAT = "%Y-%m-%d"

    _initialized: bool = False
    _sink_id: int | None = None

    @classmethod
    def initialize(cls, log_dir: Path | None = None) -> None:
        """
        Crea la carpeta de logs y registra el sink filtrado por contexto "sync".
        """
        if cls._initialized:
            return

        target_dir = log_dir or cls.SYNC_LOG_DIR
        target_dir.mkdir(parents=True, exist_ok=True)

        today = datetime.now().strftime(cls.FILE_TIMESTAMP_FORMAT)
        sync_log_file = target_dir / f"sync_{today}.log"

        cls._sink_id = logger.add(
            str(sync_log_file),
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {message}",
            filter=lambda record: record["extra"].get("context") == "sync",
            rotation="1 day",
            retention="30 days",
            level="DEBUG"
        )

        cls._initialized = True
        logger.info("SyncAuditLogger inicializado")

    @classmethod
    def shutdown(cls) -> None:
        """Retira el sink de sincronizacion (util en tests y al cerrar la app)."""
        if cls._sink_id is not None:
            logger.remove(cls._sink_id)
        cls._sink_id = None
        cls._initialized = False

    @classmethod
    def log_progress(cls, sync_type: str, message: str) -> None:
        """Registra una linea de progreso para un tipo de dominio."""
        logger.bind(context="sync").info(f"[{sync_type}] {message}")

    @classmethod
    def log_failure(cls, sync_type: str, message: str) -> None:
        """Registra el fallo de un tipo de dominio."""
        logger.bind(context="sync").error(f"[{sync_type}] {message}")

    @classmethod
    def log_run_summary(cls, results: Mapping[str, Dict[str, Any]], duration_s: float) -> None:
        """
        Registra el resumen de una corrida completa.

        Args:
            results: Resultado por tipo ({processed, success, failed[, error|skipped]})
            duration_s: Duracion total en segundos
        """
        sync_logger = logger.bind(context="sync")
        failed_types = [name for name, res in results.items() if res.get("error")]

        sync_logger.info("=" * 60)
        sync_logger.info(f"CORRIDA FINALIZADA en {duration_s:.2f}s")
        sync_logger.info(json.dumps(results, indent=2, default=str))
        if failed_types:
            sync_logger.warning(f"Tipos con error: {', '.join(failed_types)}")
        sync_logger.info("=" * 60)
