"""
Casos de uso de la aplicacion.
"""
from .sync_use_cases import RunContext, SyncOrchestrator, build_sync_orchestrator

__all__ = ["RunContext", "SyncOrchestrator", "build_sync_orchestrator"]
