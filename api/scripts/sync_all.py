"""
CLI: IMS -> base local (corrida de sincronizacion).

Uso recomendado:
  - Ejecutar como job (cron/systemd timer), igual que el webhook pero sin
    atar un worker HTTP durante la corrida.

Variables de entorno requeridas:
  - IMS_BASE_URL
  - IMS_TOKEN
  - DATABASE_URL (o DATABASE_HOST/USER/PASSWORD/NAME)

Ejecucion:
  python scripts/sync_all.py
  python scripts/sync_all.py --types equipment work_orders
  python scripts/sync_all.py --plants A01 B02 --start-date 2026-01-01 --end-date 2026-01-31
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from loguru import logger
from dotenv import load_dotenv

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_API_ROOT.parent / ".env", override=False)

from ims_sync.application.use_cases.sync_use_cases import build_sync_orchestrator, parse_sync_types
from ims_sync.core.config import settings
from ims_sync.infrastructure.database.session import close_db
from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.exceptions.base import AppException
from ims_sync.shared.utils.audit_logger import SyncAuditLogger
from ims_sync.shared.utils.date_utils import DateRange


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Fecha invalida (YYYY-MM-DD): {value}") from e


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sincroniza datos de mantenimiento desde IMS.")
    parser.add_argument(
        "--types",
        nargs="+",
        choices=[t.value for t in SyncType],
        help="Tipos a sincronizar (por defecto todos, en orden de dependencias).",
    )
    parser.add_argument(
        "--plants",
        nargs="+",
        help="Codigos de planta. Si se omite, todas las plantas activas.",
    )
    parser.add_argument("--start-date", type=_parse_date)
    parser.add_argument("--end-date", type=_parse_date)
    parser.add_argument(
        "--force",
        action="store_true",
        help="Ignora el chequeo de corrida en curso en el Run Log.",
    )
    return parser


def _date_overrides(args: argparse.Namespace) -> Optional[dict[SyncType, DateRange]]:
    if args.start_date is None and args.end_date is None:
        return None
    if args.start_date is None or args.end_date is None:
        raise SystemExit("--start-date y --end-date deben indicarse juntos")
    date_range = DateRange(args.start_date, args.end_date)
    return {t: date_range for t in SyncType if t != SyncType.EQUIPMENT}


async def _run(args: argparse.Namespace) -> int:
    selected = parse_sync_types(args.types)
    orchestrator, client = build_sync_orchestrator()
    try:
        if not args.force:
            await orchestrator.ensure_not_running(
                selected or list(SyncType), timedelta(minutes=settings.SYNC_LOCK_WINDOW_MINUTES)
            )
        results = await orchestrator.sync_all(
            plant_codes=args.plants,
            date_ranges=_date_overrides(args),
            selected_types=selected,
        )
    finally:
        await client.aclose()
        await close_db()

    failed = [t.value for t, result in results.items() if result.is_error]
    if failed:
        logger.error(f"Corrida finalizada con errores en: {failed}")
        return 1
    return 0


def main() -> int:
    args = _build_parser().parse_args()
    SyncAuditLogger.initialize()
    try:
        return asyncio.run(_run(args))
    except AppException as e:
        logger.error(f"{e.error_code}: {e.message}")
        return 2
    finally:
        SyncAuditLogger.shutdown()


if __name__ == "__main__":
    raise SystemExit(main())
