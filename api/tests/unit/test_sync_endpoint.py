"""
Tests del webhook de sincronizacion.

Verifica el contrato HTTP:
- Requiere X-API-Key.
- 409 si hay una corrida abierta (salvo force).
- Respuesta con resultado por tipo.
"""
from __future__ import annotations

from datetime import date, datetime
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from ims_sync.api.v1.dependencies.sync_deps import get_sync_log_repository, get_sync_orchestrator
from ims_sync.application.dto.sync_dto import SyncTypeResultDTO
from ims_sync.core.config import settings
from ims_sync.infrastructure.database.models import ApiSyncLogModel
from ims_sync.shared.constants.sync_constants import SYNC_ORDER, SyncStatus, SyncType
from ims_sync.shared.exceptions.sync import SyncAlreadyRunningError

API_KEY = "webhook-secret"
HEADERS = {"X-API-Key": API_KEY}


def _results(**overrides) -> dict:
    results = {sync_type: SyncTypeResultDTO() for sync_type in SYNC_ORDER}
    results[SyncType.EQUIPMENT] = SyncTypeResultDTO(processed=3, success=3)
    for name, result in overrides.items():
        results[SyncType(name)] = result
    return results


@pytest.fixture
def mock_orchestrator() -> AsyncMock:
    orchestrator = AsyncMock()
    orchestrator.ensure_not_running = AsyncMock(return_value=None)
    orchestrator.sync_all = AsyncMock(return_value=_results())
    return orchestrator


@pytest.fixture
def mock_sync_logs() -> AsyncMock:
    repo = AsyncMock()
    repo.list_recent = AsyncMock(return_value=[
        ApiSyncLogModel(
            id=7,
            sync_type="equipment",
            status=SyncStatus.COMPLETED,
            records_processed=3,
            records_success=3,
            records_failed=0,
            error_message=None,
            sync_started_at=datetime(2026, 10, 19, 1, 0, 0),
            sync_completed_at=datetime(2026, 10, 19, 1, 0, 30),
        )
    ])
    return repo


@pytest.fixture
def app_with_mock(mock_orchestrator: AsyncMock, mock_sync_logs: AsyncMock, monkeypatch):
    """Crea la app FastAPI con el orquestador mockeado via dependency_overrides."""
    monkeypatch.setattr(settings, "WEBHOOK_API_KEY", API_KEY)
    from main import create_application
    app = create_application()
    app.dependency_overrides[get_sync_orchestrator] = lambda: mock_orchestrator
    app.dependency_overrides[get_sync_log_repository] = lambda: mock_sync_logs
    yield app
    app.dependency_overrides.clear()


async def _post(app, path: str, json=None, headers=HEADERS):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(path, json=json, headers=headers)


@pytest.mark.asyncio
async def test_requires_api_key(app_with_mock, mock_orchestrator: AsyncMock) -> None:
    missing = await _post(app_with_mock, "/api/v1/sync", headers={})
    wrong = await _post(app_with_mock, "/api/v1/sync", headers={"X-API-Key": "otra"})

    assert missing.status_code == 401
    assert missing.json()["error"] == "UNAUTHORIZED"
    assert wrong.status_code == 401
    mock_orchestrator.sync_all.assert_not_called()


@pytest.mark.asyncio
async def test_full_sync_returns_results_per_type(app_with_mock, mock_orchestrator: AsyncMock) -> None:
    response = await _post(app_with_mock, "/api/v1/sync")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert list(data["results"]) == [t.value for t in SYNC_ORDER]
    assert data["results"]["equipment"]["processed"] == 3
    assert data["results"]["equipment"]["success"] == 3

    mock_orchestrator.ensure_not_running.assert_awaited_once()
    kwargs = mock_orchestrator.sync_all.call_args.kwargs
    assert kwargs["plant_codes"] is None
    assert kwargs["date_ranges"] is None
    assert kwargs["selected_types"] is None


@pytest.mark.asyncio
async def test_errors_are_reported_without_failing_the_request(app_with_mock, mock_orchestrator: AsyncMock) -> None:
    mock_orchestrator.sync_all.return_value = _results(running_time=SyncTypeResultDTO(error="IMS caido"))

    response = await _post(app_with_mock, "/api/v1/sync")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert "running_time" in data["message"]
    assert data["results"]["running_time"]["error"] == "IMS caido"


@pytest.mark.asyncio
async def test_single_type_with_date_override(app_with_mock, mock_orchestrator: AsyncMock) -> None:
    response = await _post(
        app_with_mock,
        "/api/v1/sync/work_orders",
        json={"plant_codes": ["A01"], "start_date": "2026-09-01", "end_date": "2026-09-30"},
    )

    assert response.status_code == 200
    kwargs = mock_orchestrator.sync_all.call_args.kwargs
    assert kwargs["selected_types"] == [SyncType.WORK_ORDERS]
    assert kwargs["plant_codes"] == ["A01"]
    date_range = kwargs["date_ranges"][SyncType.WORK_ORDERS]
    assert (date_range.start, date_range.end) == (date(2026, 9, 1), date(2026, 9, 30))
    assert SyncType.EQUIPMENT not in kwargs["date_ranges"]


@pytest.mark.asyncio
async def test_unknown_type_returns_400(app_with_mock, mock_orchestrator: AsyncMock) -> None:
    response = await _post(app_with_mock, "/api/v1/sync/equipos")

    assert response.status_code == 400
    assert response.json()["error"] == "UNKNOWN_SYNC_TYPE"
    mock_orchestrator.sync_all.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_range_returns_422(app_with_mock) -> None:
    response = await _post(
        app_with_mock,
        "/api/v1/sync",
        json={"start_date": "2026-09-30", "end_date": "2026-09-01"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_running_sync_returns_409_unless_forced(app_with_mock, mock_orchestrator: AsyncMock) -> None:
    mock_orchestrator.ensure_not_running.side_effect = SyncAlreadyRunningError(["equipment"])

    blocked = await _post(app_with_mock, "/api/v1/sync")
    forced = await _post(app_with_mock, "/api/v1/sync", json={"force": True})

    assert blocked.status_code == 409
    assert blocked.json()["error"] == "SYNC_ALREADY_RUNNING"
    assert forced.status_code == 200
    assert mock_orchestrator.sync_all.await_count == 1


@pytest.mark.asyncio
async def test_list_logs(app_with_mock, mock_sync_logs: AsyncMock) -> None:
    transport = ASGITransport(app=app_with_mock)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/api/v1/sync/logs", params={"limit": 5}, headers=HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data[0]["id"] == 7
    assert data[0]["status"] == "completed"
    assert data[0]["success_rate"] == 100.0
    assert data[0]["duration_seconds"] == 30.0
    mock_sync_logs.list_recent.assert_awaited_once_with(limit=5, sync_type=None)
