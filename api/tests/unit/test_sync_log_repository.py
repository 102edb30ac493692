"""
Tests del Run Log: ciclo de vida pending -> running -> completed/failed y
chequeo consultivo de ejecuciones abiertas.
"""
from datetime import timedelta

import pytest

from ims_sync.infrastructure.repositories.sync_log_repository import SyncLogRepository
from ims_sync.shared.constants.sync_constants import MAX_ERROR_MESSAGE_LENGTH, SyncStatus
from ims_sync.shared.utils.datetime_utils import DateTimeUtils


@pytest.fixture
def repo(session_factory) -> SyncLogRepository:
    return SyncLogRepository(session_factory)


class TestRunLogLifecycle:

    @pytest.mark.asyncio
    async def test_successful_run(self, repo):
        log_id = await repo.create_pending("equipment")
        assert (await repo.get(log_id)).status == SyncStatus.PENDING

        assert await repo.mark_running(log_id) is True
        assert (await repo.get(log_id)).status == SyncStatus.RUNNING

        assert await repo.finish_success(log_id, processed=3, success=3) is True
        log = await repo.get(log_id)
        assert log.status == SyncStatus.COMPLETED
        assert (log.records_processed, log.records_success, log.records_failed) == (3, 3, 0)
        assert log.sync_completed_at is not None
        assert log.success_rate == 100.0
        assert log.duration_seconds is not None

    @pytest.mark.asyncio
    async def test_failed_run_truncates_error(self, repo):
        log_id = await repo.create_pending("running_time")
        await repo.mark_running(log_id)

        assert await repo.finish_failed(log_id, "x" * 5000, processed=10, success=4, failed=6) is True

        log = await repo.get(log_id)
        assert log.status == SyncStatus.FAILED
        assert len(log.error_message) == MAX_ERROR_MESSAGE_LENGTH
        assert (log.records_processed, log.records_success, log.records_failed) == (10, 4, 6)

    @pytest.mark.asyncio
    async def test_pending_can_fail_directly(self, repo):
        log_id = await repo.create_pending("work_orders")

        assert await repo.finish_failed(log_id, "IMS caido") is True
        assert (await repo.get(log_id)).status == SyncStatus.FAILED

    @pytest.mark.asyncio
    async def test_finished_record_is_never_modified(self, repo):
        log_id = await repo.create_pending("equipment")
        await repo.mark_running(log_id)
        await repo.finish_success(log_id, processed=1, success=1)

        assert await repo.finish_failed(log_id, "tarde") is False
        assert await repo.mark_running(log_id) is False
        assert await repo.finish_success(log_id, processed=9, success=9) is False

        log = await repo.get(log_id)
        assert log.status == SyncStatus.COMPLETED
        assert log.records_processed == 1
        assert log.error_message is None


class TestRunLogQueries:

    @pytest.mark.asyncio
    async def test_find_running_types_within_window(self, repo):
        now = DateTimeUtils.now_utc()
        await repo.create_pending("equipment")
        running_id = await repo.create_pending("work_orders")
        await repo.mark_running(running_id)
        done_id = await repo.create_pending("running_time")
        await repo.finish_success(done_id, processed=0, success=0)
        await repo.create_pending("daily_plant_data", started_at=now - timedelta(hours=3))

        running = await repo.find_running_types(
            ["equipment", "work_orders", "running_time", "daily_plant_data"],
            timedelta(minutes=30),
        )

        assert running == ["equipment", "work_orders"]
        assert await repo.find_running_types([], timedelta(minutes=30)) == []

    @pytest.mark.asyncio
    async def test_list_recent(self, repo):
        now = DateTimeUtils.now_utc()
        first = await repo.create_pending("equipment", started_at=now - timedelta(minutes=2))
        second = await repo.create_pending("work_orders", started_at=now - timedelta(minutes=1))
        third = await repo.create_pending("equipment", started_at=now)

        assert [log.id for log in await repo.list_recent()] == [third, second, first]
        assert [log.id for log in await repo.list_recent(sync_type="equipment")] == [third, first]
        assert [log.id for log in await repo.list_recent(limit=1)] == [third]
