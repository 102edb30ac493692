from datetime import date, datetime

import pytest

from ims_sync.shared.constants.sync_constants import SyncType
from ims_sync.shared.utils.date_utils import (
    DateRange,
    default_date_ranges,
    first_day_of_previous_month,
    resolve_date_ranges,
)
from ims_sync.shared.utils.datetime_utils import parse_date, parse_datetime


def test_parse_date_accepts_ims_formats():
    assert parse_date("2026-01-05") == date(2026, 1, 5)
    assert parse_date("20260105") == date(2026, 1, 5)
    assert parse_date("05.01.2026") == date(2026, 1, 5)
    assert parse_date("2026-01-05 13:45:00") == date(2026, 1, 5)


def test_parse_date_null_and_garbage_values():
    assert parse_date("0000-00-00") is None
    assert parse_date("00000000") is None
    assert parse_date("no-date") is None
    assert parse_date(None) is None


def test_parse_datetime_is_naive():
    assert parse_datetime("2026-01-05T08:30:00Z") == datetime(2026, 1, 5, 8, 30)
    assert parse_datetime("2026-01-05 08:30:00") == datetime(2026, 1, 5, 8, 30)


def test_first_day_of_previous_month_crosses_year():
    assert first_day_of_previous_month(date(2026, 1, 10)) == date(2025, 12, 1)
    assert first_day_of_previous_month(date(2026, 3, 31)) == date(2026, 2, 1)


def test_default_date_ranges():
    ranges = default_date_ranges(date(2026, 3, 15))

    assert ranges[SyncType.RUNNING_TIME] == DateRange(date(2026, 3, 14), date(2026, 3, 14))
    assert ranges[SyncType.WORK_ORDERS] == DateRange(date(2026, 2, 1), date(2026, 3, 15))
    assert ranges[SyncType.EQUIPMENT_WORK_ORDERS] == ranges[SyncType.WORK_ORDERS]
    assert ranges[SyncType.EQUIPMENT_MATERIALS] == ranges[SyncType.WORK_ORDERS]
    assert ranges[SyncType.DAILY_PLANT_DATA] == DateRange(date(2026, 3, 12), date(2026, 3, 15))
    assert SyncType.EQUIPMENT not in ranges


def test_resolve_date_ranges_applies_overrides():
    custom = DateRange(date(2025, 1, 1), date(2025, 1, 31))
    ranges = resolve_date_ranges({SyncType.WORK_ORDERS: custom}, date(2026, 3, 15))

    assert ranges[SyncType.WORK_ORDERS] == custom
    assert ranges[SyncType.RUNNING_TIME] == DateRange(date(2026, 3, 14), date(2026, 3, 14))


def test_date_range_params_and_validation():
    assert DateRange(date(2026, 1, 1), date(2026, 1, 2)).as_params() == {
        "start_date": "2026-01-01",
        "end_date": "2026-01-02",
    }
    with pytest.raises(ValueError):
        DateRange(date(2026, 1, 2), date(2026, 1, 1))
