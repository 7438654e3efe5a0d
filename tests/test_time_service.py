from datetime import datetime, timezone

import pytest

from ip_watch.time_service import TimeService


# Each entry provides:
#  1. The timezone name given to TimeService
#  2. A UTC instant
#  3. The expected wall-clock string in that zone
# -----------------------------------------
@pytest.mark.parametrize(
    "tz_name, utc_dt, expected",
    [
        ("Asia/Shanghai", datetime(2025, 9, 5, 2, 33, 15, tzinfo=timezone.utc), "2025-09-05 10:33:15"),
        ("UTC", datetime(2025, 9, 5, 2, 33, 15, tzinfo=timezone.utc), "2025-09-05 02:33:15"),

        # ⚠️ Date rollover across midnight
        ("Asia/Shanghai", datetime(2025, 12, 31, 20, 0, 0, tzinfo=timezone.utc), "2026-01-01 04:00:00"),
    ],
)
def test_format_local(tz_name, utc_dt, expected):
    assert TimeService(tz_name).format_local(utc_dt) == expected

def test_invalid_tz_falls_back_to_utc(caplog):
    service = TimeService("Invalid/Zone")

    assert str(service.tz) == "UTC"
    assert "falling back to UTC" in caplog.text

def test_now_string_format():
    result = TimeService("UTC").now_string()

    datetime.strptime(result, "%Y-%m-%d %H:%M:%S")
