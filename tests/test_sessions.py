from datetime import datetime, timedelta

import pytest

from study_planner.sessions import (
    calc_recent_daily_minutes, get_recent_daily_minutes, get_recent_sessions, log_focus_session,
)

NOW = datetime(2026, 3, 1, 9, 0)


def test_calc_recent_daily_minutes_no_history():
    assert calc_recent_daily_minutes([]) is None


def test_calc_recent_daily_minutes_average():
    assert calc_recent_daily_minutes([30, 60]) == 45


def test_calc_recent_daily_minutes_caps_divisor_at_window():
    assert calc_recent_daily_minutes([10] * 40) == pytest.approx(400 / 30)


def test_log_focus_session_rejects_non_positive(ready_db):
    with pytest.raises(ValueError):
        log_focus_session(ready_db, 0)


def test_recent_sessions_window(ready_db):
    log_focus_session(ready_db, 25, ended_at=NOW - timedelta(days=2))
    log_focus_session(ready_db, 50, ended_at=NOW - timedelta(days=29))
    log_focus_session(ready_db, 90, ended_at=NOW - timedelta(days=31))
    sessions = get_recent_sessions(ready_db, NOW)
    assert sorted(s.duration_minutes for s in sessions) == [25, 50]
    assert get_recent_daily_minutes(ready_db, NOW) == 37.5


def test_recent_daily_minutes_without_sessions(ready_db):
    assert get_recent_daily_minutes(ready_db, NOW) is None
